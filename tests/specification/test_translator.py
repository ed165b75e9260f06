"""Tests for the specification translator."""

import pytest

from k0s_orchestrator.exceptions import SpecificationValidationError
from k0s_orchestrator.specification import HostRole, PipelineOptions, SpecificationTranslator, translate_request


class TestTranslateValid:
    """Requests that translate into a specification."""

    def test_defaults_are_filled(self, make_request, host_entry):
        """Missing user, port, flags and environment get their defaults."""
        spec = SpecificationTranslator().translate(make_request(hosts=[host_entry("10.0.0.1", "single")]))

        host = spec.hosts[0]
        assert host.connection.user == "root"
        assert host.connection.port == 22
        assert host.install_flags == []
        assert host.environment == {}
        assert host.files == []
        assert spec.embedded_config is None
        assert spec.dynamic_config is False

    def test_version_is_normalized(self, make_request):
        spec = SpecificationTranslator().translate(make_request(version="1.30.2+k0s.0"))
        assert spec.runtime_version == "v1.30.2+k0s.0"

    def test_yaml_config_is_parsed(self, make_request):
        config = "apiVersion: k0s.k0sproject.io/v1beta1\nkind: ClusterConfig\nspec:\n  network:\n    provider: calico\n"
        spec = SpecificationTranslator().translate(make_request(config=config))
        assert spec.embedded_config["spec"]["network"]["provider"] == "calico"

    def test_blank_config_defers_to_default_generation(self, make_request):
        spec = SpecificationTranslator().translate(make_request(config="   \n"))
        assert spec.embedded_config is None

    def test_host_overrides_and_files(self, make_request, host_entry):
        hosts = [
            host_entry(
                "10.0.0.1",
                "controller+worker",
                hostname="cp-1",
                private_address="192.168.1.1",
                no_taints=True,
                upload_binary=True,
                environment={"HTTP_PROXY": "http://proxy:3128"},
                install_flags=["--debug"],
                files=[{"src": "/tmp/a.yaml", "dst": "/var/lib/k0s/manifests/a.yaml", "perm": "0600"}],
            )
        ]
        spec = SpecificationTranslator().translate(make_request(hosts=hosts))

        host = spec.hosts[0]
        assert host.role == HostRole.CONTROLLER_WORKER
        assert host.hostname == "cp-1"
        assert host.private_address == "192.168.1.1"
        assert host.no_taints is True
        assert host.upload_binary is True
        assert host.environment == {"HTTP_PROXY": "http://proxy:3128"}
        assert host.install_flags == ["--debug"]
        assert host.files[0].name == "/tmp/a.yaml"
        assert host.files[0].destination == "/var/lib/k0s/manifests/a.yaml"

    def test_options_are_extracted(self, make_request):
        spec, options = translate_request(make_request(concurrency=3, no_drain=True, no_wait=True))

        assert spec.name == "demo"
        assert options == PipelineOptions(concurrency=3, no_wait=True, no_drain=True, skip_downgrade_check=False)


class TestTranslateRejected:
    """Requests rejected before any step runs."""

    def test_empty_host_list(self, make_request):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(hosts=[]))
        assert "hosts: at least one host is required" in exc_info.value.errors

    def test_unknown_role(self, make_request, host_entry):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(hosts=[host_entry("10.0.0.1", "bogus")]))
        assert any("invalid role 'bogus'" in error for error in exc_info.value.errors)

    def test_config_not_yaml(self, make_request):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(config="spec: [unclosed"))
        assert any(error.startswith("config: not a valid YAML document") for error in exc_info.value.errors)

    def test_config_not_a_mapping(self, make_request):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(config="- one\n- two\n"))
        assert "config: expected a mapping, got list" in exc_info.value.errors

    @pytest.mark.parametrize("version", ["1.30", "latest", "v1.30.2.1", ""])
    def test_malformed_version(self, make_request, version):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(version=version))
        assert any(error.startswith("version:") for error in exc_info.value.errors)

    def test_workers_only(self, make_request, host_entry):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(hosts=[host_entry("10.0.0.3", "worker")]))
        assert any("controller" in error for error in exc_info.value.errors)

    def test_duplicate_ssh_endpoint(self, make_request, host_entry):
        hosts = [host_entry("10.0.0.1", "controller"), host_entry("10.0.0.1", "worker")]
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(hosts=hosts))
        assert any("duplicate ssh address 10.0.0.1" in error for error in exc_info.value.errors)

    def test_same_address_on_different_ports_is_allowed(self, make_request, host_entry):
        hosts = [
            host_entry("10.0.0.1", "controller"),
            {"role": "worker", "ssh": {"address": "10.0.0.1", "port": 2222}},
        ]
        spec = SpecificationTranslator().translate(make_request(hosts=hosts))
        assert [host.label for host in spec.hosts] == ["10.0.0.1", "10.0.0.1:2222"]

    def test_all_errors_reported_together(self, make_request, host_entry):
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(
                make_request(version="nope", config="- a", hosts=[host_entry("10.0.0.1", "bogus")])
            )
        assert len(exc_info.value.errors) == 3

    def test_schema_error_is_a_validation_error(self, make_request):
        """A host without an ssh block fails schema validation the same way."""
        with pytest.raises(SpecificationValidationError) as exc_info:
            SpecificationTranslator().translate(make_request(hosts=[{"role": "controller"}]))
        assert any(error.startswith("hosts.0.ssh") for error in exc_info.value.errors)

    def test_rejected_request_touches_no_host(self, lifecycle, backend, make_request, host_entry):
        for request in (make_request(hosts=[]), make_request(hosts=[host_entry("10.0.0.1", "bogus")])):
            with pytest.raises(SpecificationValidationError):
                lifecycle.create(request)
        assert backend.calls == []
