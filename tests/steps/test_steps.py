"""Tests for individual lifecycle steps against the simulated backend."""

import pytest

from k0s_orchestrator.pipeline import RunContext, StepStatus
from k0s_orchestrator.specification import HostRole, translate_request
from k0s_orchestrator.steps import (
    Connect,
    DetectOS,
    DownloadBinaries,
    DownloadBinariesOnHosts,
    FetchCredentials,
    GatherFacts,
    GatherRuntimeFacts,
    InitializeLeader,
    InstallBinaries,
    InstallWorkers,
    PrepareArm,
    ResetLeader,
    ResolveDefaults,
    UploadBinaries,
    UploadFiles,
    ValidateFacts,
    ValidateHosts,
    ValidateQuorum,
)

VERSION = "v1.30.2+k0s.0"
OLDER = "v1.29.4+k0s.0"
NEWER = "v1.31.0+k0s.0"


def _connected_context(backend, request) -> RunContext:
    specification, options = translate_request(request)
    ctx = RunContext.create(specification, options, backend)
    Connect().run(ctx)
    DetectOS().run(ctx)
    return ctx


def _seed_running(backend, *labels: str, version: str = VERSION) -> None:
    for label in labels:
        backend.seed_host(label, running_version=version, installed_version=version, role="controller")


class TestResolveDefaults:
    def test_declared_config_is_used(self, backend, make_request):
        ctx = _connected_context(backend, make_request(config="spec:\n  network:\n    provider: calico\n"))

        result = ResolveDefaults().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert ctx.config == {"spec": {"network": {"provider": "calico"}}}
        assert backend.calls_for("default_config") == []

    def test_default_config_generated(self, backend, make_request):
        ctx = _connected_context(backend, make_request())

        ResolveDefaults().run(ctx)

        assert ctx.config["kind"] == "ClusterConfig"
        assert backend.calls_for("default_config") == ["-"]


class TestSessionSteps:
    def test_declared_os_wins(self, backend, make_request, host_entry):
        request = make_request(hosts=[host_entry("10.0.0.1", "controller", os="debian")])
        ctx = _connected_context(backend, request)

        assert ctx.facts["10.0.0.1"].os == "debian"
        assert backend.calls_for("detect_os") == []

    def test_detected_os(self, backend, make_request, host_entry):
        backend.seed_host("10.0.0.1", os="alpine")
        ctx = _connected_context(backend, make_request(hosts=[host_entry("10.0.0.1", "controller")]))
        assert ctx.facts["10.0.0.1"].os == "alpine"


class TestGatherAndValidateHosts:
    def test_declared_overrides_win(self, backend, make_request, host_entry):
        request = make_request(
            hosts=[host_entry("10.0.0.1", "controller", hostname="cp-1", private_address="192.168.0.1")]
        )
        ctx = _connected_context(backend, request)

        GatherFacts().run(ctx)

        facts = ctx.facts["10.0.0.1"]
        assert facts.hostname == "cp-1"
        assert facts.private_address == "192.168.0.1"
        assert facts.arch == "amd64"

    def test_unique_hosts_pass(self, backend, make_request):
        ctx = _connected_context(backend, make_request())
        GatherFacts().run(ctx)

        result = ValidateHosts().run(ctx)

        assert result.status == StepStatus.SUCCESS

    def test_duplicate_hostname_rejected(self, backend, make_request):
        backend.seed_host("10.0.0.3", hostname="node")
        backend.seed_host("10.0.0.4", hostname="node")
        ctx = _connected_context(backend, make_request())
        GatherFacts().run(ctx)

        result = ValidateHosts().run(ctx)

        assert result.status == StepStatus.FAILED
        assert result.details["problems"] == ["hostname 'node' is used by 10.0.0.3, 10.0.0.4"]


class TestGatherRuntimeFacts:
    def test_reported_version_normalized(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", version="1.30.2+k0s.0")
        ctx = _connected_context(backend, make_request())

        GatherRuntimeFacts().run(ctx)

        leader = ctx.hosts[0]
        assert ctx.facts_for(leader).running_version == VERSION
        assert not ctx.needs_binary(leader)

    def test_build_metadata_still_counts(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", version="v1.30.2+k0s.1")
        ctx = _connected_context(backend, make_request())

        GatherRuntimeFacts().run(ctx)

        assert ctx.needs_binary(ctx.hosts[0])

    def test_unparsable_version_reported_by_validation(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", version="nightly")
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)

        result = ValidateFacts().run(ctx)

        assert result.status == StepStatus.FAILED
        assert "unparsable version 'nightly'" in result.message


class TestValidateFacts:
    def test_new_cluster_is_valid(self, backend, make_request):
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)
        assert ValidateFacts().run(ctx).status == StepStatus.SUCCESS

    def test_upgrade_is_valid(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", version=OLDER)
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)
        assert ValidateFacts().run(ctx).status == StepStatus.SUCCESS

    def test_downgrade_rejected(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", version=NEWER)
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)

        result = ValidateFacts().run(ctx)

        assert result.status == StepStatus.FAILED
        assert "downgrading" in result.message
        assert "10.0.0.1" in result.message

    def test_downgrade_allowed_when_check_skipped(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", version=NEWER)
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)

        assert ValidateFacts(skip_downgrade_check=True).run(ctx).status == StepStatus.SUCCESS


class TestValidateQuorum:
    def test_new_cluster(self, backend, make_request):
        ctx = _connected_context(backend, make_request())
        GatherFacts().run(ctx)
        GatherRuntimeFacts().run(ctx)

        result = ValidateQuorum().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert backend.calls_for("etcd_members") == []

    def test_members_present(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", "10.0.0.2")
        backend.etcd.update({"10.0.0.1", "10.0.0.2"})
        ctx = _connected_context(backend, make_request())
        GatherFacts().run(ctx)
        GatherRuntimeFacts().run(ctx)

        assert ValidateQuorum().run(ctx).status == StepStatus.SUCCESS

    def test_missing_member_rejected(self, backend, make_request):
        _seed_running(backend, "10.0.0.1", "10.0.0.2")
        backend.etcd.add("10.0.0.1")
        ctx = _connected_context(backend, make_request())
        GatherFacts().run(ctx)
        GatherRuntimeFacts().run(ctx)

        result = ValidateQuorum().run(ctx)

        assert result.status == StepStatus.FAILED
        assert result.details["missing"] == ["10.0.0.2"]

    def test_single_node_has_no_etcd(self, backend, make_request, host_entry):
        _seed_running(backend, "10.0.0.1")
        ctx = _connected_context(backend, make_request(hosts=[host_entry("10.0.0.1", "single")]))
        GatherRuntimeFacts().run(ctx)

        assert ValidateQuorum().run(ctx).status == StepStatus.SUCCESS
        assert backend.calls_for("etcd_members") == []


class TestBinarySteps:
    @pytest.fixture
    def ctx(self, backend, make_request, host_entry):
        backend.seed_host("10.0.0.2", arch="armv7")
        request = make_request(
            hosts=[
                host_entry("10.0.0.1", "controller", upload_binary=True),
                host_entry("10.0.0.2", "controller", upload_binary=True),
                host_entry("10.0.0.3", "worker", files=[{"src": "ca.pem", "dst": "/etc/ca.pem"}]),
            ]
        )
        ctx = _connected_context(backend, request)
        GatherFacts().run(ctx)
        GatherRuntimeFacts().run(ctx)
        return ctx

    def test_one_download_per_architecture(self, ctx, backend):
        result = DownloadBinaries().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert sorted(ctx.binaries) == ["amd64", "armv7"]
        assert len(backend.calls_for("download_binary")) == 2

    def test_upload_and_on_host_download_split(self, ctx, backend):
        DownloadBinaries().run(ctx)
        UploadBinaries().run(ctx)
        DownloadBinariesOnHosts().run(ctx)

        assert sorted(backend.calls_for("upload_binary")) == ["10.0.0.1", "10.0.0.2"]
        assert backend.calls_for("download_binary_on_host") == ["10.0.0.3"]

    def test_install_after_staging(self, ctx, backend):
        for step in (DownloadBinaries(), UploadBinaries(), DownloadBinariesOnHosts()):
            step.run(ctx)

        result = InstallBinaries().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert all(backend.hosts[label].installed_version == VERSION for label in ("10.0.0.1", "10.0.0.2", "10.0.0.3"))

    def test_files_uploaded(self, ctx, backend):
        UploadFiles().run(ctx)
        assert backend.hosts["10.0.0.3"].files == {"/etc/ca.pem": "ca.pem"}

    def test_arm_controllers_prepared(self, ctx, backend):
        result = PrepareArm().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert backend.calls_for("prepare_arm") == ["10.0.0.2"]

    def test_nothing_to_do_at_target_version(self, backend, make_request):
        for label in ("10.0.0.1", "10.0.0.2", "10.0.0.3", "10.0.0.4"):
            backend.seed_host(label, running_version=VERSION, installed_version=VERSION)
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)

        result = InstallBinaries().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert result.message == "All hosts already run the target version"
        assert backend.calls_for("install_binary") == []


class TestInstallSteps:
    @pytest.fixture
    def ctx(self, backend, make_request):
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)
        for step in (DownloadBinariesOnHosts(), InstallBinaries()):
            step.run(ctx)
        return ctx

    def test_leader_initialized_once(self, ctx, backend):
        assert InitializeLeader().run(ctx).status == StepStatus.SUCCESS
        InitializeLeader().run(ctx)
        assert backend.calls_for("initialize_controller") == ["10.0.0.1"]

    def test_workers_share_one_token(self, ctx, backend):
        InitializeLeader().run(ctx)

        result = InstallWorkers(no_wait=True).run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert backend.calls_for("create_join_token") == ["10.0.0.1"]
        assert sorted(backend.calls_for("join_worker")) == ["10.0.0.3", "10.0.0.4"]
        assert HostRole.WORKER in ctx.join_tokens

    def test_join_failure_reported_per_host(self, ctx, backend):
        InitializeLeader().run(ctx)
        backend.fail("join_worker", "10.0.0.4", "node never became ready")

        result = InstallWorkers().run(ctx)

        assert result.status == StepStatus.FAILED
        assert "10.0.0.4" in result.details["errors"]

    def test_fetch_credentials_needs_running_leader(self, ctx, backend):
        result = FetchCredentials().run(ctx)

        assert result.status == StepStatus.FAILED
        assert "not running" in result.message
        assert ctx.kubeconfig is None

    def test_fetch_credentials(self, ctx, backend):
        InitializeLeader().run(ctx)

        result = FetchCredentials().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert "https://10.0.0.1:6443" in ctx.kubeconfig


class TestResetLeader:
    def test_nothing_to_reset(self, backend, make_request):
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)

        result = ResetLeader().run(ctx)

        assert result.status == StepStatus.SUCCESS
        assert backend.calls_for("reset_controller") == []

    def test_running_leader_reset(self, backend, make_request):
        _seed_running(backend, "10.0.0.1")
        ctx = _connected_context(backend, make_request())
        GatherRuntimeFacts().run(ctx)

        ResetLeader().run(ctx)

        assert backend.calls_for("reset_controller") == ["10.0.0.1"]
        assert backend.hosts["10.0.0.1"].running_version is None
        assert not ctx.is_running(ctx.leader)
