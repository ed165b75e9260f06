"""Tests for the cluster CLI commands."""

import stat

import pytest
import yaml
from typer.testing import CliRunner

from k0s_orchestrator.cli import app
from k0s_orchestrator.cli.commands import cluster as cluster_commands

runner = CliRunner()


def _flat(output: str) -> str:
    """Console output with line wrapping undone."""
    return " ".join(output.split())


@pytest.fixture(autouse=True)
def simulated_lifecycle(monkeypatch, lifecycle):
    monkeypatch.setattr(cluster_commands, "_lifecycle", lambda: lifecycle)
    return lifecycle


@pytest.fixture
def cluster_file(tmp_path, make_request):
    path = tmp_path / "cluster.yaml"
    path.write_text(yaml.safe_dump(make_request()), encoding="utf-8")
    return path


class TestApply:
    def test_apply_prints_kubeconfig(self, cluster_file):
        result = runner.invoke(app, ["cluster", "apply", str(cluster_file)])

        assert result.exit_code == 0, result.output
        assert "Cluster 'demo' is ready" in result.output
        assert "current-context" in result.output

    def test_apply_writes_kubeconfig_file(self, cluster_file, tmp_path):
        target = tmp_path / "admin.conf"

        result = runner.invoke(app, ["cluster", "apply", str(cluster_file), "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert "current-context" in target.read_text(encoding="utf-8")
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_update_flag(self, cluster_file, backend):
        runner.invoke(app, ["cluster", "apply", str(cluster_file)])
        backend.calls.clear()

        result = runner.invoke(app, ["cluster", "apply", str(cluster_file), "--update"])

        assert result.exit_code == 0, result.output
        assert backend.calls_for("join_worker") == []

    def test_step_failure_exits_nonzero(self, cluster_file, backend):
        backend.fail("install_binary", "10.0.0.3", "disk full")

        result = runner.invoke(app, ["cluster", "apply", str(cluster_file)])

        assert result.exit_code == 1
        assert "Step 'install-binaries' failed" in _flat(result.output)


class TestInvalidInput:
    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["cluster", "apply", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "does not exist" in _flat(result.output)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        result = runner.invoke(app, ["cluster", "apply", str(path)])

        assert result.exit_code == 1
        assert "must contain a YAML mapping" in _flat(result.output)

    def test_invalid_specification(self, tmp_path, make_request, backend):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump(make_request(hosts=[])), encoding="utf-8")

        result = runner.invoke(app, ["cluster", "apply", str(path)])

        assert result.exit_code == 1
        assert "Invalid cluster specification" in _flat(result.output)
        assert backend.calls == []


class TestOtherCommands:
    def test_plan(self, cluster_file, backend):
        result = runner.invoke(app, ["cluster", "plan", str(cluster_file), "--verb", "update"])

        assert result.exit_code == 0, result.output
        assert "upgrade-workers" in result.output
        assert backend.calls == []

    def test_read(self, cluster_file):
        runner.invoke(app, ["cluster", "apply", str(cluster_file)])

        result = runner.invoke(app, ["cluster", "read", str(cluster_file)])

        assert result.exit_code == 0, result.output
        assert "current-context" in result.output

    def test_delete_confirmation_declined(self, cluster_file, backend):
        result = runner.invoke(app, ["cluster", "delete", str(cluster_file)], input="n\n")

        assert result.exit_code == 0
        assert "Deletion cancelled" in result.output
        assert backend.calls == []

    def test_delete(self, cluster_file):
        runner.invoke(app, ["cluster", "apply", str(cluster_file)])

        result = runner.invoke(app, ["cluster", "delete", str(cluster_file), "--yes"])

        assert result.exit_code == 0, result.output
        assert "Cluster 'demo' deleted" in result.output
