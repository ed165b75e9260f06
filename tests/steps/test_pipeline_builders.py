"""Tests for the per-verb pipeline builders."""

import pytest

from k0s_orchestrator.constants import (
    STEP_ACQUIRE_LOCK,
    STEP_PREPARE_HOSTS,
    STEP_RELEASE_LOCK,
    STEP_RESET_CONTROLLERS,
    STEP_RESET_WORKERS,
    STEP_UPGRADE_WORKERS,
)
from k0s_orchestrator.locking import InProcessLockProvider
from k0s_orchestrator.pipeline import HostScope, LifecycleVerb
from k0s_orchestrator.specification import PipelineOptions
from k0s_orchestrator.steps import build_apply_pipeline, build_pipeline

APPLY_STEPS = [
    "default-version-resolution",
    "connect",
    "detect-os",
    "acquire-lock",
    "prepare-hosts",
    "gather-facts",
    "validate-hosts",
    "gather-runtime-facts",
    "validate-facts",
    "validate-quorum",
    "download-binaries",
    "upload-binaries",
    "download-binaries-on-hosts",
    "upload-files",
    "install-binaries",
    "prepare-arm",
    "configure-runtime",
    "initialize-leader",
    "install-controllers",
    "install-workers",
    "upgrade-controllers",
    "upgrade-workers",
    "fetch-credentials",
    "release-lock",
    "disconnect",
]

DELETE_STEPS = [
    "connect",
    "detect-os",
    "acquire-lock",
    "prepare-hosts",
    "gather-runtime-facts",
    "reset-workers",
    "reset-controllers",
    "reset-leader",
    "release-lock",
    "disconnect",
]


@pytest.fixture
def provider() -> InProcessLockProvider:
    return InProcessLockProvider()


class TestStepOrder:
    @pytest.mark.parametrize("verb", [LifecycleVerb.CREATE, LifecycleVerb.UPDATE])
    def test_create_and_update_share_steps(self, verb, provider):
        pipeline = build_pipeline(verb, PipelineOptions(), provider)
        assert pipeline.get_step_names() == APPLY_STEPS
        assert pipeline.host_scope == HostScope.ALL

    def test_read_is_leader_scoped_and_unlocked(self):
        pipeline = build_pipeline(LifecycleVerb.READ, PipelineOptions())

        assert pipeline.get_step_names() == ["connect", "detect-os", "gather-runtime-facts", "fetch-credentials", "disconnect"]
        assert pipeline.host_scope == HostScope.LEADER
        assert STEP_ACQUIRE_LOCK not in pipeline.get_step_names()

    def test_delete_order(self, provider):
        pipeline = build_pipeline(LifecycleVerb.DELETE, PipelineOptions(), provider)
        assert pipeline.get_step_names() == DELETE_STEPS

    @pytest.mark.parametrize("verb", [LifecycleVerb.CREATE, LifecycleVerb.DELETE])
    def test_lock_taken_before_hosts_change(self, verb, provider):
        names = build_pipeline(verb, PipelineOptions(), provider).get_step_names()
        assert names.index(STEP_ACQUIRE_LOCK) < names.index(STEP_PREPARE_HOSTS)
        assert names[-2] == STEP_RELEASE_LOCK

    def test_finalizers(self, provider):
        pipeline = build_pipeline(LifecycleVerb.CREATE, PipelineOptions(), provider)
        finalizers = [step.name for step in pipeline.steps if step.always_run]
        assert finalizers == ["release-lock", "disconnect"]

    def test_verb_accepted_as_string(self, provider):
        pipeline = build_pipeline("delete", PipelineOptions(), provider)
        assert pipeline.verb == LifecycleVerb.DELETE


class TestOptionsThreading:
    def test_defaults(self, provider):
        pipeline = build_pipeline(LifecycleVerb.UPDATE, PipelineOptions(), provider)
        assert pipeline.get_step("upgrade-workers").flags() == {"no_drain": False}
        assert pipeline.get_step("install-workers").flags() == {"no_wait": False}
        assert pipeline.get_step("validate-facts").flags() == {"skip_downgrade_check": False}

    def test_no_drain_reaches_upgrade_and_reset(self, provider):
        options = PipelineOptions(no_drain=True)

        apply = build_pipeline(LifecycleVerb.UPDATE, options, provider)
        delete = build_pipeline(LifecycleVerb.DELETE, options, provider)

        assert apply.get_step(STEP_UPGRADE_WORKERS).flags()["no_drain"] is True
        assert delete.get_step(STEP_RESET_WORKERS).flags()["no_drain"] is True
        assert delete.get_step(STEP_RESET_CONTROLLERS).flags()["no_drain"] is True

    def test_delete_keeps_nodes_and_etcd_membership(self, provider):
        delete = build_pipeline(LifecycleVerb.DELETE, PipelineOptions(), provider)
        assert delete.get_step(STEP_RESET_WORKERS).flags() == {"no_drain": False, "no_delete": True}
        assert delete.get_step(STEP_RESET_CONTROLLERS).flags() == {"no_drain": False, "no_delete": True, "no_leave": True}

    def test_no_wait_and_skip_downgrade_check(self, provider):
        options = PipelineOptions(no_wait=True, skip_downgrade_check=True)
        pipeline = build_pipeline(LifecycleVerb.CREATE, options, provider)

        assert pipeline.get_step("install-workers").flags() == {"no_wait": True}
        assert pipeline.get_step("validate-facts").flags() == {"skip_downgrade_check": True}

    def test_describe_lists_flags(self, provider):
        plan = build_pipeline(LifecycleVerb.CREATE, PipelineOptions(no_drain=True), provider).describe()
        entry = next(item for item in plan if item["name"] == STEP_UPGRADE_WORKERS)
        assert entry["flags"] == {"no_drain": True}
        assert entry["finalizer"] is False


class TestBuilderErrors:
    @pytest.mark.parametrize("verb", [LifecycleVerb.CREATE, LifecycleVerb.UPDATE, LifecycleVerb.DELETE])
    def test_mutating_verb_needs_lock_provider(self, verb):
        with pytest.raises(ValueError, match="needs a lock provider"):
            build_pipeline(verb, PipelineOptions())

    def test_apply_builder_rejects_other_verbs(self, provider):
        with pytest.raises(ValueError):
            build_apply_pipeline(LifecycleVerb.DELETE, PipelineOptions(), provider)

    def test_unknown_verb(self, provider):
        with pytest.raises(ValueError):
            build_pipeline("restart", PipelineOptions(), provider)
