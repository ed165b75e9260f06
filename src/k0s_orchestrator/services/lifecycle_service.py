"""Lifecycle service: the four verbs of a declared cluster.

Each verb validates the request, builds the verb's pipeline, creates a
fresh run context and executes it. Success returns a ``ClusterResult``;
a failed step surfaces as ``PipelineExecutionError`` carrying the step
name and its diagnostic unchanged.
"""

from functools import lru_cache
from typing import Any

from loguru import logger

from k0s_orchestrator.backends import ProvisioningBackend, load_backend
from k0s_orchestrator.constants import STEP_ACQUIRE_LOCK
from k0s_orchestrator.exceptions import ClusterLockedError, LockContentionError, PipelineExecutionError
from k0s_orchestrator.locking.base import LockProvider
from k0s_orchestrator.models.api_model import ClusterResult, PipelinePlan, StepPlan
from k0s_orchestrator.pipeline import LifecycleVerb, PipelineResult
from k0s_orchestrator.settings import get_settings
from k0s_orchestrator.specification import ClusterRequest, SpecificationTranslator
from k0s_orchestrator.steps import build_pipeline

ClusterRequestData = ClusterRequest | dict[str, Any]


class LifecycleService:
    """Runs lifecycle verbs against a provisioning backend under a cluster lock."""

    def __init__(self, lock_provider: LockProvider, backend: ProvisioningBackend):
        self.lock_provider = lock_provider
        self.backend = backend
        self.translator = SpecificationTranslator()

    def create(self, request: ClusterRequestData) -> ClusterResult:
        return self.run(LifecycleVerb.CREATE, request)

    def read(self, request: ClusterRequestData) -> ClusterResult:
        return self.run(LifecycleVerb.READ, request)

    def update(self, request: ClusterRequestData) -> ClusterResult:
        return self.run(LifecycleVerb.UPDATE, request)

    def delete(self, request: ClusterRequestData) -> ClusterResult:
        return self.run(LifecycleVerb.DELETE, request)

    def run(self, verb: LifecycleVerb, request: ClusterRequestData) -> ClusterResult:
        """Execute one verb.

        Raises:
            SpecificationValidationError: The request was rejected; no host was touched
            ClusterLockedError: Another run holds the cluster lock
            PipelineExecutionError: A step failed
        """
        specification = self.translator.translate(request)
        options = self.translator.options(request)

        pipeline = build_pipeline(verb, options, self.lock_provider)
        ctx = pipeline.create_context(specification, options, self.backend)
        logger.info(f"Running {verb} for cluster '{specification.name}' ({len(ctx.hosts)} hosts, run {ctx.run_id})")

        result = pipeline.execute(ctx)
        self._raise_for_failure(result)

        logger.info(f"{str(verb).capitalize()} of cluster '{specification.name}' completed: {result.message}")
        return ClusterResult(
            id=specification.name,
            name=specification.name,
            kubeconfig=result.kubeconfig,
            pipeline=result,
        )

    def plan(self, verb: LifecycleVerb, request: ClusterRequestData) -> PipelinePlan:
        """Describe the steps ``verb`` would run for ``request`` without executing anything."""
        verb = LifecycleVerb(verb)
        specification = self.translator.translate(request)
        options = self.translator.options(request)

        pipeline = build_pipeline(verb, options, self.lock_provider)
        ctx = pipeline.create_context(specification, options, self.backend)
        return PipelinePlan(
            verb=str(verb),
            cluster_name=specification.name,
            host_scope=str(pipeline.host_scope),
            hosts=[str(host) for host in ctx.hosts],
            steps=[StepPlan(**entry) for entry in pipeline.describe()],
        )

    @staticmethod
    def _raise_for_failure(result: PipelineResult) -> None:
        if result.succeeded:
            return
        logger.error(f"{result.verb} of cluster '{result.cluster_name}' failed at step '{result.failed_step}': {result.message}")
        if result.failed_step == STEP_ACQUIRE_LOCK:
            acquire = result.get_step_result(STEP_ACQUIRE_LOCK)
            # A lock provider outage is a step failure, not contention
            if acquire is not None and acquire.details.get("type") == LockContentionError.__name__:
                raise ClusterLockedError(result)
        raise PipelineExecutionError(result)


@lru_cache
def get_lock_provider() -> LockProvider:
    """Build the lock provider selected by ``Settings.lock_backend``."""
    settings = get_settings()
    if settings.lock_backend == "postgres":
        from k0s_orchestrator.locking.advisory import PostgresAdvisoryLockProvider

        return PostgresAdvisoryLockProvider(wait_timeout=settings.lock_wait_timeout)

    from k0s_orchestrator.locking.memory import InProcessLockProvider

    return InProcessLockProvider(wait_timeout=settings.lock_wait_timeout)


@lru_cache
def get_backend() -> ProvisioningBackend:
    """Instantiate the provisioning backend named by ``Settings.backend``."""
    return load_backend(get_settings().backend)


@lru_cache
def get_lifecycle_service() -> LifecycleService:
    """Get the lifecycle service singleton built from global settings."""
    return LifecycleService(get_lock_provider(), get_backend())
