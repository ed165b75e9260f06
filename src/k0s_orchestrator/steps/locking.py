"""Lock bracket steps around the mutating part of a pipeline."""

from loguru import logger

from k0s_orchestrator.constants import STEP_ACQUIRE_LOCK, STEP_RELEASE_LOCK
from k0s_orchestrator.exceptions import LockContentionError
from k0s_orchestrator.locking.base import LockProvider
from k0s_orchestrator.pipeline.base import Step
from k0s_orchestrator.pipeline.context import RunContext
from k0s_orchestrator.pipeline.models import StepResult


class AcquireLock(Step):
    """Take the cluster-name lock and store the token on the run context."""

    acquires_lock = True

    def __init__(self, provider: LockProvider):
        super().__init__(STEP_ACQUIRE_LOCK, "Take the cluster lock")
        self.provider = provider

    def flags(self) -> dict[str, str]:
        return {"provider": type(self.provider).__name__}

    def _execute(self, ctx: RunContext) -> StepResult:
        if ctx.lock_token is not None and not ctx.lock_token.released:
            return self.success(f"Lock for cluster '{ctx.cluster_name}' already held by this run")

        try:
            ctx.lock_token = self.provider.acquire(ctx.cluster_name, ctx.run_id)
        except LockContentionError as e:
            return self.failed(str(e), {"type": type(e).__name__, "holder": e.holder})

        return self.success(f"Lock acquired for cluster '{ctx.cluster_name}'", {"owner": ctx.run_id})


class ReleaseLock(Step):
    """Give the cluster lock back.

    Runs on every exit path. Without a token (the acquire step failed or never
    ran) there is nothing to release. A failed release is reported but the
    token is dropped either way.
    """

    releases_lock = True

    def __init__(self):
        super().__init__(STEP_RELEASE_LOCK, "Release the cluster lock", always_run=True)

    def _execute(self, ctx: RunContext) -> StepResult:
        token = ctx.lock_token
        if token is None or token.released:
            return self.skipped("Lock was not held, nothing to release")

        try:
            token.provider.release(token)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Failed to release lock for cluster '{ctx.cluster_name}': {e}")
            return self.failed(f"Failed to release cluster lock: {e}", {"type": type(e).__name__})
        finally:
            ctx.lock_token = None

        return self.success(f"Lock released for cluster '{ctx.cluster_name}'")
