"""Session steps: connect, OS detection and disconnect."""

from loguru import logger

from k0s_orchestrator.constants import STEP_CONNECT, STEP_DETECT_OS, STEP_DISCONNECT
from k0s_orchestrator.pipeline.base import HostFanOutStep
from k0s_orchestrator.pipeline.context import RunContext
from k0s_orchestrator.specification.models import HostSpec


class Connect(HostFanOutStep):
    """Open a session to every host of the run."""

    def __init__(self):
        super().__init__(STEP_CONNECT, "Open SSH sessions to all hosts")

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        ctx.backend.connect(host)
        ctx.facts_for(host).connected = True
        return f"connected as {host.connection.user}"


class DetectOS(HostFanOutStep):
    """Identify the operating system, honoring a declared override."""

    def __init__(self):
        super().__init__(STEP_DETECT_OS, "Detect host operating systems")

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        facts = ctx.facts_for(host)
        if host.os:
            facts.os = host.os
            return f"{host.os} (declared)"
        facts.os = ctx.backend.detect_os(host)
        return facts.os


class Disconnect(HostFanOutStep):
    """Close every open session.

    Runs after failures too. A host that cannot be disconnected is reported
    in the host results but never fails the run.
    """

    fail_fast = False
    idle_message = "No open sessions"

    def __init__(self):
        super().__init__(STEP_DISCONNECT, "Close SSH sessions", always_run=True)

    def select_hosts(self, ctx: RunContext) -> list[HostSpec]:
        return [host for host in ctx.hosts if ctx.facts_for(host).connected]

    def apply_to_host(self, ctx: RunContext, host: HostSpec) -> str:
        try:
            ctx.backend.disconnect(host)
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Could not disconnect from {host}: {e}")
            return f"disconnect failed: {e}"
        finally:
            ctx.facts_for(host).connected = False
        return "disconnected"
