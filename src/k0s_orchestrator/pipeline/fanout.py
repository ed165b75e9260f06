"""Bounded parallel execution of one operation across hosts.

Steps are the only points where a pipeline run waits: a fan-out submits one
task per host to a thread pool sized by the caller's concurrency bound and
collects the outcomes. With ``fail_fast`` the first host failure stops hosts
that have not started yet; hosts already in flight are allowed to finish.
"""

import contextvars
import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from loguru import logger

from k0s_orchestrator.specification.models import HostSpec

_NOT_STARTED = object()


@dataclass
class FanOutReport:
    """Per-host outcomes of a fan-out."""

    outcomes: dict[str, str] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    not_started: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def worker_count(concurrency: int, host_count: int) -> int:
    """Thread pool size for a fan-out; a concurrency of 0 means one worker per host."""
    if concurrency <= 0:
        return max(host_count, 1)
    return max(min(concurrency, host_count), 1)


def run_on_hosts(
    hosts: list[HostSpec],
    operation: Callable[[HostSpec], str],
    concurrency: int = 0,
    fail_fast: bool = True,
    cancelled: threading.Event | None = None,
    name: str = "fanout",
) -> FanOutReport:
    """Run ``operation`` for every host with at most ``concurrency`` at once.

    Args:
        hosts: Hosts to process
        operation: Callable returning a short outcome message for one host
        concurrency: Maximum simultaneous hosts (0 = unbounded)
        fail_fast: Stop starting new hosts after the first failure
        cancelled: Run-wide cancellation flag checked before each host starts
        name: Used for worker thread names and log lines

    Returns:
        FanOutReport with outcomes, errors and hosts that never started
    """
    report = FanOutReport()
    if not hosts:
        return report

    stop = threading.Event()

    def _guarded(host: HostSpec) -> object:
        if stop.is_set() or (cancelled is not None and cancelled.is_set()):
            return _NOT_STARTED
        try:
            return operation(host)
        except Exception:  # noqa: BLE001
            # Set from the worker so the next queued host already sees it
            if fail_fast:
                stop.set()
            raise

    with ThreadPoolExecutor(max_workers=worker_count(concurrency, len(hosts)), thread_name_prefix=name) as pool:
        # Each task runs in a copy of the caller context so log records keep the run binding
        futures = {pool.submit(contextvars.copy_context().run, _guarded, host): host for host in hosts}
        for future in as_completed(futures):
            host = futures[future]
            try:
                outcome = future.result()
            except CancelledError:
                report.not_started.append(host.label)
                continue
            except Exception as e:  # noqa: BLE001
                logger.warning(f"{name}: {host} failed: {e}")
                report.errors[host.label] = str(e)
                if fail_fast:
                    for pending in futures:
                        pending.cancel()
                continue

            if outcome is _NOT_STARTED:
                report.not_started.append(host.label)
            else:
                report.outcomes[host.label] = str(outcome)

    return report
