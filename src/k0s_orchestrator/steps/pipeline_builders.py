"""Per-verb pipeline builders.

Each builder returns the fixed, ordered step list of one lifecycle verb with
the caller's options threaded into the steps that honor them. Building a
pipeline touches no host, so the result can be described as a plan.
"""

from k0s_orchestrator.locking.base import LockProvider
from k0s_orchestrator.pipeline import HostScope, LifecycleVerb, Pipeline, PipelineBuilder
from k0s_orchestrator.specification.options import PipelineOptions

from .binaries import (
    DownloadBinaries,
    DownloadBinariesOnHosts,
    InstallBinaries,
    PrepareArm,
    UploadBinaries,
    UploadFiles,
)
from .connection import Connect, DetectOS, Disconnect
from .facts import (
    GatherFacts,
    GatherRuntimeFacts,
    PrepareHosts,
    ResolveDefaults,
    ValidateFacts,
    ValidateHosts,
    ValidateQuorum,
)
from .install import (
    ConfigureRuntime,
    FetchCredentials,
    InitializeLeader,
    InstallControllers,
    InstallWorkers,
    UpgradeControllers,
    UpgradeWorkers,
)
from .locking import AcquireLock, ReleaseLock
from .reset import ResetControllers, ResetLeader, ResetWorkers


def build_apply_pipeline(verb: LifecycleVerb, options: PipelineOptions, lock_provider: LockProvider) -> Pipeline:
    """Build the create/update pipeline.

    Create and update share one step list: every step converges the hosts
    towards the declared state and skips hosts that are already there.

    Args:
        verb: LifecycleVerb.CREATE or LifecycleVerb.UPDATE
        options: Caller options
        lock_provider: Provider for the cluster-name lock

    Returns:
        The built pipeline
    """
    if verb not in (LifecycleVerb.CREATE, LifecycleVerb.UPDATE):
        raise ValueError(f"Apply pipeline cannot be built for verb '{verb}'")

    return (
        PipelineBuilder(verb)
        .step(ResolveDefaults())
        .step(Connect())
        .step(DetectOS())
        .step(AcquireLock(lock_provider))
        .step(PrepareHosts())
        .step(GatherFacts())
        .step(ValidateHosts())
        .step(GatherRuntimeFacts())
        .step(ValidateFacts(skip_downgrade_check=options.skip_downgrade_check))
        .step(ValidateQuorum())
        .step(DownloadBinaries())
        .step(UploadBinaries())
        .step(DownloadBinariesOnHosts())
        .step(UploadFiles())
        .step(InstallBinaries())
        .step(PrepareArm())
        .step(ConfigureRuntime())
        .step(InitializeLeader())
        .step(InstallControllers())
        .step(InstallWorkers(no_wait=options.no_wait))
        .step(UpgradeControllers())
        .step(UpgradeWorkers(no_drain=options.no_drain))
        .step(FetchCredentials())
        .step(ReleaseLock())
        .step(Disconnect())
        .build()
    )


def build_read_pipeline(options: PipelineOptions) -> Pipeline:
    """Build the read pipeline.

    Reads only touch the leader and take no lock, so they can run while a
    mutating run holds it.
    """
    return (
        PipelineBuilder(LifecycleVerb.READ, host_scope=HostScope.LEADER)
        .step(Connect())
        .step(DetectOS())
        .step(GatherRuntimeFacts())
        .step(FetchCredentials())
        .step(Disconnect())
        .build()
    )


def build_delete_pipeline(options: PipelineOptions, lock_provider: LockProvider) -> Pipeline:
    """Build the delete pipeline.

    Nodes are left registered in the API (``no_delete``) since the whole
    cluster goes away, and controllers do not leave etcd one by one.
    """
    return (
        PipelineBuilder(LifecycleVerb.DELETE)
        .step(Connect())
        .step(DetectOS())
        .step(AcquireLock(lock_provider))
        .step(PrepareHosts())
        .step(GatherRuntimeFacts())
        .step(ResetWorkers(no_drain=options.no_drain, no_delete=True))
        .step(ResetControllers(no_drain=options.no_drain, no_delete=True, no_leave=True))
        .step(ResetLeader())
        .step(ReleaseLock())
        .step(Disconnect())
        .build()
    )


def build_pipeline(verb: LifecycleVerb, options: PipelineOptions, lock_provider: LockProvider | None = None) -> Pipeline:
    """Build the pipeline for any lifecycle verb.

    Raises:
        ValueError: If a mutating verb is requested without a lock provider
    """
    verb = LifecycleVerb(verb)
    if verb.is_mutating and lock_provider is None:
        raise ValueError(f"Verb '{verb}' mutates hosts and needs a lock provider")

    if verb == LifecycleVerb.READ:
        return build_read_pipeline(options)
    if verb == LifecycleVerb.DELETE:
        return build_delete_pipeline(options, lock_provider)
    return build_apply_pipeline(verb, options, lock_provider)
