"""Concrete lifecycle steps and the per-verb pipeline builders."""

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
from .pipeline_builders import build_apply_pipeline, build_delete_pipeline, build_pipeline, build_read_pipeline
from .reset import ResetControllers, ResetLeader, ResetWorkers

__all__ = [
    # Session
    "Connect",
    "DetectOS",
    "Disconnect",
    # Locking
    "AcquireLock",
    "ReleaseLock",
    # Discovery and validation
    "GatherFacts",
    "GatherRuntimeFacts",
    "PrepareHosts",
    "ResolveDefaults",
    "ValidateFacts",
    "ValidateHosts",
    "ValidateQuorum",
    # Binaries
    "DownloadBinaries",
    "DownloadBinariesOnHosts",
    "InstallBinaries",
    "PrepareArm",
    "UploadBinaries",
    "UploadFiles",
    # Install and upgrade
    "ConfigureRuntime",
    "FetchCredentials",
    "InitializeLeader",
    "InstallControllers",
    "InstallWorkers",
    "UpgradeControllers",
    "UpgradeWorkers",
    # Reset
    "ResetControllers",
    "ResetLeader",
    "ResetWorkers",
    # Builders
    "build_apply_pipeline",
    "build_delete_pipeline",
    "build_pipeline",
    "build_read_pipeline",
]
