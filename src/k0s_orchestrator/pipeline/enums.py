"""Enums for the lifecycle pipeline.

This module contains basic enums to avoid circular dependencies.
"""

from enum import StrEnum


class StepStatus(StrEnum):
    """Status of individual steps or a whole pipeline run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class LifecycleVerb(StrEnum):
    """Lifecycle operations a caller can request for a cluster."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"

    @property
    def is_mutating(self) -> bool:
        return self is not LifecycleVerb.READ


class HostScope(StrEnum):
    """Which declared hosts a pipeline run targets."""

    ALL = "all"
    LEADER = "leader"
