"""Per-cluster mutual exclusion for mutating pipeline runs."""

from .base import LockProvider, LockToken
from .memory import InProcessLockProvider

__all__ = ["InProcessLockProvider", "LockProvider", "LockToken"]
