"""Lifecycle pipeline runtime.

This module provides the step-based pipeline that executes a lifecycle verb:
- Steps run strictly in order, each fanning out across hosts
- Fail-fast: the first failed step stops the run, nothing is rolled back
- Finalizer steps release the cluster lock and close sessions on every path
- Rich reporting with per-step and per-host results

The runtime is decoupled from the concrete steps, which live in the steps
package together with the per-verb pipeline builders.
"""

from .base import HostFanOutStep, Step
from .builder import PipelineBuilder
from .context import HostFacts, RunContext
from .enums import HostScope, LifecycleVerb, StepStatus
from .models import PipelineResult, StepResult
from .pipeline import Pipeline

__all__ = [
    # Core models
    "HostScope",
    "LifecycleVerb",
    "PipelineResult",
    "StepResult",
    "StepStatus",
    # Steps and context
    "HostFacts",
    "HostFanOutStep",
    "RunContext",
    "Step",
    # Pipeline components
    "Pipeline",
    "PipelineBuilder",
]
