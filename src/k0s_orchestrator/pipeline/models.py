"""Data models for the lifecycle pipeline.

This module contains Pydantic models used throughout the pipeline to avoid
circular dependencies between components.
"""

from typing import Any

import arrow
from pydantic import BaseModel, Field

from .enums import LifecycleVerb, StepStatus


class StepResult(BaseModel):
    """Result of an individual step."""

    model_config = {"use_enum_values": True}

    step_name: str
    status: StepStatus
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    host_results: dict[str, str] = Field(default_factory=dict)  # host label -> outcome
    executed_at: str | None = None  # ISO 8601 UTC timestamp
    execution_time_ms: float | None = None
    finalizer: bool = False


class PipelineResult(BaseModel):
    """Complete result of a lifecycle pipeline run."""

    model_config = {"use_enum_values": True}

    verb: LifecycleVerb
    cluster_name: str
    run_id: str
    overall_status: StepStatus
    message: str
    failed_step: str | None = None
    step_results: list[StepResult] = Field(default_factory=list)
    kubeconfig: str | None = Field(default=None, repr=False)
    executed_at: str = Field(default_factory=lambda: arrow.utcnow().isoformat())
    total_execution_time_ms: float | None = None
    total_steps: int = 0
    successful_steps: int = 0
    failed_steps: int = 0
    skipped_steps: int = 0

    @property
    def succeeded(self) -> bool:
        return self.overall_status == StepStatus.SUCCESS

    def get_step_result(self, step_name: str) -> StepResult | None:
        return next((result for result in self.step_results if result.step_name == step_name), None)
