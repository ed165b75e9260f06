"""API models for the orchestrator."""

from typing import Any

from pydantic import BaseModel, Field

from k0s_orchestrator.pipeline.models import PipelineResult


class ClusterResult(BaseModel):
    """Outcome of a successful lifecycle verb."""

    id: str = Field(description="Cluster identifier, equal to the cluster name")
    name: str
    kubeconfig: str | None = Field(default=None, description="Admin kubeconfig fetched from the leader")
    pipeline: PipelineResult


class ClusterSummary(BaseModel):
    """Stored cluster record without the credential."""

    name: str
    version: str | None = None
    hosts: int = 0
    created_at: str | None = None
    updated_at: str | None = None


class StepPlan(BaseModel):
    """One entry of a pipeline plan."""

    name: str
    description: str
    finalizer: bool
    flags: dict[str, Any] = Field(default_factory=dict)


class PipelinePlan(BaseModel):
    """Ordered steps a verb would execute; nothing is run."""

    verb: str
    cluster_name: str
    host_scope: str
    hosts: list[str]
    steps: list[StepPlan]


class ErrorResponse(BaseModel):
    """Error body returned by the exception handlers."""

    detail: str
    step: str | None = None
    errors: list[str] | None = None
