"""Caller options that modulate step behavior without changing step order."""

from pydantic import BaseModel, Field


class PipelineOptions(BaseModel):
    """Options threaded explicitly into every step that honors them."""

    model_config = {"frozen": True}

    concurrency: int = Field(default=0, ge=0, description="Max hosts processed at once by a fan-out step (0 = unbounded)")
    no_wait: bool = Field(default=False, description="Do not block until joined workers are ready")
    no_drain: bool = Field(default=False, description="Skip cordon and drain when upgrading or resetting workers")
    skip_downgrade_check: bool = Field(default=False, description="Allow a target version older than the running one")
