from .api_model import ClusterResult, ClusterSummary, ErrorResponse, PipelinePlan, StepPlan
from .db_model import ClusterRecord

__all__ = [
    "ClusterRecord",
    "ClusterResult",
    "ClusterSummary",
    "ErrorResponse",
    "PipelinePlan",
    "StepPlan",
]
