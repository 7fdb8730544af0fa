"""One-class-per-file domain models; import from ``base.models``."""

from .cost_estimate import CostEstimate
from .generation_request import GenerationRequest
from .generation_response import GenerationResponse, GenerationResult, TokenUsage
from .generation_type import GenerationType
from .health_check_response import HealthCheckResponse

__all__ = [
    "CostEstimate",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationResult",
    "GenerationType",
    "HealthCheckResponse",
    "TokenUsage",
]
