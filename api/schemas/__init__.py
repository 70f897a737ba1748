"""
API schemas package. Import from submodules or from this package.

Example:
    from api.schemas import ChatRequest
    from api.schemas.chat_schemas import ChatRequest
"""

from api.schemas.chat_schemas import (
    ChatMessageIn,
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    VehicleIn,
)
from api.schemas.metrics_schemas import MetricsResponse, PricingResponse, UsageBucket
from api.schemas.vin_schemas import VinDecodeRequest, VinDecodeResponse

__all__ = [
    "ChatMessageIn",
    "ChatRequest",
    "ChatResponse",
    "ErrorResponse",
    "MetricsResponse",
    "PricingResponse",
    "UsageBucket",
    "VehicleIn",
    "VinDecodeRequest",
    "VinDecodeResponse",
]
