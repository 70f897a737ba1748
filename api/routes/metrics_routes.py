"""
Read-only reports: configured pricing/models and accumulated upstream usage.
"""

from fastapi import APIRouter, Depends

from api.config import Settings, get_settings
from api.schemas.metrics_schemas import MetricsResponse, PricingResponse
from api.utils.deps import get_usage_tracker
from api.utils.usage_tracker import UsageTracker

metrics_routes = APIRouter()


@metrics_routes.get("/pricing", response_model=PricingResponse)
async def pricing(settings: Settings = Depends(get_settings)) -> PricingResponse:
    return PricingResponse(
        per_1m_tokens=settings.model_pricing(),
        free_mode=settings.openai_free_mode,
        models={"chat": settings.model_chat, "vin_text": settings.model_vin_text},
        token_ceilings={tier.value: ceiling for tier, ceiling in settings.ceilings().items()},
    )


@metrics_routes.get("/metrics", response_model=MetricsResponse)
async def metrics(
    settings: Settings = Depends(get_settings),
    usage: UsageTracker = Depends(get_usage_tracker),
) -> MetricsResponse:
    snap = usage.snapshot()
    return MetricsResponse(
        **snap,
        pricing_per_1m=settings.model_pricing(),
        note="Costs are estimates from configured pricing (cached prompt tokens billed at the cached rate).",
    )
