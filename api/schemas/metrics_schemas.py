"""
Usage and pricing report schemas.
"""

from typing import Any

from pydantic import BaseModel


class UsageBucket(BaseModel):
    count: int
    prompt: int
    completion: int
    total: int
    cost: float


class PricingResponse(BaseModel):
    per_1m_tokens: dict[str, dict[str, float]]
    free_mode: bool
    models: dict[str, str]
    token_ceilings: dict[str, int]


class MetricsResponse(BaseModel):
    totals: dict[str, UsageBucket]
    by_route: dict[str, UsageBucket]
    by_tier: dict[str, UsageBucket]
    recent: list[dict[str, Any]]
    pricing_per_1m: dict[str, dict[str, float]]
    note: str
