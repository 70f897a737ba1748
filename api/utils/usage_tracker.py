"""
Upstream usage accounting for the /metrics endpoint.

One tracker per app instance (app.state.usage); it is reporting only and never feeds
back into admission control.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

RECENT_LIMIT = 50


def _empty_bucket() -> dict[str, float]:
    return {"count": 0, "prompt": 0, "completion": 0, "total": 0, "cost": 0.0}


def cached_prompt_tokens(usage: Mapping[str, Any]) -> int:
    details = usage.get("prompt_tokens_details") or {}
    for value in (details.get("cached_tokens"), details.get("cached"), usage.get("cached_tokens")):
        if value:
            return int(value)
    return 0


class UsageTracker:
    def __init__(self, pricing: Mapping[str, Mapping[str, float]], *, free_mode: bool = False):
        self.pricing = {k: dict(v) for k, v in pricing.items()}
        self.free_mode = free_mode
        self._lock = threading.Lock()
        self._totals: dict[str, dict[str, float]] = {}
        self._by_route: dict[str, dict[str, float]] = {}
        self._by_tier: dict[str, dict[str, float]] = {}
        self._recent: deque[dict[str, Any]] = deque(maxlen=RECENT_LIMIT)

    def price_for(self, model: str) -> dict[str, float]:
        return self.pricing.get(model) or {"in": 0.0, "cached_in": 0.0, "out": 0.0}

    def cost_for(self, model: str, usage: Optional[Mapping[str, Any]]) -> float:
        """Estimated USD cost; cached prompt tokens are billed at the cached rate."""
        usage = usage or {}
        price = self.price_for(model)
        prompt = int(usage.get("prompt_tokens") or 0)
        completion = int(usage.get("completion_tokens") or 0)
        cached = cached_prompt_tokens(usage)
        non_cached = max(0, prompt - cached)
        return (
            non_cached * price.get("in", 0.0)
            + cached * price.get("cached_in", 0.0)
            + completion * price.get("out", 0.0)
        ) / 1_000_000

    def record(
        self,
        *,
        route: str,
        model: str,
        tier: str,
        usage: Optional[Mapping[str, Any]],
        duration_ms: int,
        note: str = "",
    ) -> float:
        usage = usage or {}
        cost = self.cost_for(model, usage)
        prompt = int(usage.get("prompt_tokens") or 0)
        completion = int(usage.get("completion_tokens") or 0)
        total = int(usage.get("total_tokens") or 0)
        with self._lock:
            for table, key in ((self._totals, model), (self._by_route, route), (self._by_tier, tier)):
                bucket = table.setdefault(key, _empty_bucket())
                bucket["count"] += 1
                bucket["prompt"] += prompt
                bucket["completion"] += completion
                bucket["total"] += total
                bucket["cost"] += cost
            self._recent.append(
                {
                    "ts": datetime.now(timezone.utc).isoformat(),
                    "route": route,
                    "tier": tier,
                    "model": model,
                    "usage": dict(usage),
                    "cost": cost,
                    "ms": duration_ms,
                    "note": note,
                }
            )
        cost_str = "free-quota" if self.free_mode else f"${cost:.6f} (est)"
        logger.info(
            "usage route=%s model=%s tier=%s ms=%s in=%s out=%s total=%s cost=%s",
            route, model, tier, duration_ms, prompt, completion, total, cost_str,
        )
        return cost

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "totals": {k: dict(v) for k, v in self._totals.items()},
                "by_route": {k: dict(v) for k, v in self._by_route.items()},
                "by_tier": {k: dict(v) for k, v in self._by_tier.items()},
                "recent": list(self._recent),
            }
