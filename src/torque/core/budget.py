"""
Admission control: reject a request before any upstream call when its estimated cost
is above the tier's ceiling.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from torque.core.errors import BudgetExceededError, ConfigurationError
from torque.core.messages import Tier
from torque.core.token_utils import estimate_tokens

logger = logging.getLogger(__name__)

DEFAULT_CEILINGS: dict[Tier, int] = {
    Tier.FREE: 1500,
    Tier.PRO: 6000,
}


def ceiling_for(tier: Tier | str, ceilings: Mapping[Any, int]) -> int:
    resolved = Tier.parse(tier)
    # Accept maps keyed by Tier or by plain tier name.
    for key in (resolved, resolved.value):
        if key in ceilings:
            return int(ceilings[key])
    raise ConfigurationError(f"No token ceiling configured for tier {resolved.value!r}")


def check_budget(messages: Iterable[Any], tier: Tier | str, ceilings: Mapping[Any, int]) -> int:
    """
    Return the estimated cost when it is within the ceiling (equal passes).
    Raises BudgetExceededError otherwise. Pure: no side effects on either path.
    """
    resolved = Tier.parse(tier)
    ceiling = ceiling_for(resolved, ceilings)
    estimated = estimate_tokens(messages)
    if estimated > ceiling:
        logger.info("budget rejected tier=%s estimated=%s ceiling=%s", resolved.value, estimated, ceiling)
        raise BudgetExceededError(estimated=estimated, ceiling=ceiling, tier=resolved.value)
    return estimated
