"""
Error taxonomy for the chat core.

Everything raised by the core derives from TorqueError so the HTTP layer can map
it in one place. Budget and upstream failures are separate types and must stay that way.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class TorqueError(Exception):
    """Base class for all chat core errors."""


class InvalidMessageError(TorqueError):
    """A conversation message is malformed (missing/unknown role or missing content)."""


class ConfigurationError(TorqueError):
    """Unknown tier or missing per-tier configuration."""


class BudgetExceededError(TorqueError):
    """Estimated request cost is above the tier's token ceiling."""

    def __init__(self, *, estimated: int, ceiling: int, tier: str):
        self.estimated = estimated
        self.ceiling = ceiling
        self.tier = tier
        super().__init__(
            f"Conversation is too long for the {tier} plan "
            f"(~{estimated} tokens, limit {ceiling}). "
            "Shorten your conversation or upgrade to Pro."
        )


class UpstreamErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    BAD_STATUS = "bad_status"
    BAD_RESPONSE = "bad_response"


class UpstreamError(TorqueError):
    """The language-model API failed, timed out or returned something unusable."""

    def __init__(
        self,
        message: str,
        *,
        kind: UpstreamErrorKind = UpstreamErrorKind.NETWORK,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        super().__init__(message)


class InvalidVinError(TorqueError):
    """A VIN is not 17 valid characters or fails its check digit, even after auto-fix."""
