"""
Chat request assembly: persona injection, history window, budget gate and the single
upstream dispatch.

Per request:
    InjectPrompt -> Trim -> Gate -> Dispatch
The first three steps are pure. Dispatch is the only step that suspends and the only
one that can fail with UpstreamError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from torque.core.budget import DEFAULT_CEILINGS, check_budget
from torque.core.errors import ConfigurationError, UpstreamError, UpstreamErrorKind
from torque.core.history import split_system, trim_history
from torque.core.llm import ChatModel
from torque.core.messages import Message, Tier, system_message
from torque.core.prompt_builder import build_persona_text, build_vehicle_context

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 6
DEFAULT_MAX_REPLY_TOKENS = 400
DEFAULT_TEMPERATURES: dict[Tier, float] = {
    Tier.FREE: 0.5,
    Tier.PRO: 0.3,
}


@dataclass
class ChatCompletion:
    text: str
    usage: dict[str, Any]
    messages: list[Message]
    estimated_tokens: int
    tier: Tier


def expected_persona(tier: Tier | str, vehicle: Optional[Mapping[str, Any]] = None) -> Message:
    """The single system message a request for this tier (and vehicle) should carry."""
    text = build_persona_text(tier)
    if vehicle:
        text = f"{text}\n\n{build_vehicle_context(vehicle)}"
    return system_message(text)


def inject_persona(
    conversation: Iterable[Any],
    tier: Tier | str,
    vehicle: Optional[Mapping[str, Any]] = None,
) -> list[Message]:
    """
    Make sure the conversation starts with exactly one persona message for `tier`.

    Detection is by role only: the first system message is the persona slot, whatever
    it says. When it already matches the expected persona it is reused; a stale one
    (other tier, other vehicle, foreign text) is regenerated for the current request.
    Later system messages are dropped.
    """
    existing, rest = split_system(conversation)
    persona = expected_persona(tier, vehicle)
    if existing is not None and existing.content == persona.content:
        return [existing, *rest]
    if existing is not None:
        logger.debug("replacing stale system message for tier=%s", Tier.parse(tier).value)
    return [persona, *rest]


class ChatRequestAssembler:
    """
    Builds the bounded, budgeted message list for one chat request and dispatches it.

    All configuration is passed in; the instance holds no per-request state and is safe
    to share across concurrent requests.
    """

    def __init__(
        self,
        llm: Optional[ChatModel] = None,
        *,
        ceilings: Optional[Mapping[Any, int]] = None,
        max_turns: int = DEFAULT_MAX_TURNS,
        temperatures: Optional[Mapping[Any, float]] = None,
        max_reply_tokens: int = DEFAULT_MAX_REPLY_TOKENS,
        timeout: Optional[float] = None,
    ):
        if max_turns < 0:
            raise ConfigurationError(f"max_turns must be >= 0, got {max_turns}")
        self.llm = llm
        self.ceilings = dict(ceilings if ceilings is not None else DEFAULT_CEILINGS)
        self.max_turns = max_turns
        self.temperatures = dict(temperatures if temperatures is not None else DEFAULT_TEMPERATURES)
        self.max_reply_tokens = max_reply_tokens
        self.timeout = timeout

    def temperature_for(self, tier: Tier | str) -> float:
        resolved = Tier.parse(tier)
        for key in (resolved, resolved.value):
            if key in self.temperatures:
                return float(self.temperatures[key])
        raise ConfigurationError(f"No temperature configured for tier {resolved.value!r}")

    def assemble(
        self,
        conversation: Iterable[Any],
        tier: Tier | str,
        vehicle: Optional[Mapping[str, Any]] = None,
    ) -> list[Message]:
        """Inject, trim and gate. Raises BudgetExceededError without touching the network."""
        return self._assemble(conversation, tier, vehicle)[0]

    def _assemble(
        self,
        conversation: Iterable[Any],
        tier: Tier | str,
        vehicle: Optional[Mapping[str, Any]],
    ) -> tuple[list[Message], int]:
        resolved = Tier.parse(tier)
        injected = inject_persona(conversation, resolved, vehicle)
        trimmed = trim_history(injected, self.max_turns)
        estimated = check_budget(trimmed, resolved, self.ceilings)
        logger.debug(
            "assembled tier=%s in=%s out=%s estimated_tokens=%s",
            resolved.value,
            len(injected),
            len(trimmed),
            estimated,
        )
        return trimmed, estimated

    async def complete(
        self,
        conversation: Iterable[Any],
        tier: Tier | str,
        vehicle: Optional[Mapping[str, Any]] = None,
    ) -> ChatCompletion:
        """Assemble, then make exactly one upstream call. No retries."""
        if self.llm is None:
            raise ConfigurationError("No upstream chat model configured")
        resolved = Tier.parse(tier)
        messages, estimated = self._assemble(conversation, resolved, vehicle)
        temperature = self.temperature_for(resolved)
        try:
            reply = await self.llm.complete(
                messages,
                temperature=temperature,
                max_tokens=self.max_reply_tokens,
                timeout=self.timeout,
            )
        except UpstreamError:
            raise
        except Exception as e:
            logger.exception("upstream call failed tier=%s", resolved.value)
            raise UpstreamError(f"Upstream model call failed: {e}", kind=UpstreamErrorKind.NETWORK) from e
        return ChatCompletion(
            text=reply.text,
            usage=dict(reply.usage or {}),
            messages=messages,
            estimated_tokens=estimated,
            tier=resolved,
        )
