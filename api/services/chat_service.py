"""
Chat service: turns a /chat request into one bounded, budgeted upstream call and a
client-facing reply.
"""

from __future__ import annotations

import logging
from typing import Optional

from api.schemas.chat_schemas import ChatRequest, ChatResponse
from api.utils.common import clamp_code_blocks, extract_vehicle_meta, to_core_messages
from api.utils.logger import log_request
from api.utils.usage_tracker import UsageTracker
from torque.core.assembler import ChatRequestAssembler
from torque.core.history import count_turns
from torque.core.messages import Tier

logger = logging.getLogger(__name__)

CHAT_ROUTE = "/chat"


class ChatService:
    """Per-request orchestration; the assembler and tracker are shared app-level collaborators."""

    def __init__(
        self,
        assembler: ChatRequestAssembler,
        *,
        usage: Optional[UsageTracker] = None,
        model_name: str = "",
    ):
        self.assembler = assembler
        self.usage = usage
        self.model_name = model_name

    async def chat(self, req: ChatRequest) -> ChatResponse:
        """
        Raises InvalidMessageError / ConfigurationError / BudgetExceededError before any
        upstream call, and UpstreamError if the model call fails.
        """
        tier = Tier.parse(req.tier)
        conversation = to_core_messages(req.messages)
        vehicle = req.vehicle.model_dump(exclude_none=True) if req.vehicle else None
        logger.info(
            "chat request tier=%s messages=%s user_turns=%s vehicle=%s",
            tier.value,
            len(conversation),
            count_turns(conversation),
            bool(vehicle),
        )

        with log_request(logger, "chat upstream") as timer:
            completion = await self.assembler.complete(conversation, tier, vehicle)

        if self.usage is not None:
            self.usage.record(
                route=CHAT_ROUTE,
                model=self.model_name,
                tier=tier.value,
                usage=completion.usage,
                duration_ms=timer.duration_ms,
                note=f"msgs={len(completion.messages)} est={completion.estimated_tokens}",
            )

        reply, vehicle_used = extract_vehicle_meta(clamp_code_blocks(completion.text))
        return ChatResponse(reply=reply, usage=completion.usage or None, vehicle_used=vehicle_used)
