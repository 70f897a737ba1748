"""
VIN service: validates (and auto-fixes) a typed VIN, then asks the model to decode it.
"""

from __future__ import annotations

import logging
from typing import Optional

from api.schemas.vin_schemas import VinDecodeRequest, VinDecodeResponse
from api.utils.logger import log_request
from api.utils.usage_tracker import UsageTracker
from torque.core.errors import UpstreamError, UpstreamErrorKind
from torque.core.llm import ChatModel
from torque.core.vin import (
    DECODE_MAX_TOKENS,
    DECODE_TEMPERATURE,
    build_decode_messages,
    fold_vehicle_specs,
    parse_decoded_vehicle,
    resolve_vin,
)

logger = logging.getLogger(__name__)

VIN_ROUTE = "/decode-vin-text"


class VinService:
    def __init__(
        self,
        llm: ChatModel,
        *,
        usage: Optional[UsageTracker] = None,
        model_name: str = "",
        timeout: Optional[float] = None,
    ):
        self.llm = llm
        self.usage = usage
        self.model_name = model_name
        self.timeout = timeout

    async def decode(self, req: VinDecodeRequest) -> VinDecodeResponse:
        """Raises InvalidVinError before any upstream call, UpstreamError if the decode fails."""
        fix = resolve_vin(req.vin)
        messages = build_decode_messages(fix.vin)

        with log_request(logger, "vin decode upstream") as timer:
            try:
                reply = await self.llm.complete(
                    messages,
                    temperature=DECODE_TEMPERATURE,
                    max_tokens=DECODE_MAX_TOKENS,
                    timeout=self.timeout,
                )
            except UpstreamError:
                raise
            except Exception as e:
                logger.exception("VIN decode call failed vin=%s", fix.vin)
                raise UpstreamError(f"Upstream model call failed: {e}", kind=UpstreamErrorKind.NETWORK) from e

        if self.usage is not None:
            self.usage.record(
                route=VIN_ROUTE,
                model=self.model_name,
                tier="token",
                usage=reply.usage,
                duration_ms=timer.duration_ms,
                note=f"VIN {fix.vin}",
            )

        try:
            parsed = parse_decoded_vehicle(reply.text)
        except ValueError as e:
            logger.error("VIN decode reply unparsable vin=%s: %s", fix.vin, e)
            raise UpstreamError(
                "Upstream model returned an unparsable VIN decode",
                kind=UpstreamErrorKind.BAD_RESPONSE,
            ) from e

        vehicle = fold_vehicle_specs(parsed)
        vehicle["vin"] = fix.vin
        return VinDecodeResponse(vehicle=vehicle, usage=reply.usage or None)
