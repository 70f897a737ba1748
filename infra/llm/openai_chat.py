"""
OpenAI-compatible chat-completions adapter.

Speaks the plain HTTP API ({model, messages, temperature, max_tokens} with bearer auth)
through httpx so any compatible endpoint works by changing base_url.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from torque.core.errors import UpstreamError, UpstreamErrorKind
from torque.core.llm import ChatModel, ModelReply
from torque.core.messages import Message

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 30.0
# Warn above this many tokens per call.
HIGH_USAGE_TOKENS = 4500


def _empty_usage() -> dict[str, int]:
    return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


class OpenAIChatModel(ChatModel):
    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Injectable for tests (httpx.MockTransport).
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def build_payload(self, messages: list[Message], *, temperature: float, max_tokens: int) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float,
        max_tokens: int,
        timeout: Optional[float] = None,
    ) -> ModelReply:
        payload = self.build_payload(messages, temperature=temperature, max_tokens=max_tokens)
        timeout_seconds = float(timeout if timeout is not None else self.timeout)
        url = f"{self.base_url}/chat/completions"

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            elapsed = time.time() - start_time
            logger.error("LLM call timed out after %.2fs (timeout: %ss) model=%s", elapsed, timeout_seconds, self.model)
            raise UpstreamError(
                f"Upstream model timed out after {timeout_seconds}s",
                kind=UpstreamErrorKind.TIMEOUT,
            ) from e
        except httpx.HTTPError as e:
            elapsed = time.time() - start_time
            logger.error("LLM call failed after %.2fs model=%s: %s", elapsed, self.model, e)
            raise UpstreamError(f"Upstream model unreachable: {e}", kind=UpstreamErrorKind.NETWORK) from e

        elapsed_ms = int((time.time() - start_time) * 1000)
        if response.status_code == 429:
            logger.warning("LLM rate limited model=%s duration_ms=%s", self.model, elapsed_ms)
            raise UpstreamError(
                "Upstream model rate limited the request",
                kind=UpstreamErrorKind.RATE_LIMITED,
                status_code=429,
            )
        if not response.is_success:
            logger.error(
                "LLM error status=%s model=%s duration_ms=%s body=%s",
                response.status_code,
                self.model,
                elapsed_ms,
                response.text[:500],
            )
            raise UpstreamError(
                f"Upstream model returned HTTP {response.status_code}",
                kind=UpstreamErrorKind.BAD_STATUS,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("LLM response unparsable model=%s: %s", self.model, e)
            raise UpstreamError(
                "Upstream model returned an unexpected response",
                kind=UpstreamErrorKind.BAD_RESPONSE,
                status_code=response.status_code,
            ) from e
        if not isinstance(text, str):
            raise UpstreamError(
                "Upstream model returned no text",
                kind=UpstreamErrorKind.BAD_RESPONSE,
                status_code=response.status_code,
            )

        usage = data.get("usage") or _empty_usage()
        logger.info(
            "LLM call completed model=%s duration_ms=%s in=%s out=%s total=%s",
            self.model,
            elapsed_ms,
            usage.get("prompt_tokens", 0),
            usage.get("completion_tokens", 0),
            usage.get("total_tokens", 0),
        )
        if int(usage.get("total_tokens", 0) or 0) > HIGH_USAGE_TOKENS:
            logger.warning("High token usage model=%s total=%s", self.model, usage.get("total_tokens"))
        return ModelReply(text=text, usage=usage)
