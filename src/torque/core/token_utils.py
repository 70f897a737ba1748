"""
Token budget utilities for upstream chat requests.
No app (api) dependencies.

estimate_tokens is a heuristic, not a tokenizer: ~4 characters per token over the
"role:content" rendering of each message. A real tokenizer can replace it as long as
it keeps the signature and returns an int.
"""

from __future__ import annotations

from typing import Any, Iterable

from torque.core.messages import ensure_message

CHARS_PER_TOKEN = 4

# Inbound content limits applied before estimation.
MAX_CONTENT_CHARS = 8000
ATTACHMENT_PLACEHOLDER = "[attachment omitted]"
TRUNCATION_SUFFIX = "…[truncated]"


def render_messages(messages: Iterable[Any]) -> str:
    return "\n".join(f"{m.role.value}:{m.content}" for m in map(ensure_message, messages))


def estimate_tokens(messages: Iterable[Any]) -> int:
    """
    Estimate the upstream token cost of a message list.
    round() is Python's half-to-even; the result is deterministic and never decreases
    as content grows.
    """
    return round(len(render_messages(messages)) / CHARS_PER_TOKEN)


def flatten_content(content: Any, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """
    Reduce inbound message content to plain text the core can budget.
    Structured parts (images, attachments) become a placeholder; long strings are cut.
    """
    if isinstance(content, (list, dict)):
        return ATTACHMENT_PLACEHOLDER
    text = "" if content is None else str(content)
    if len(text) > max_chars:
        return text[:max_chars] + TRUNCATION_SUFFIX
    return text
