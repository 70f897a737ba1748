"""
Common helpers for the chat route: inbound message cleanup and reply post-processing.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Optional

from torque.core.messages import Message
from torque.core.token_utils import flatten_content

META_LINE_RE = re.compile(r"\[\[META:\s*(\{[\s\S]*?\})\s*\]\]\s*$")
META_STRIP_RE = re.compile(r"\n?\s*\[\[META:[\s\S]*\]\]\s*$")
MAX_CODE_BLOCK_CHARS = 20000


def to_core_messages(items: Iterable[Any]) -> list[Message]:
    """Request messages (role + raw content) -> core Messages with flattened text content."""
    out: list[Message] = []
    for item in items:
        role = getattr(item, "role", None)
        content = getattr(item, "content", None)
        if isinstance(item, dict):
            role = item.get("role")
            content = item.get("content")
        out.append(Message.from_dict({"role": role, "content": None if content is None else flatten_content(content)}))
    return out


def extract_vehicle_meta(reply: str) -> tuple[str, Optional[Any]]:
    """
    Split a trailing [[META: {"vehicle_used": ...}]] line off the reply.
    Returns (clean reply, vehicle_used or None). Unparsable metadata is dropped.
    """
    if not reply:
        return reply, None
    match = META_LINE_RE.search(reply)
    if not match:
        return reply, None
    vehicle_used = None
    try:
        meta = json.loads(match.group(1))
    except json.JSONDecodeError:
        meta = None
    if isinstance(meta, dict):
        vehicle_used = meta.get("vehicle_used") or None
    return META_STRIP_RE.sub("", reply).strip(), vehicle_used


def clamp_code_blocks(reply: str, max_block: int = MAX_CODE_BLOCK_CHARS) -> str:
    """Cap the size of ```svg and ```diagram-json blocks; svg comments are removed."""
    if not reply:
        return reply

    def _clamp(tag: str):
        def repl(match: re.Match) -> str:
            inner = match.group(1) or ""
            if tag == "svg":
                inner = re.sub(r"<!--[\s\S]*?-->", "", inner)
                inner = re.sub(r"\s{2,}", " ", inner).strip()
            return f"```{tag}\n{inner[:max_block]}\n```"
        return repl

    for tag in ("svg", "diagram-json"):
        reply = re.sub(r"```" + re.escape(tag) + r"\s*([\s\S]*?)```", _clamp(tag), reply)
    return reply
