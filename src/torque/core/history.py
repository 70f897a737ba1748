"""
Conversation window: decide which prior turns are forwarded upstream.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from torque.core.messages import Message, Role, ensure_message


def split_system(conversation: Iterable[Any]) -> tuple[Optional[Message], list[Message]]:
    """
    Return (first system message or None, user/assistant messages in order).
    Extra system messages are dropped; the first one is the persona slot.
    """
    prompt: Optional[Message] = None
    rest: list[Message] = []
    for item in conversation:
        msg = ensure_message(item)
        if msg.role is Role.SYSTEM:
            if prompt is None:
                prompt = msg
            continue
        rest.append(msg)
    return prompt, rest


def trim_history(conversation: Iterable[Any], max_turns: int) -> list[Message]:
    """
    Keep the first system message plus the last 2 * max_turns user/assistant messages.

    A turn is one user message and its reply, but the cut is by count only: it does not
    check strict alternation. Result length is at most 2 * max_turns + 1 and keeps the
    original order.
    """
    if max_turns < 0:
        raise ValueError(f"max_turns must be >= 0, got {max_turns}")
    prompt, rest = split_system(conversation)
    keep = 2 * max_turns
    tail = rest[-keep:] if keep else []
    return [prompt, *tail] if prompt is not None else tail


def count_turns(conversation: Iterable[Any]) -> int:
    """Number of user messages in the conversation."""
    return sum(1 for item in conversation if ensure_message(item).role is Role.USER)
