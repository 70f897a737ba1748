from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Union

from torque.core.errors import ConfigurationError, InvalidMessageError


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Tier(str, Enum):
    FREE = "free"
    PRO = "pro"

    @classmethod
    def parse(cls, value: Union["Tier", str, None]) -> "Tier":
        """Resolve a tier from its name. Unknown values are a configuration error, never a silent free."""
        if isinstance(value, Tier):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(f"Unknown tier: {value!r} (expected one of: free, pro)")


@dataclass(frozen=True)
class Message:
    """One turn of conversation. Order of a list of these is chronology."""

    role: Role
    content: str

    def __post_init__(self):
        if not isinstance(self.role, Role):
            try:
                object.__setattr__(self, "role", Role(self.role))
            except ValueError:
                raise InvalidMessageError(f"Unknown message role: {self.role!r}") from None
        if not isinstance(self.content, str):
            raise InvalidMessageError("Message content must be a string")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        if not isinstance(data, Mapping):
            raise InvalidMessageError(f"Message must be an object, got {type(data).__name__}")
        role = data.get("role")
        if role is None:
            raise InvalidMessageError("Message is missing 'role'")
        if data.get("content") is None:
            raise InvalidMessageError("Message is missing 'content'")
        return cls(role=role, content=_content_text(data["content"]))

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @property
    def is_system(self) -> bool:
        return self.role is Role.SYSTEM


def system_message(content: str) -> Message:
    return Message(role=Role.SYSTEM, content=content)


def user_message(content: str) -> Message:
    return Message(role=Role.USER, content=content)


def assistant_message(content: str) -> Message:
    return Message(role=Role.ASSISTANT, content=content)


def ensure_message(item: Any) -> Message:
    """Accept a Message or a {role, content} mapping; anything else is a caller contract violation."""
    if isinstance(item, Message):
        return item
    return Message.from_dict(item)


def _content_text(content: Any) -> str:
    """Strings pass through; structured content (lists of parts, objects, numbers) becomes compact JSON."""
    if isinstance(content, str):
        return content
    try:
        return json.dumps(content, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        raise InvalidMessageError(f"Message content is not JSON-serializable: {type(content).__name__}") from None
