from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from torque.core.messages import Message


@dataclass
class ModelReply:
    text: str
    usage: dict[str, Any] = field(default_factory=dict)


class ChatModel(ABC):
    """
    Defines the contract for the upstream chat-completion model.
    Implementations raise UpstreamError for transport, timeout and non-2xx failures.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        temperature: float,
        max_tokens: int,
        timeout: Optional[float] = None,
    ) -> ModelReply:
        raise NotImplementedError
