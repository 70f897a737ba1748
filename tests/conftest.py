"""
Pytest configuration and shared fixtures for the test suite.
Ensures proper Python path and provides common fixtures for unit and integration tests.
"""
import os
import sys
from pathlib import Path
from typing import Optional

import pytest

# Add project root and src to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Keep test runs from writing logs into the working tree or talking to a real endpoint.
os.environ.setdefault("LOG_DIR", str(Path(os.environ.get("TMPDIR", "/tmp")) / "torque-test-logs"))
os.environ.setdefault("LOG_TO_CONSOLE", "false")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

from torque.core.llm import ChatModel, ModelReply  # noqa: E402
from torque.core.messages import Message, assistant_message, user_message  # noqa: E402


class FakeChatModel(ChatModel):
    """Records every call; returns a canned reply or raises a canned error."""

    def __init__(self, reply: str = "Use 5W-30, about 4.9 quarts.", usage: Optional[dict] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.usage = usage if usage is not None else {"prompt_tokens": 120, "completion_tokens": 30, "total_tokens": 150}
        self.error = error
        self.calls: list[dict] = []

    async def complete(self, messages, *, temperature, max_tokens, timeout=None):
        self.calls.append(
            {"messages": list(messages), "temperature": temperature, "max_tokens": max_tokens, "timeout": timeout}
        )
        if self.error is not None:
            raise self.error
        return ModelReply(text=self.reply, usage=dict(self.usage))


@pytest.fixture
def fake_llm() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def g35_question() -> list[Message]:
    return [user_message("What oil does a 2004 G35 take?")]


def alternating(n: int) -> list[Message]:
    """n messages alternating user/assistant, numbered from 0."""
    return [
        user_message(f"question {i}") if i % 2 == 0 else assistant_message(f"answer {i}")
        for i in range(n)
    ]


@pytest.fixture
def make_alternating():
    return alternating


@pytest.fixture
def twenty_messages() -> list[Message]:
    return alternating(20)
