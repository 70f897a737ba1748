from torque.core.assembler import ChatCompletion, ChatRequestAssembler, inject_persona
from torque.core.budget import DEFAULT_CEILINGS, check_budget
from torque.core.errors import (
    BudgetExceededError,
    ConfigurationError,
    InvalidMessageError,
    InvalidVinError,
    TorqueError,
    UpstreamError,
    UpstreamErrorKind,
)
from torque.core.history import trim_history
from torque.core.llm import ChatModel, ModelReply
from torque.core.messages import Message, Role, Tier
from torque.core.prompt_builder import build_system_prompt
from torque.core.token_utils import estimate_tokens
from torque.core.vin import is_valid_vin, normalize_vin, resolve_vin, try_auto_fix_vin

__all__ = [
    "BudgetExceededError",
    "ChatCompletion",
    "ChatModel",
    "ChatRequestAssembler",
    "ConfigurationError",
    "DEFAULT_CEILINGS",
    "InvalidMessageError",
    "InvalidVinError",
    "Message",
    "ModelReply",
    "Role",
    "Tier",
    "TorqueError",
    "UpstreamError",
    "UpstreamErrorKind",
    "build_system_prompt",
    "check_budget",
    "estimate_tokens",
    "inject_persona",
    "is_valid_vin",
    "normalize_vin",
    "resolve_vin",
    "trim_history",
    "try_auto_fix_vin",
]
