"""
FastAPI dependencies for the chat and VIN routes.
Shared collaborators live on app.state; everything per-request is built here.
"""

from fastapi import Depends, Request

from api.config import Settings, get_settings
from api.services.chat_service import ChatService
from api.services.vin_service import VinService
from api.utils.usage_tracker import UsageTracker
from torque.core.assembler import ChatRequestAssembler
from torque.core.llm import ChatModel


def get_chat_model(request: Request) -> ChatModel:
    return request.app.state.chat_model


def get_usage_tracker(request: Request) -> UsageTracker:
    return request.app.state.usage


def get_chat_service(
    settings: Settings = Depends(get_settings),
    llm: ChatModel = Depends(get_chat_model),
    usage: UsageTracker = Depends(get_usage_tracker),
) -> ChatService:
    assembler = ChatRequestAssembler(
        llm,
        ceilings=settings.ceilings(),
        max_turns=settings.history_max_turns,
        temperatures=settings.temperatures(),
        max_reply_tokens=settings.max_reply_tokens,
        timeout=settings.upstream_timeout_seconds,
    )
    return ChatService(assembler, usage=usage, model_name=settings.model_chat)


def get_vin_model(request: Request) -> ChatModel:
    return request.app.state.vin_model


def get_vin_service(
    settings: Settings = Depends(get_settings),
    llm: ChatModel = Depends(get_vin_model),
    usage: UsageTracker = Depends(get_usage_tracker),
) -> VinService:
    return VinService(llm, usage=usage, model_name=settings.model_vin_text, timeout=settings.upstream_timeout_seconds)
