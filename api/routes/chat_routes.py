"""
Chat route: the mobile client posts its conversation snapshot and tier, gets one reply.
Errors are mapped to {error} bodies by the handlers in api.api.
"""

from fastapi import APIRouter, Depends

from api.schemas.chat_schemas import ChatRequest, ChatResponse, ErrorResponse
from api.services.chat_service import ChatService
from api.utils.deps import get_chat_service

chat_routes = APIRouter()


@chat_routes.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat(
    req: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Reply to the latest turn of a conversation."""
    return await chat_service.chat(req)
