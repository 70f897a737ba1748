"""
Chat request/response schemas.

Message role/content are optional and content may be any JSON value; the chat core
validates messages and raises InvalidMessageError for malformed turns.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ChatMessageIn(BaseModel):
    role: Optional[str] = None
    content: Any = None


class VehicleIn(BaseModel):
    year: Optional[int | str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    trim: Optional[str] = None
    engine: Optional[str] = None
    transmission: Optional[str] = None
    drive_type: Optional[str] = None
    body_style: Optional[str] = None
    fuel_type: Optional[str] = None


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn] = Field(default_factory=list)
    tier: Optional[str] = "free"
    vehicle: Optional[VehicleIn] = None


class ChatResponse(BaseModel):
    reply: str
    usage: Optional[dict[str, Any]] = None
    vehicle_used: Optional[Any] = None


class ErrorResponse(BaseModel):
    error: str
