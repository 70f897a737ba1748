"""VIN decode request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class VinDecodeRequest(BaseModel):
    vin: Optional[str] = None


class VinDecodeResponse(BaseModel):
    vehicle: dict[str, Any] = Field(default_factory=dict)
    usage: Optional[dict[str, Any]] = None
