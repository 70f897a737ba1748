"""
Typed VIN decode route. Invalid VINs get a 400 {error} from the handlers in api.api.
"""

from fastapi import APIRouter, Depends

from api.schemas.chat_schemas import ErrorResponse
from api.schemas.vin_schemas import VinDecodeRequest, VinDecodeResponse
from api.services.vin_service import VinService
from api.utils.deps import get_vin_service

vin_routes = APIRouter()


@vin_routes.post(
    "/decode-vin-text",
    response_model=VinDecodeResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def decode_vin_text(
    req: VinDecodeRequest,
    vin_service: VinService = Depends(get_vin_service),
) -> VinDecodeResponse:
    return await vin_service.decode(req)
