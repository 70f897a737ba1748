from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from api.config import Settings, get_settings
from api.routes.chat_routes import chat_routes
from api.routes.metrics_routes import metrics_routes
from api.routes.vin_routes import vin_routes
from api.utils.logger import clear_request_id, configure_logging, set_request_id
from api.utils.usage_tracker import UsageTracker
from infra.llm.openai_chat import OpenAIChatModel
from torque.core.errors import (
    BudgetExceededError,
    ConfigurationError,
    InvalidMessageError,
    InvalidVinError,
    UpstreamError,
)

UPSTREAM_ERROR_MESSAGE = "Something went wrong with the mechanic service. Please try again later."


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logger = configure_logging(
        log_dir=settings.log_dir,
        level=settings.log_level,
        console=settings.log_to_console,
    )

    app = FastAPI(title="Torque mechanic backend")
    app.state.chat_model = OpenAIChatModel(
        api_key=settings.openai_api_key,
        model=settings.model_chat,
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout_seconds,
    )
    app.state.vin_model = OpenAIChatModel(
        api_key=settings.openai_api_key,
        model=settings.model_vin_text,
        base_url=settings.openai_base_url,
        timeout=settings.upstream_timeout_seconds,
    )
    app.state.usage = UsageTracker(settings.model_pricing(), free_mode=settings.openai_free_mode)
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; upstream calls will fail")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        rid = set_request_id(request.headers.get("x-request-id"))
        try:
            logger.info("request start method=%s path=%s client=%s", request.method, request.url.path, request.client)
            response: Response = await call_next(request)
            logger.info("request end status=%s method=%s path=%s", response.status_code, request.method, request.url.path)
            response.headers["x-request-id"] = rid
            return response
        except Exception:
            logger.exception("request error method=%s path=%s", request.method, request.url.path)
            raise
        finally:
            clear_request_id()

    @app.exception_handler(BudgetExceededError)
    async def budget_exceeded_handler(request: Request, exc: BudgetExceededError) -> JSONResponse:
        logger.warning(
            "budget exceeded path=%s tier=%s estimated=%s ceiling=%s",
            request.url.path, exc.tier, exc.estimated, exc.ceiling,
        )
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(InvalidMessageError)
    async def invalid_message_handler(request: Request, exc: InvalidMessageError) -> JSONResponse:
        logger.warning("invalid message path=%s detail=%s", request.url.path, exc)
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(InvalidVinError)
    async def invalid_vin_handler(request: Request, exc: InvalidVinError) -> JSONResponse:
        logger.warning("invalid vin path=%s detail=%s", request.url.path, exc)
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.warning("configuration error path=%s detail=%s", request.url.path, exc)
        return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        # Details stay in the log; the client gets a generic retry-later message.
        logger.error(
            "upstream error path=%s kind=%s status=%s detail=%s",
            request.url.path, exc.kind.value, exc.status_code, exc,
        )
        return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"error": UPSTREAM_ERROR_MESSAGE})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("http error status=%s method=%s path=%s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
        else:
            logger.warning("http error status=%s method=%s path=%s detail=%s", exc.status_code, request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("validation error method=%s path=%s errors=%s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # Never leak internal exception details to clients.
        logger.exception("unhandled error method=%s path=%s", request.method, request.url.path)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal Server Error"},
        )

    @app.get("/")
    def read_root():
        return {"message": "Torque is Healthy"}

    app.include_router(chat_routes)
    app.include_router(metrics_routes)
    app.include_router(vin_routes)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
