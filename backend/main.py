"""FastAPI application entry point.

Startup sequence: load settings -> build shared clients -> serve.
Missing secrets abort startup instead of producing degraded relays.
"""

from contextlib import asynccontextmanager

import structlog
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import PlainTextResponse

from backend.api.dependencies import build_services
from backend.api.routes import router
from backend.core.config import load_settings
from backend.core.errors import (
    CORS_HEADERS,
    BadRequest,
    RelayError,
    error_response,
    relay_error_response,
)

load_dotenv()

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("startup.begin")

    settings = load_settings()
    app.state.services = build_services(settings)
    logger.info(
        "startup.services_ready",
        openai=app.state.services.model.is_healthy(),
        storage_signing=app.state.services.signer.enabled,
    )

    logger.info("startup.complete")
    yield
    logger.info("shutdown.complete")


app = FastAPI(
    title="Form Relay API",
    description="Authenticated relay between the form scanner app and the model API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    logger.error(
        "relay.failed",
        path=request.url.path,
        kind=exc.kind.value,
        error=exc.message,
        exc_info=exc,
    )
    return relay_error_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return await relay_error_handler(request, BadRequest("Malformed request body"))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Routing errors (404, 405) in the same envelope as relay errors."""
    logger.info("relay.http_error", path=request.url.path, status=exc.status_code)
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer preflights, attach CORS headers, and catch anything unclassified."""
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=CORS_HEADERS)

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error("relay.unhandled", path=request.url.path, error=str(e), exc_info=e)
        return error_response(500, str(e) or "Internal server error")

    response.headers.update(CORS_HEADERS)
    return response


app.include_router(router)
