"""
Asset Bridge Service - Main Application
=======================================

FastAPI application exposing the ``asset-transfer-basic`` chaincode over
REST. Every failure is reported as HTTP 500 with an ``error`` field.

Version: 0.1.0
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException

from services.asset_bridge.routes import assets_router
from shared.config import settings
from shared.fabric import FabricError
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models import HealthResponse


SERVICE_NAME = "asset-bridge"
VERSION = "0.1.0"

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name=SERVICE_NAME,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "asset_bridge_starting",
        environment=settings.environment.value,
        port=settings.ports.asset_bridge,
        mode=settings.fabric.mode.value,
        channel=settings.fabric.channel,
        contract=settings.fabric.contract,
    )
    yield
    logger.info("asset_bridge_shutting_down")


app = FastAPI(
    title="Fabric Asset Bridge",
    description="REST bridge to the asset-transfer-basic chaincode",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag every log line emitted while serving a request."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    clear_context()
    bind_context(request_id=request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_context()
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(assets_router)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check() -> HealthResponse:
    """Service health check. Does not contact the ledger."""
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=VERSION,
        components={
            "ledger": {
                "status": "healthy",
                "mode": settings.fabric.mode.value,
                "channel": settings.fabric.channel,
                "contract": settings.fabric.contract,
            },
        },
    )


@app.get("/", tags=["health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Fabric Asset Bridge",
        "version": VERSION,
        "assets": "/assets",
    }


# ============================================================================
# Error Handlers
# ============================================================================


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(FabricError)
async def fabric_exception_handler(request: Request, exc: FabricError) -> JSONResponse:
    """Surface ledger, wallet and profile failures as 500."""
    logger.error(
        "fabric_request_failed",
        error=str(exc),
        error_type=type(exc).__name__,
        method=request.method,
        path=request.url.path,
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed requests are reported like every other failure."""
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    logger.warning(
        "request_validation_failed",
        error=message,
        method=request.method,
        path=request.url.path,
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> Any:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


# ============================================================================
# Run with Uvicorn
# ============================================================================


def run() -> None:
    """Start the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "services.asset_bridge.main:app",
        host="0.0.0.0",
        port=settings.ports.asset_bridge,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    run()
