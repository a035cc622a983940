"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from huifu_gateway import __version__
from huifu_gateway.api.routes import configs_router, health_router, merchants_router
from huifu_gateway.config import Settings, get_settings
from huifu_gateway.errors import (
    GatewayError,
    KeyMaterialError,
    NotFoundError,
    SigningError,
    TransportError,
    UnsupportedOperationError,
    ValidationError,
)
from huifu_gateway.gateway.factory import ClientFactory
from huifu_gateway.gateway.registry import TenantRegistry

logger = logging.getLogger(__name__)

# (status code, error code) per error kind
ERROR_STATUS: dict[type[GatewayError], tuple[int, str]] = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    ValidationError: (status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    KeyMaterialError: (status.HTTP_400_BAD_REQUEST, "INVALID_KEY"),
    UnsupportedOperationError: (status.HTTP_400_BAD_REQUEST, "UNSUPPORTED_OPERATION"),
    TransportError: (status.HTTP_502_BAD_GATEWAY, "TRANSPORT_ERROR"),
    SigningError: (status.HTTP_500_INTERNAL_SERVER_ERROR, "SIGNING_ERROR"),
}


def error_status(exc: GatewayError) -> tuple[int, str]:
    """Map an error kind to its HTTP status and error code."""
    for kind, mapping in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return mapping
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "GATEWAY_ERROR"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    yield
    # Shutdown
    for warning in app.state.registry.close_all():
        logger.warning("Shutdown cleanup: %s", warning)


def create_app(
    settings: Settings | None = None,
    registry: TenantRegistry | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Defaults to get_settings().
        registry: Registry to serve. Built from settings when omitted.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Huifu Gateway API",
        description="Per-merchant Huifu credential registry and signed API calls",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = (
        registry if registry is not None else TenantRegistry(ClientFactory(settings.provider))
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
    )

    # Exception handlers
    @app.exception_handler(GatewayError)
    async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
        """Map gateway error kinds to status codes."""
        status_code, code = error_status(exc)
        logger.info("%s %s -> %s: %s", request.method, request.url.path, code, exc)
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "code": code},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Reject malformed requests with 400."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                    for err in exc.errors()
                ],
                "code": "INVALID_REQUEST",
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(configs_router, prefix="/api")
    app.include_router(merchants_router, prefix="/api")

    return app
