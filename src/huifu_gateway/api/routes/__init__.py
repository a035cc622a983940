"""API routes."""

from huifu_gateway.api.routes.configs import router as configs_router
from huifu_gateway.api.routes.health import router as health_router
from huifu_gateway.api.routes.merchants import router as merchants_router

__all__ = ["configs_router", "health_router", "merchants_router"]
