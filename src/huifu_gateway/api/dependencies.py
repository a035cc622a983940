"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from huifu_gateway.gateway.facade import MerchantOperations
from huifu_gateway.gateway.registry import TenantRegistry


def get_registry(request: Request) -> TenantRegistry:
    """Get the process registry created at app construction."""
    return request.app.state.registry


def get_operations(
    registry: Annotated[TenantRegistry, Depends(get_registry)],
) -> MerchantOperations:
    """Get merchant operations bound to the registry."""
    return MerchantOperations(registry)


# Type aliases for cleaner dependency injection
Registry = Annotated[TenantRegistry, Depends(get_registry)]
Operations = Annotated[MerchantOperations, Depends(get_operations)]
