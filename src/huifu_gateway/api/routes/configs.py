"""Credential configuration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from huifu_gateway.api.dependencies import Registry
from huifu_gateway.api.schemas import (
    ConfigCreate,
    ConfigDeleteResponse,
    ConfigListResponse,
    ConfigSaveResponse,
    ConfigSummary,
    ErrorResponse,
    GeneratedKeyResponse,
)
from huifu_gateway.gateway.clients.base import CredentialBundle
from huifu_gateway.gateway.signer import generate_test_key_pair

router = APIRouter(tags=["configs"])


@router.post(
    "/config",
    response_model=ConfigSaveResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}},
)
def save_config(registry: Registry, payload: ConfigCreate) -> ConfigSaveResponse:
    """Register (or replace) a tenant's credentials."""
    bundle = CredentialBundle(
        tenant_id=payload.sys_id,
        product_id=payload.product_id,
        private_key=payload.rsa_private_key,
        environment=payload.environment,
        wx_woa_app_id=payload.wx_woa_app_id,
        wx_woa_path=payload.wx_woa_path,
    )
    client = registry.register(bundle)
    return ConfigSaveResponse(
        message="Configuration saved successfully",
        sys_id=payload.sys_id,
        backend=client.backend_name,
    )


@router.delete(
    "/config/{sys_id}",
    response_model=ConfigDeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
def delete_config(
    registry: Registry,
    sys_id: Annotated[str, Path(min_length=1)],
) -> ConfigDeleteResponse:
    """Revoke a tenant. Cleanup failures come back as warnings."""
    warnings = registry.revoke(sys_id)
    return ConfigDeleteResponse(
        message="Configuration deleted successfully",
        sys_id=sys_id,
        warnings=warnings,
    )


@router.get("/configs", response_model=ConfigListResponse)
def list_configs(registry: Registry) -> ConfigListResponse:
    """List registered tenants without key material."""
    configs = [
        ConfigSummary(
            sys_id=summary.tenant_id,
            product_id=summary.product_id,
            environment=summary.environment,
            backend=summary.backend,
        )
        for summary in registry.list()
    ]
    return ConfigListResponse(configs=configs, count=len(configs))


@router.get("/generate-test-key", response_model=GeneratedKeyResponse)
def generate_test_key() -> GeneratedKeyResponse:
    """Generate a 2048-bit RSA key pair for sandbox use."""
    pair = generate_test_key_pair()
    return GeneratedKeyResponse(
        private_key=pair.private_key,
        public_key=pair.public_key,
        message="Test RSA key pair generated successfully",
    )
