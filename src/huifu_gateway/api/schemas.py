"""Pydantic schemas for API request/response models."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from huifu_gateway.gateway.clients.base import Environment


# ============================================================================
# Configuration schemas
# ============================================================================


class ConfigCreate(BaseModel):
    """Schema for registering a tenant's credentials."""

    sys_id: str = Field(min_length=1)
    product_id: str = Field(min_length=1)
    rsa_private_key: str = Field(min_length=1, repr=False)
    wx_woa_app_id: str | None = None
    wx_woa_path: str | None = None
    environment: Environment = Environment.TEST

    @field_validator("environment", mode="before")
    @classmethod
    def default_environment(cls, value: Any) -> Any:
        """Empty environment means test."""
        if value in (None, ""):
            return Environment.TEST
        return value


class ConfigSaveResponse(BaseModel):
    """Schema for a successful registration."""

    message: str
    sys_id: str
    backend: str


class ConfigDeleteResponse(BaseModel):
    """Schema for a revocation. Warnings are non-fatal cleanup errors."""

    message: str
    sys_id: str
    warnings: list[str] = []


class ConfigSummary(BaseModel):
    """Key-free view of a registered tenant."""

    sys_id: str
    product_id: str
    environment: Environment
    backend: str


class ConfigListResponse(BaseModel):
    """Schema for listing registered tenants."""

    configs: list[ConfigSummary]
    count: int


# ============================================================================
# Merchant operation schemas
# ============================================================================


class TestConfigRequest(BaseModel):
    """Schema for probing a tenant's credentials."""

    __test__ = False

    sys_id: str = Field(min_length=1)


class TestConfigResponse(BaseModel):
    """Schema for a credential check result."""

    __test__ = False

    message: str
    status: str
    resp_code: str
    resp_desc: str


class WeChatConfigRequest(BaseModel):
    """Schema for configuring a merchant's WeChat settings."""

    sys_id: str = Field(min_length=1)
    huifu_id: str = Field(min_length=1)
    wx_woa_app_id: str = Field(min_length=1)
    wx_woa_path: str = Field(min_length=1)
    fee_type: str = Field(min_length=1)
    extend_infos: dict[str, Any] | None = None


class WeChatConfigResponse(BaseModel):
    """Schema for a merchant configuration result."""

    message: dict[str, Any]
    huifu_id: str
    wx_app_id: str
    resp_code: str
    resp_desc: str


class WeChatConfigQueryRequest(BaseModel):
    """Schema for querying a merchant's WeChat settings."""

    sys_id: str = Field(min_length=1)
    huifu_id: str = Field(min_length=1)


class WeChatConfigQueryResponse(BaseModel):
    """Schema for a merchant configuration query result."""

    message: dict[str, Any]
    huifu_id: str
    resp_code: str
    resp_desc: str


class GeneratedKeyResponse(BaseModel):
    """Schema for a generated sandbox key pair."""

    private_key: str
    public_key: str
    message: str


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None


class ValidationErrorResponse(BaseModel):
    """Schema for validation error response."""

    detail: list[dict[str, Any]]
    code: str = "INVALID_REQUEST"
