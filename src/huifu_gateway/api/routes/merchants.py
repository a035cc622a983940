"""Merchant operation endpoints."""

import logging

from fastapi import APIRouter

from huifu_gateway.api.dependencies import Operations
from huifu_gateway.api.schemas import (
    ErrorResponse,
    TestConfigRequest,
    TestConfigResponse,
    WeChatConfigQueryRequest,
    WeChatConfigQueryResponse,
    WeChatConfigRequest,
    WeChatConfigResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["merchants"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post("/test-config", response_model=TestConfigResponse, responses=ERROR_RESPONSES)
def test_config(operations: Operations, payload: TestConfigRequest) -> TestConfigResponse:
    """Probe a tenant's credentials with a basic data query."""
    result = operations.verify_credentials(payload.sys_id)
    return TestConfigResponse(
        message="Configuration is valid" if result.succeeded else "Configuration test failed",
        status="success" if result.succeeded else "failed",
        resp_code=result.response_code,
        resp_desc=result.response_description,
    )


@router.post("/wechat-config", response_model=WeChatConfigResponse, responses=ERROR_RESPONSES)
def configure_wechat_merchant(
    operations: Operations,
    payload: WeChatConfigRequest,
) -> WeChatConfigResponse:
    """Configure a merchant's WeChat official account settings."""
    logger.info("WeChat config sys_id=%s huifu_id=%s", payload.sys_id, payload.huifu_id)
    result = operations.configure_merchant(
        payload.sys_id,
        huifu_id=payload.huifu_id,
        wx_woa_app_id=payload.wx_woa_app_id,
        wx_woa_path=payload.wx_woa_path,
        fee_type=payload.fee_type,
        extend_infos=payload.extend_infos,
    )
    return WeChatConfigResponse(
        message=result.payload,
        huifu_id=payload.huifu_id,
        wx_app_id=payload.wx_woa_app_id,
        resp_code=result.response_code,
        resp_desc=result.response_description,
    )


@router.post(
    "/wechat-config-query",
    response_model=WeChatConfigQueryResponse,
    responses=ERROR_RESPONSES,
)
def query_wechat_config(
    operations: Operations,
    payload: WeChatConfigQueryRequest,
) -> WeChatConfigQueryResponse:
    """Query a merchant's WeChat official account settings."""
    logger.info("WeChat config query sys_id=%s huifu_id=%s", payload.sys_id, payload.huifu_id)
    result = operations.query_merchant_config(payload.sys_id, payload.huifu_id)
    return WeChatConfigQueryResponse(
        message=result.payload,
        huifu_id=payload.huifu_id,
        resp_code=result.response_code,
        resp_desc=result.response_description,
    )
