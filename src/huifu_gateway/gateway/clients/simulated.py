"""Simulated Huifu client for local development, testing and fallback.

Requests are signed exactly as the provider backend signs them, but no
network I/O happens: responses are synthesized from the request.
"""

from __future__ import annotations

import datetime
import logging
from collections import deque
from typing import Any, Mapping

from huifu_gateway.errors import TransportError
from huifu_gateway.gateway.clients.base import (
    MERCHANT_BASICDATA_QUERY,
    MERCHANT_BUSI_CONFIG,
    MERCHANT_BUSI_CONFIG_QUERY,
    MERCHANT_WECHAT_CONFIG,
    SUCCESS_CODE,
    SUCCESS_DESCRIPTION,
    CallResult,
    CredentialBundle,
    sign_request,
)
from huifu_gateway.gateway.signer import Signer

logger = logging.getLogger(__name__)

HISTORY_SIZE = 100


def _now() -> str:
    return datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class SimulatedClient:
    """Simulated signing client.

    Always answers with the success code unless a failure was injected
    with simulate_failure().
    """

    backend_name = "simulated"

    def __init__(self, bundle: CredentialBundle, signer: Signer | None = None):
        """Initialize simulated client.

        Args:
            bundle: Tenant credentials.
            signer: Prebuilt signer. Parsed from the bundle when omitted.

        Raises:
            KeyMaterialError: if the bundle's private key cannot be parsed.
        """
        self.bundle = bundle
        self._signer = signer or Signer.from_pem(bundle.private_key)
        self._failures: dict[str, tuple[str, str]] = {}
        # Recent signed requests, newest last
        self.history: deque[tuple[str, dict[str, Any]]] = deque(maxlen=HISTORY_SIZE)
        self.closed = False

    def call(self, endpoint: str, params: Mapping[str, Any]) -> CallResult:
        """Sign the request and synthesize a response.

        Raises:
            TransportError: if the client has been closed.
        """
        if self.closed:
            raise TransportError("Simulated client is closed", endpoint=endpoint)

        request = sign_request(self._signer, self.bundle, params)
        self.history.append((endpoint, request))
        logger.debug(
            "Simulated call sys_id=%s endpoint=%s", self.bundle.tenant_id, endpoint
        )

        if endpoint in self._failures:
            code, description = self._failures[endpoint]
            return CallResult(
                response_code=code,
                response_description=description,
                payload={"huifu_id": request.get("huifu_id")},
            )

        return CallResult(
            response_code=SUCCESS_CODE,
            response_description=SUCCESS_DESCRIPTION,
            payload=self._payload_for(endpoint, request),
        )

    def _payload_for(self, endpoint: str, request: dict[str, Any]) -> dict[str, Any]:
        if endpoint in (MERCHANT_BUSI_CONFIG, MERCHANT_WECHAT_CONFIG):
            return {
                "huifu_id": request.get("huifu_id"),
                "wx_woa_app_id": request.get("wx_woa_app_id"),
                "wx_woa_path": request.get("wx_woa_path"),
                "fee_type": request.get("fee_type"),
                "req_seq_id": request.get("req_seq_id"),
                "config_status": "SUCCESS",
                "config_time": _now(),
            }

        if endpoint == MERCHANT_BUSI_CONFIG_QUERY:
            return {
                "huifu_id": request.get("huifu_id"),
                "wx_woa_app_id": "wx1234567890abcdef",
                "wx_woa_path": "pages/index/index",
                "fee_type": "01",
                "config_status": "ACTIVE",
                "config_time": "2024-01-01 10:00:00",
                "update_time": _now(),
            }

        if endpoint == MERCHANT_BASICDATA_QUERY:
            return {
                "sys_id": self.bundle.tenant_id,
                "product_id": self.bundle.product_id,
                "status": "ACTIVE",
                "create_time": "2024-01-01 10:00:00",
            }

        return {"message": f"Simulated response for endpoint: {endpoint}"}

    def simulate_failure(
        self,
        endpoint: str,
        code: str = "90000",
        description: str = "Simulated failure",
    ) -> None:
        """Make subsequent calls to endpoint return a failure (for testing)."""
        if code == SUCCESS_CODE:
            raise ValueError("failure code must differ from the success code")
        self._failures[endpoint] = (code, description)

    def clear_failures(self) -> None:
        """Remove all injected failures."""
        self._failures.clear()

    def close(self) -> None:
        """Mark the client closed; later calls raise TransportError."""
        self.closed = True
