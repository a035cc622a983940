"""Huifu BsPay provider client.

Calls the real Huifu API over HTTPS. Only a fixed set of operations is
supported; each one shapes its request data before the session signs it.

Wire format:
    POST {base_url}{endpoint}
    {"sys_id": ..., "product_id": ..., "data": {...}, "sign": "<base64>"}

    The signature covers the canonical form of "data" (which itself carries
    sys_id, product_id and timestamp). Responses carry {"data": {...},
    "sign": ...}; when a response is signed it is verified with the Huifu
    platform public key.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

import httpx

from huifu_gateway.config import ProviderSettings
from huifu_gateway.errors import (
    KeyMaterialError,
    ProviderConfigurationError,
    TransportError,
    UnsupportedOperationError,
)
from huifu_gateway.gateway.clients.base import (
    MERCHANT_BASICDATA_QUERY,
    MERCHANT_BUSI_CONFIG,
    MERCHANT_BUSI_CONFIG_QUERY,
    PRODUCT_ID_FIELD,
    SIGN_FIELD,
    SYS_ID_FIELD,
    CallResult,
    CredentialBundle,
    current_req_date,
    generate_req_seq_id,
    sign_request,
)
from huifu_gateway.gateway.signer import Signer, load_public_key, verify_signature

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    """Reject NaN and Infinity in provider JSON."""
    raise ValueError(f"Non-finite number in response: {name}")


class ProviderSession:
    """Signing and transport state for one tenant.

    Holds the parsed private key, the Huifu public key and a pooled HTTP
    client. Nothing is staged on disk. close() releases the HTTP client and
    drops the key handles.
    """

    def __init__(
        self,
        bundle: CredentialBundle,
        settings: ProviderSettings,
        transport: httpx.BaseTransport | None = None,
    ):
        """Open a provider session.

        Raises:
            KeyMaterialError: if the tenant's private key cannot be parsed.
            ProviderConfigurationError: if the Huifu public key is missing
                or invalid.
        """
        if not settings.public_key:
            raise ProviderConfigurationError(
                "Huifu public key is not configured (HUIFU_PUBLIC_KEY)"
            )
        try:
            self._provider_key = load_public_key(settings.public_key)
        except KeyMaterialError as exc:
            raise ProviderConfigurationError(f"Invalid Huifu public key: {exc}") from exc

        self.bundle = bundle
        self._signer: Signer | None = Signer.from_pem(bundle.private_key)
        self.base_url = settings.base_url_for(bundle.environment.is_production)
        self.timeout_seconds = settings.timeout_seconds
        self._http: httpx.Client | None = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(settings.timeout_seconds),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @property
    def closed(self) -> bool:
        return self._http is None

    def execute(self, endpoint: str, data: Mapping[str, Any]) -> CallResult:
        """Sign data and POST it to endpoint.

        Raises:
            TransportError: on timeout, HTTP failure, malformed or
                unverifiable response. Never retried.
        """
        # The session may be closed by a concurrent revoke; use one snapshot.
        http, signer = self._http, self._signer
        if http is None or signer is None:
            raise TransportError("Provider session is closed", endpoint=endpoint)

        signed = sign_request(signer, self.bundle, data)
        signature = signed.pop(SIGN_FIELD)
        envelope = {
            SYS_ID_FIELD: self.bundle.tenant_id,
            PRODUCT_ID_FIELD: self.bundle.product_id,
            "data": signed,
            SIGN_FIELD: signature,
        }

        try:
            response = http.post(endpoint, json=envelope)
        except RuntimeError as exc:
            # httpx refuses to send on a client closed mid-call
            raise TransportError("Provider session is closed", endpoint=endpoint) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request to {endpoint} timed out after {self.timeout_seconds}s",
                endpoint=endpoint,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        if response.status_code >= 400:
            raise TransportError(
                f"Provider returned HTTP {response.status_code} for {endpoint}",
                endpoint=endpoint,
            )

        try:
            body = json.loads(response.content, parse_constant=_reject_constant)
        except ValueError as exc:
            raise TransportError(f"Malformed response from {endpoint}", endpoint=endpoint) from exc

        return self._parse_response(endpoint, body)

    def _parse_response(self, endpoint: str, body: Any) -> CallResult:
        if not isinstance(body, dict):
            raise TransportError(f"Malformed response from {endpoint}", endpoint=endpoint)

        data = body.get("data", body)
        if not isinstance(data, dict) or "resp_code" not in data:
            raise TransportError(f"Response from {endpoint} has no resp_code", endpoint=endpoint)

        signature = body.get(SIGN_FIELD)
        if signature and not verify_signature(data, signature, self._provider_key):
            raise TransportError(
                f"Response signature verification failed for {endpoint}",
                endpoint=endpoint,
            )

        payload = {k: v for k, v in data.items() if k not in ("resp_code", "resp_desc")}
        return CallResult(
            response_code=str(data["resp_code"]),
            response_description=str(data.get("resp_desc", "")),
            payload=payload,
        )

    def close(self) -> None:
        """Release the HTTP client and key handles. Idempotent."""
        http, self._http = self._http, None
        self._signer = None
        if http is not None:
            http.close()


Operation = Callable[["ProviderClient", Mapping[str, Any]], dict[str, Any]]


class ProviderClient:
    """Signing client backed by the real Huifu API.

    Supported endpoints:
    - /v2/merchant/busi/config: WeChat merchant configuration
    - /v2/merchant/busi/config/query: merchant configuration query
    - /v2/merchant/basicdata/query: merchant basic data query
    """

    backend_name = "provider"

    def __init__(self, session: ProviderSession):
        self.bundle = session.bundle
        self._session = session

    @classmethod
    def connect(
        cls,
        bundle: CredentialBundle,
        settings: ProviderSettings,
        transport: httpx.BaseTransport | None = None,
    ) -> ProviderClient:
        """Establish a provider session and wrap it in a client."""
        logger.info(
            "Opening provider session sys_id=%s environment=%s",
            bundle.tenant_id,
            bundle.environment.value,
        )
        return cls(ProviderSession(bundle, settings, transport=transport))

    @property
    def closed(self) -> bool:
        return self._session.closed

    def call(self, endpoint: str, params: Mapping[str, Any]) -> CallResult:
        """Dispatch endpoint to its operation and execute it."""
        operation = OPERATIONS.get(endpoint)
        if operation is None:
            raise UnsupportedOperationError(endpoint)

        data = operation(self, params)
        logger.info("Provider call sys_id=%s endpoint=%s", self.bundle.tenant_id, endpoint)
        result = self._session.execute(endpoint, data)
        if not result.succeeded:
            logger.warning(
                "Provider call sys_id=%s endpoint=%s returned %s",
                self.bundle.tenant_id,
                endpoint,
                result.response_code,
            )
        return result

    def _busi_config(self, params: Mapping[str, Any]) -> dict[str, Any]:
        # Extension fields travel flat alongside the required ones
        data = dict(params)
        data["req_seq_id"] = params.get("req_seq_id") or generate_req_seq_id()
        data["req_date"] = params.get("req_date") or current_req_date()
        data["huifu_id"] = params.get("huifu_id") or self.bundle.tenant_id
        return data

    def _busi_config_query(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "req_seq_id": params.get("req_seq_id") or generate_req_seq_id(),
            "req_date": params.get("req_date") or current_req_date(),
            "huifu_id": params.get("huifu_id") or self.bundle.tenant_id,
        }

    def close(self) -> None:
        """Close the underlying provider session."""
        self._session.close()


OPERATIONS: dict[str, Operation] = {
    MERCHANT_BUSI_CONFIG: ProviderClient._busi_config,
    MERCHANT_BUSI_CONFIG_QUERY: ProviderClient._busi_config_query,
    MERCHANT_BASICDATA_QUERY: ProviderClient._busi_config_query,
}
