"""Base protocol and types for signing clients.

All backends must implement the SigningClient protocol. The registry and
the call facade use clients without knowing which backend is active.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

from huifu_gateway.gateway.signer import Signer

SUCCESS_CODE = "00000"
SUCCESS_DESCRIPTION = "success"

# Reserved request fields
SIGN_FIELD = "sign"
SYS_ID_FIELD = "sys_id"
PRODUCT_ID_FIELD = "product_id"
TIMESTAMP_FIELD = "timestamp"

# Provider endpoints
MERCHANT_BUSI_CONFIG = "/v2/merchant/busi/config"
MERCHANT_BUSI_CONFIG_QUERY = "/v2/merchant/busi/config/query"
MERCHANT_BASICDATA_QUERY = "/v2/merchant/basicdata/query"
MERCHANT_WECHAT_CONFIG = "/v2/merchant/wechat/config"  # legacy alias


class Environment(str, Enum):
    """Provider environment a credential bundle targets."""

    TEST = "test"
    PRODUCTION = "production"

    @property
    def is_production(self) -> bool:
        return self is Environment.PRODUCTION


@dataclass(frozen=True)
class CredentialBundle:
    """Credentials of one tenant.

    tenant_id is the provider system id (sys_id). The private key is kept
    out of repr so bundles can be logged safely.
    """

    tenant_id: str
    product_id: str
    private_key: str = field(repr=False)
    environment: Environment = Environment.TEST
    wx_woa_app_id: str | None = None
    wx_woa_path: str | None = None

    def __post_init__(self) -> None:
        """Validate bundle."""
        if not self.tenant_id:
            raise ValueError("tenant_id is required")
        if not self.product_id:
            raise ValueError("product_id is required")
        if not isinstance(self.environment, Environment):
            object.__setattr__(self, "environment", Environment(self.environment))

    @property
    def sys_id(self) -> str:
        """Alias for tenant_id."""
        return self.tenant_id


@dataclass(frozen=True)
class CallResult:
    """Result of one signed call."""

    response_code: str
    response_description: str
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.response_code == SUCCESS_CODE

    def to_dict(self) -> dict[str, Any]:
        """Render in the provider wire shape."""
        return {
            "resp_code": self.response_code,
            "resp_desc": self.response_description,
            "data": dict(self.payload),
        }


class SigningClient(Protocol):
    """Protocol for signing client backends.

    Each backend signs requests with the tenant's key before transport.
    Clients are owned by exactly one registry entry.
    """

    backend_name: str
    bundle: CredentialBundle

    def call(self, endpoint: str, params: Mapping[str, Any]) -> CallResult:
        """Sign and execute a request.

        Args:
            endpoint: Provider endpoint path, e.g. "/v2/merchant/busi/config".
            params: Request parameters. Never mutated.

        Returns:
            CallResult with response code, description and payload.
        """
        ...

    def close(self) -> None:
        """Release backend-held resources. Idempotent."""
        ...


def current_timestamp() -> str:
    return datetime.datetime.now().strftime("%Y%m%d%H%M%S")


def current_req_date() -> str:
    return datetime.date.today().strftime("%Y%m%d")


def generate_req_seq_id() -> str:
    """Request sequence id: local time to the microsecond plus a random suffix."""
    now = datetime.datetime.now()
    return f"{now.strftime('%Y%m%d%H%M%S%f')}{uuid.uuid4().hex[:6]}"


def sign_request(
    signer: Signer,
    bundle: CredentialBundle,
    params: Mapping[str, Any],
) -> dict[str, Any]:
    """Return a signed copy of params.

    Injects sys_id, product_id and timestamp, then signs the whole map
    and stores the signature under the reserved "sign" field. Any caller
    supplied "sign" is discarded before signing.
    """
    request = {k: v for k, v in params.items() if k != SIGN_FIELD}
    request[SYS_ID_FIELD] = bundle.tenant_id
    request[PRODUCT_ID_FIELD] = bundle.product_id
    request[TIMESTAMP_FIELD] = current_timestamp()
    request[SIGN_FIELD] = signer.sign(request)
    return request
