"""Merchant operations facade.

Translates named merchant operations into (endpoint, params) calls on the
tenant's signing client.

Usage:
    ops = MerchantOperations(registry)
    result = ops.configure_merchant(
        "6666000123",
        huifu_id="6666000456",
        wx_woa_app_id="wx...",
        wx_woa_path="pages/index/index",
        fee_type="01",
    )

Every call gets a fresh req_seq_id and req_date. Extension fields are
merged into the request but never overwrite required or generated fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from huifu_gateway.errors import ValidationError
from huifu_gateway.gateway.clients.base import (
    MERCHANT_BASICDATA_QUERY,
    MERCHANT_BUSI_CONFIG,
    MERCHANT_BUSI_CONFIG_QUERY,
    CallResult,
    current_req_date,
    generate_req_seq_id,
)
from huifu_gateway.gateway.registry import RegistryEntry, TenantRegistry


@dataclass(frozen=True)
class OperationSpec:
    """A named operation: its endpoint and required fields."""

    name: str
    endpoint: str
    required: tuple[str, ...]


CONFIGURE_MERCHANT = OperationSpec(
    name="configure_merchant",
    endpoint=MERCHANT_BUSI_CONFIG,
    required=("huifu_id", "wx_woa_app_id", "wx_woa_path", "fee_type"),
)
QUERY_MERCHANT_CONFIG = OperationSpec(
    name="query_merchant_config",
    endpoint=MERCHANT_BUSI_CONFIG_QUERY,
    required=("huifu_id",),
)
QUERY_MERCHANT_BASIC = OperationSpec(
    name="query_merchant_basic",
    endpoint=MERCHANT_BASICDATA_QUERY,
    required=("huifu_id",),
)

OPERATIONS = {
    op.name: op for op in (CONFIGURE_MERCHANT, QUERY_MERCHANT_CONFIG, QUERY_MERCHANT_BASIC)
}


def build_params(
    operation: OperationSpec,
    fields: Mapping[str, Any],
    extensions: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build call params for an operation.

    Raises:
        ValidationError: if a required field is missing or empty.
    """
    missing = [name for name in operation.required if fields.get(name) in (None, "")]
    if missing:
        raise ValidationError(operation.name, missing)

    params: dict[str, Any] = {name: fields[name] for name in operation.required}
    params["req_seq_id"] = generate_req_seq_id()
    params["req_date"] = current_req_date()

    for key, value in (extensions or {}).items():
        params.setdefault(key, value)
    return params


class MerchantOperations:
    """Named merchant operations over a tenant registry."""

    def __init__(self, registry: TenantRegistry):
        self.registry = registry

    def execute(
        self,
        tenant_id: str,
        operation: str | OperationSpec,
        fields: Mapping[str, Any],
        extensions: Mapping[str, Any] | None = None,
    ) -> CallResult:
        """Run a named operation for a tenant.

        Raises:
            NotFoundError: tenant not registered.
            ValidationError: missing required field, or unknown operation.
            TransportError / UnsupportedOperationError: from the client.
        """
        if isinstance(operation, str):
            spec = OPERATIONS.get(operation)
            if spec is None:
                raise ValidationError(operation, ["<unknown operation>"])
        else:
            spec = operation

        return self._call(self.registry.get_entry(tenant_id), spec, fields, extensions)

    def _call(
        self,
        entry: RegistryEntry,
        spec: OperationSpec,
        fields: Mapping[str, Any],
        extensions: Mapping[str, Any] | None = None,
    ) -> CallResult:
        params = build_params(spec, fields, extensions)
        return entry.client.call(spec.endpoint, params)

    def configure_merchant(
        self,
        tenant_id: str,
        huifu_id: str,
        wx_woa_app_id: str | None = None,
        wx_woa_path: str | None = None,
        fee_type: str | None = None,
        extend_infos: Mapping[str, Any] | None = None,
    ) -> CallResult:
        """Configure WeChat settings for a merchant.

        wx_woa_app_id and wx_woa_path default to the tenant's registered
        values when omitted.
        """
        # Defaults and client must come from the same entry
        entry = self.registry.get_entry(tenant_id)
        fields = {
            "huifu_id": huifu_id,
            "wx_woa_app_id": wx_woa_app_id or entry.bundle.wx_woa_app_id,
            "wx_woa_path": wx_woa_path or entry.bundle.wx_woa_path,
            "fee_type": fee_type,
        }
        return self._call(entry, CONFIGURE_MERCHANT, fields, extend_infos)

    def query_merchant_config(self, tenant_id: str, huifu_id: str) -> CallResult:
        """Query a merchant's WeChat configuration."""
        return self.execute(tenant_id, QUERY_MERCHANT_CONFIG, {"huifu_id": huifu_id})

    def verify_credentials(self, tenant_id: str) -> CallResult:
        """Check the tenant's credentials with a basic data query on its own sys_id."""
        return self.execute(tenant_id, QUERY_MERCHANT_BASIC, {"huifu_id": tenant_id})
