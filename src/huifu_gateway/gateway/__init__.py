"""Credential-scoped signing gateway.

This package contains:
- RSA request signing
- Signing client backends (provider and simulated)
- Client factory with simulated fallback
- Tenant registry
- Merchant operations facade
"""

from huifu_gateway.gateway.clients import (
    CallResult,
    CredentialBundle,
    Environment,
    ProviderClient,
    ProviderSession,
    SigningClient,
    SimulatedClient,
)
from huifu_gateway.gateway.facade import MerchantOperations, OperationSpec
from huifu_gateway.gateway.factory import ClientFactory
from huifu_gateway.gateway.registry import TenantRegistry, TenantSummary
from huifu_gateway.gateway.signer import (
    Signer,
    canonicalize,
    generate_test_key_pair,
    load_private_key,
    load_public_key,
    verify_signature,
)

__all__ = [
    "CallResult",
    "CredentialBundle",
    "Environment",
    "ProviderClient",
    "ProviderSession",
    "SigningClient",
    "SimulatedClient",
    "MerchantOperations",
    "OperationSpec",
    "ClientFactory",
    "TenantRegistry",
    "TenantSummary",
    "Signer",
    "canonicalize",
    "generate_test_key_pair",
    "load_private_key",
    "load_public_key",
    "verify_signature",
]
