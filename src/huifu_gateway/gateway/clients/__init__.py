"""Signing client backends."""

from huifu_gateway.gateway.clients.base import (
    CallResult,
    CredentialBundle,
    Environment,
    SigningClient,
)
from huifu_gateway.gateway.clients.provider import ProviderClient, ProviderSession
from huifu_gateway.gateway.clients.simulated import SimulatedClient

__all__ = [
    "CallResult",
    "CredentialBundle",
    "Environment",
    "SigningClient",
    "ProviderClient",
    "ProviderSession",
    "SimulatedClient",
]
