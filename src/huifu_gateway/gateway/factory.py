"""Client factory with provider-first, simulated-fallback policy.

Registration must succeed whenever the credential material itself is
valid, even if the provider is unreachable or misconfigured. The only
fatal path is a private key that cannot be parsed.
"""

from __future__ import annotations

import logging
from typing import Callable

import httpx

from huifu_gateway.config import ProviderSettings
from huifu_gateway.gateway.clients.base import CredentialBundle, SigningClient
from huifu_gateway.gateway.clients.provider import ProviderClient
from huifu_gateway.gateway.clients.simulated import SimulatedClient

logger = logging.getLogger(__name__)

ProviderBuilder = Callable[[CredentialBundle], SigningClient]


class ClientFactory:
    """Builds the signing client for a credential bundle.

    Usage:
        factory = ClientFactory(settings.provider)
        client = factory.build(bundle)  # ProviderClient or SimulatedClient
    """

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        provider_builder: ProviderBuilder | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize factory.

        Args:
            settings: Provider settings. Defaults to ProviderSettings().
            provider_builder: Overrides provider client construction.
            transport: HTTP transport handed to provider sessions.
        """
        self.settings = settings or ProviderSettings()
        self._transport = transport
        self._provider_builder = provider_builder or self._connect_provider

    def _connect_provider(self, bundle: CredentialBundle) -> SigningClient:
        return ProviderClient.connect(bundle, self.settings, transport=self._transport)

    def build(self, bundle: CredentialBundle) -> SigningClient:
        """Build a client, falling back to a simulated one on provider failure.

        Raises:
            KeyMaterialError: if even the simulated client cannot be built.
        """
        if not self.settings.force_simulated:
            try:
                return self._provider_builder(bundle)
            except Exception as exc:
                logger.warning(
                    "Provider client unavailable for sys_id=%s (%s: %s), "
                    "falling back to simulated client",
                    bundle.tenant_id,
                    type(exc).__name__,
                    exc,
                )

        client = SimulatedClient(bundle)
        logger.info("Simulated client built for sys_id=%s", bundle.tenant_id)
        return client
