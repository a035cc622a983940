"""Error taxonomy for the gateway core.

Every error raised by the core derives from GatewayError so the HTTP layer
can map kinds to status codes in one place. Nothing in the core retries.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base class for all gateway errors."""


class KeyMaterialError(GatewayError, ValueError):
    """Raised when private or public key material cannot be parsed.

    Fatal to registration.
    """


class SigningError(GatewayError):
    """Raised when signature computation fails. Fatal to the call."""


class TransportError(GatewayError):
    """Raised when a remote provider call fails or times out."""

    def __init__(self, message: str, endpoint: str | None = None):
        self.endpoint = endpoint
        super().__init__(message)


class UnsupportedOperationError(GatewayError):
    """Raised when the active backend does not recognize an endpoint."""

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        super().__init__(f"Unsupported endpoint: {endpoint}")


class NotFoundError(GatewayError, LookupError):
    """Raised when a tenant has no active registry entry."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"No configuration registered for sys_id: {tenant_id}")


class ValidationError(GatewayError, ValueError):
    """Raised when a named operation is missing required fields."""

    def __init__(self, operation: str, missing: list[str]):
        self.operation = operation
        self.missing = missing
        super().__init__(
            f"Operation '{operation}' is missing required fields: {', '.join(missing)}"
        )


class ProviderConfigurationError(GatewayError):
    """Raised when a provider session cannot be established.

    Always absorbed by the client factory, which falls back to a
    simulated client.
    """
