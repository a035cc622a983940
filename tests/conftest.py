"""Pytest fixtures for gateway tests."""

from __future__ import annotations

from typing import Any, Callable, Mapping

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from huifu_gateway.config import ProviderSettings
from huifu_gateway.gateway.clients.base import (
    SUCCESS_CODE,
    CallResult,
    CredentialBundle,
    Environment,
)


def _private_pem(key: rsa.RSAPrivateKey, fmt: serialization.PrivateFormat) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=fmt,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _public_pem(key: rsa.RSAPrivateKey) -> str:
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture(scope="session")
def merchant_key() -> rsa.RSAPrivateKey:
    """Tenant private key (generated once per session)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def merchant_pem(merchant_key) -> str:
    """Tenant key as PKCS#1 PEM."""
    return _private_pem(merchant_key, serialization.PrivateFormat.TraditionalOpenSSL)


@pytest.fixture(scope="session")
def merchant_pkcs8_pem(merchant_key) -> str:
    """Tenant key as PKCS#8 PEM."""
    return _private_pem(merchant_key, serialization.PrivateFormat.PKCS8)


@pytest.fixture(scope="session")
def merchant_public_pem(merchant_key) -> str:
    return _public_pem(merchant_key)


@pytest.fixture(scope="session")
def platform_key() -> rsa.RSAPrivateKey:
    """Key the fake Huifu platform signs responses with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def platform_public_pem(platform_key) -> str:
    return _public_pem(platform_key)


@pytest.fixture
def provider_settings(platform_public_pem) -> ProviderSettings:
    """Provider settings with a platform key, so provider sessions can open."""
    return ProviderSettings(
        base_url="https://api.huifu.test",
        test_base_url="https://sandbox.huifu.test",
        public_key=platform_public_pem,
        timeout_seconds=5,
    )


@pytest.fixture
def make_bundle(merchant_pem) -> Callable[..., CredentialBundle]:
    """Build credential bundles with the session merchant key."""

    def _make(
        tenant_id: str = "6666000100000001",
        product_id: str = "PAYUN",
        environment: Environment = Environment.TEST,
        **kwargs: Any,
    ) -> CredentialBundle:
        kwargs.setdefault("private_key", merchant_pem)
        return CredentialBundle(
            tenant_id=tenant_id,
            product_id=product_id,
            environment=environment,
            **kwargs,
        )

    return _make


class RecordingClient:
    """Fake signing client that counts close() calls."""

    backend_name = "recording"

    def __init__(self, bundle: CredentialBundle, fail_close: bool = False):
        self.bundle = bundle
        self.fail_close = fail_close
        self.close_count = 0
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def call(self, endpoint: str, params: Mapping[str, Any]) -> CallResult:
        self.calls.append((endpoint, dict(params)))
        return CallResult(SUCCESS_CODE, "success", {"endpoint": endpoint})

    def close(self) -> None:
        self.close_count += 1
        if self.fail_close:
            raise OSError("session teardown failed")


@pytest.fixture
def recording_clients() -> list[RecordingClient]:
    """Every RecordingClient built by recording_builder, in build order."""
    return []


@pytest.fixture
def recording_builder(recording_clients) -> Callable[[CredentialBundle], RecordingClient]:
    """Provider builder producing RecordingClients."""

    def _build(bundle: CredentialBundle) -> RecordingClient:
        client = RecordingClient(bundle)
        recording_clients.append(client)
        return client

    return _build


@pytest.fixture
def recording_client_cls() -> type[RecordingClient]:
    return RecordingClient
