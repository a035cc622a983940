"""Tenant registry: tenant id -> (credentials, active signing client).

Per-tenant states:
    Absent -> Active   register()
    Active -> Active   register() again; the displaced client is closed
    Active -> Absent   revoke()

One reader/writer lock guards the mapping. It is held only around the
mapping lookup or mutation, never across client construction or calls,
so one tenant's slow remote call cannot block another's registration.
Entries are replaced whole, so a visible entry is always fully formed.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from huifu_gateway.errors import NotFoundError
from huifu_gateway.gateway.clients.base import (
    CredentialBundle,
    Environment,
    SigningClient,
)
from huifu_gateway.gateway.factory import ClientFactory

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many readers or one writer. Writers are preferred once waiting."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class RegistryEntry:
    """One active tenant. Never mutated, only replaced."""

    tenant_id: str
    bundle: CredentialBundle
    client: SigningClient


@dataclass(frozen=True)
class TenantSummary:
    """Key-free view of a registered tenant."""

    tenant_id: str
    product_id: str
    environment: Environment
    backend: str

    def to_dict(self) -> dict[str, str]:
        return {
            "sys_id": self.tenant_id,
            "product_id": self.product_id,
            "environment": self.environment.value,
            "backend": self.backend,
        }


def _close_client(client: SigningClient) -> str | None:
    """Close a client, returning an error description instead of raising."""
    try:
        client.close()
    except Exception as exc:
        logger.warning(
            "Cleanup failed for sys_id=%s: %s: %s",
            client.bundle.tenant_id,
            type(exc).__name__,
            exc,
        )
        return f"cleanup failed for sys_id {client.bundle.tenant_id}: {exc}"
    return None


class TenantRegistry:
    """Concurrency-safe store of per-tenant signing clients.

    Constructed once at process start and passed to request handlers.
    There is no implicit teardown; call close_all() on shutdown.
    """

    def __init__(self, factory: ClientFactory | None = None):
        self.factory = factory or ClientFactory()
        self._entries: dict[str, RegistryEntry] = {}
        self._lock = ReadWriteLock()

    def register(self, bundle: CredentialBundle) -> SigningClient:
        """Register (or replace) a tenant's credentials.

        The client is built outside the lock. The displaced client, if
        any, is closed before this returns.

        Raises:
            KeyMaterialError: if the private key cannot be parsed.
        """
        client = self.factory.build(bundle)
        entry = RegistryEntry(tenant_id=bundle.tenant_id, bundle=bundle, client=client)

        with self._lock.write():
            previous = self._entries.get(bundle.tenant_id)
            self._entries[bundle.tenant_id] = entry

        if previous is not None:
            logger.info("Replacing client for sys_id=%s", bundle.tenant_id)
            _close_client(previous.client)

        logger.info(
            "Registered sys_id=%s backend=%s environment=%s",
            bundle.tenant_id,
            client.backend_name,
            bundle.environment.value,
        )
        return client

    def lookup(self, tenant_id: str) -> SigningClient:
        """Return the active client for tenant_id.

        Raises:
            NotFoundError: if the tenant is not registered.
        """
        return self.get_entry(tenant_id).client

    def get_bundle(self, tenant_id: str) -> CredentialBundle:
        """Return the credential bundle for tenant_id."""
        return self.get_entry(tenant_id).bundle

    def get_entry(self, tenant_id: str) -> RegistryEntry:
        """Return bundle and client for tenant_id from a single read.

        Raises:
            NotFoundError: if the tenant is not registered.
        """
        with self._lock.read():
            entry = self._entries.get(tenant_id)
        if entry is None:
            raise NotFoundError(tenant_id)
        return entry

    def revoke(self, tenant_id: str) -> list[str]:
        """Remove a tenant and release its client's resources.

        Cleanup runs synchronously after the entry is gone; cleanup errors
        never block removal.

        Returns:
            Cleanup warnings. Empty list = clean.

        Raises:
            NotFoundError: if the tenant is not registered.
        """
        with self._lock.write():
            entry = self._entries.pop(tenant_id, None)
        if entry is None:
            raise NotFoundError(tenant_id)

        warnings: list[str] = []
        error = _close_client(entry.client)
        if error:
            warnings.append(error)

        logger.info("Revoked sys_id=%s", tenant_id)
        return warnings

    def list(self) -> list[TenantSummary]:
        """Snapshot of registered tenants. Order is not guaranteed."""
        with self._lock.read():
            entries = list(self._entries.values())
        return [
            TenantSummary(
                tenant_id=e.tenant_id,
                product_id=e.bundle.product_id,
                environment=e.bundle.environment,
                backend=e.client.backend_name,
            )
            for e in entries
        ]

    def close_all(self) -> list[str]:
        """Revoke every tenant. Returns accumulated cleanup warnings."""
        with self._lock.write():
            entries = list(self._entries.values())
            self._entries.clear()

        warnings: list[str] = []
        for entry in entries:
            error = _close_client(entry.client)
            if error:
                warnings.append(error)
        return warnings

    def __contains__(self, tenant_id: object) -> bool:
        with self._lock.read():
            return tenant_id in self._entries

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)
