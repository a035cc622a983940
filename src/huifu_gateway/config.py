"""Configuration management for the Huifu gateway."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

PRODUCTION_BASE_URL = "https://api.huifu.com"
TEST_BASE_URL = "https://spin.cloudpnr.com"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class ProviderSettings:
    """
    Settings the provider backend needs to open a session.

    Attributes:
        base_url: Production API endpoint.
        test_base_url: Test (sandbox) API endpoint.
        public_key: Huifu platform public key used to verify response
            signatures. When None the provider backend cannot be built and
            every registration falls back to a simulated client.
        timeout_seconds: Client-side timeout for one call. Default 30.
        force_simulated: Skip the provider attempt entirely.
    """

    base_url: str = PRODUCTION_BASE_URL
    test_base_url: str = TEST_BASE_URL
    public_key: str | None = None
    timeout_seconds: float = 30.0
    force_simulated: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.timeout_seconds > 300:
            raise ValueError("timeout_seconds cannot exceed 300")
        for url in (self.base_url, self.test_base_url):
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"base url must be http(s): {url!r}")

    def base_url_for(self, production: bool) -> str:
        """Return the endpoint for the given environment."""
        return self.base_url if production else self.test_base_url


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    host: str
    port: int
    debug: bool
    log_level: str
    cors_allow_origins: tuple[str, ...]
    provider: ProviderSettings

    @property
    def HOST(self) -> str:
        """Alias for host."""
        return self.host

    @property
    def PORT(self) -> int:
        """Alias for port."""
        return self.port

    @property
    def DEBUG(self) -> bool:
        """Alias for debug."""
        return self.debug

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            debug=_env_flag("DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_allow_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            provider=ProviderSettings(
                base_url=os.getenv("HUIFU_BASE_URL", PRODUCTION_BASE_URL),
                test_base_url=os.getenv("HUIFU_TEST_BASE_URL", TEST_BASE_URL),
                public_key=os.getenv("HUIFU_PUBLIC_KEY") or None,
                timeout_seconds=float(os.getenv("HUIFU_TIMEOUT_SECONDS", "30")),
                force_simulated=_env_flag("HUIFU_FORCE_SIMULATED"),
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
