"""
Centralized configuration for the Talos client.

All configuration is loaded from environment variables with sensible defaults.

Usage:
    from talos.config import get_config
    cfg = get_config()
    print(cfg.server.url)          # "http://127.0.0.1:8080" or $TALOS_URL
    print(cfg.session.idle_timeout)  # 900
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


@dataclass(frozen=True)
class ServerConfig:
    """HTTP connection to the Talos web service."""

    url: str = "http://127.0.0.1:8080"
    timeout: float = 10.0
    client_cert: str = ""  # PEM certificate for mTLS; empty = master key auth only
    client_key: str = ""
    ca_bundle: str = ""
    verify_tls: bool = True

    @property
    def cert(self) -> str | tuple[str, str] | None:
        """Return an httpx-compatible ``cert`` argument."""
        if not self.client_cert:
            return None
        if self.client_key:
            return (self.client_cert, self.client_key)
        return self.client_cert

    @property
    def verify(self) -> str | bool:
        """Return an httpx-compatible ``verify`` argument."""
        if not self.verify_tls:
            return False
        return self.ca_bundle or True


@dataclass(frozen=True)
class SessionConfig:
    """Client-side session behaviour."""

    idle_timeout: int = 900
    reload_delay: float = 1.5
    reveal_seconds: float = 5.0
    reconnect_interval: float = 5.0


@dataclass(frozen=True)
class Config:
    """Top-level Talos client configuration."""

    server: ServerConfig = field(default_factory=ServerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    log_level: str = "WARNING"
    log_file: str = ""

    def with_url(self, url: str | None) -> Config:
        """Return a copy pointing at ``url`` (CLI override)."""
        if not url:
            return self
        return replace(self, server=replace(self.server, url=url.rstrip("/")))


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    server = ServerConfig(
        url=os.environ.get("TALOS_URL", "http://127.0.0.1:8080").rstrip("/"),
        timeout=float(os.environ.get("TALOS_TIMEOUT", "10")),
        client_cert=os.environ.get("TALOS_CLIENT_CERT", ""),
        client_key=os.environ.get("TALOS_CLIENT_KEY", ""),
        ca_bundle=os.environ.get("TALOS_CA_BUNDLE", ""),
        verify_tls=_env_bool("TALOS_VERIFY_TLS", True),
    )

    session = SessionConfig(
        idle_timeout=int(os.environ.get("TALOS_IDLE_TIMEOUT", "900")),
        reload_delay=float(os.environ.get("TALOS_RELOAD_DELAY", "1.5")),
        reveal_seconds=float(os.environ.get("TALOS_REVEAL_SECONDS", "5")),
        reconnect_interval=float(os.environ.get("TALOS_RECONNECT_INTERVAL", "5")),
    )

    return Config(
        server=server,
        session=session,
        log_level=os.environ.get("TALOS_LOG_LEVEL", "WARNING").upper(),
        log_file=os.environ.get("TALOS_LOG_FILE", ""),
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
