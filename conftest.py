"""
Root-level shared test fixtures.

Inherited by the records, auth, health and tui test suites as well as the
top-level tests directory.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove TALOS_* env vars that leak between tests."""
    for key in [
        "TALOS_URL",
        "TALOS_TIMEOUT",
        "TALOS_CLIENT_CERT",
        "TALOS_CLIENT_KEY",
        "TALOS_CA_BUNDLE",
        "TALOS_VERIFY_TLS",
        "TALOS_IDLE_TIMEOUT",
        "TALOS_RELOAD_DELAY",
        "TALOS_REVEAL_SECONDS",
        "TALOS_RECONNECT_INTERVAL",
        "TALOS_LOG_LEVEL",
        "TALOS_LOG_FILE",
    ]:
        monkeypatch.delenv(key, raising=False)
