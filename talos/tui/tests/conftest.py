"""Test fixtures for the Talos TUI."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from talos.tui.client import TalosClient

HIDDEN_BLOB = "__TALOS_HIDDEN_SECRET__\nURL: https://gitlab.example.com\nUser: bob\nwork account"
REVEALED_BLOB = "s3cret-pw\nURL: https://gitlab.example.com\nUser: bob\nwork account"


@pytest.fixture
def mock_client():
    """A mocked TalosClient for an initialized, unlocked, healthy server."""
    client = MagicMock(spec=TalosClient)
    client.base_url = "http://127.0.0.1:8080"
    client.auth_status = AsyncMock(
        return_value={"initialized": True, "authenticated": True, "auth_method": "password"}
    )
    client.check_health = AsyncMock(return_value={"storage": True, "bunker": True})
    client.fetch_version = AsyncMock(return_value="1.2.0")
    client.login = AsyncMock()
    client.logout = AsyncMock()
    client.initialize = AsyncMock()
    client.import_key = AsyncMock()

    async def decrypt(path, reveal=False):
        return REVEALED_BLOB if reveal else HIDDEN_BLOB

    client.decrypt = AsyncMock(side_effect=decrypt)
    client.save = AsyncMock()
    client.delete = AsyncMock()
    client.create_category = AsyncMock()
    client.fetch_tree = AsyncMock(
        return_value=[
            {
                "name": "Work",
                "path": "Work",
                "is_dir": True,
                "children": [
                    {"name": "gitlab", "path": "Work/gitlab", "is_dir": False, "children": []},
                ],
            },
        ]
    )
    client.fetch_audit_logs = AsyncMock(return_value=[])
    client.backup = AsyncMock()
    client.restore = AsyncMock()
    client.close = AsyncMock()
    return client
