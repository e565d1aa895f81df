"""Tests for the HTTP client — endpoint shapes and error mapping."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from talos.config import ServerConfig
from talos.errors import TalosAPIError, TalosTransportError
from talos.tui.client import TalosClient


@pytest.fixture
def client():
    return TalosClient("http://127.0.0.1:8080/")


def _sent_json(mock: AsyncMock) -> dict:
    return mock.call_args.kwargs["json"]


class TestConstruction:
    def test_strips_trailing_slash(self, client):
        assert client.base_url == "http://127.0.0.1:8080"

    def test_from_config(self):
        cfg = ServerConfig(url="https://vault.local", timeout=3.0)
        client = TalosClient.from_config(cfg)
        assert client.base_url == "https://vault.local"


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_error_field_becomes_message(self, client):
        resp = httpx.Response(401, json={"error": "Invalid master key"})
        with patch.object(client._client, "request", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(TalosAPIError) as exc:
                await client.login("wrong")
        assert exc.value.message == "Invalid master key"
        assert exc.value.status_code == 401

    @pytest.mark.asyncio
    async def test_plain_string_body(self, client):
        resp = httpx.Response(400, json="Path already exists")
        with patch.object(client._client, "request", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(TalosAPIError, match="Path already exists"):
                await client.save("a", "pw")

    @pytest.mark.asyncio
    async def test_no_body_uses_operation_message(self, client):
        resp = httpx.Response(500, text="")
        with patch.object(client._client, "request", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(TalosAPIError, match="Save failed"):
                await client.save("a", "pw")

    @pytest.mark.asyncio
    async def test_connection_error_is_transport(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("Connection refused"),
        ):
            with pytest.raises(TalosTransportError):
                await client.decrypt("Work/gitlab")

    @pytest.mark.asyncio
    async def test_timeout_is_transport(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            side_effect=httpx.ReadTimeout("timed out"),
        ):
            with pytest.raises(TalosTransportError):
                await client.auth_status()


class TestAuth:
    @pytest.mark.asyncio
    async def test_auth_status(self, client):
        body = {"initialized": True, "authenticated": False}
        resp = httpx.Response(200, json=body)
        with patch.object(
            client._client, "request", new_callable=AsyncMock, return_value=resp
        ) as mock_req:
            assert await client.auth_status() == body
        assert mock_req.call_args.args == ("GET", "/api/auth/status")

    @pytest.mark.asyncio
    async def test_auth_status_non_object_is_transport(self, client):
        resp = httpx.Response(200, json=["initialized"])
        with patch.object(client._client, "request", new_callable=AsyncMock, return_value=resp):
            with pytest.raises(TalosTransportError):
                await client.auth_status()

    @pytest.mark.asyncio
    async def test_login_body(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json={}),
        ) as mock_req:
            await client.login("master")
        assert mock_req.call_args.args == ("POST", "/api/auth/login")
        assert _sent_json(mock_req) == {"key": "master"}

    @pytest.mark.asyncio
    async def test_logout_never_raises(self, client):
        with patch.object(
            client._client,
            "post",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("down"),
        ):
            await client.logout()

    @pytest.mark.asyncio
    async def test_import_body(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json={}),
        ) as mock_req:
            await client.import_key("PRIVATE", "phrase")
        assert mock_req.call_args.args[1] == "/api/initialize/import"
        assert _sent_json(mock_req) == {"key": "PRIVATE", "passphrase": "phrase"}


class TestRecords:
    @pytest.mark.asyncio
    async def test_decrypt_json_string(self, client):
        resp = httpx.Response(200, json="__TALOS_HIDDEN_SECRET__\nUser: bob")
        with patch.object(
            client._client, "request", new_callable=AsyncMock, return_value=resp
        ) as mock_req:
            blob = await client.decrypt("Work/gitlab")
        assert blob == "__TALOS_HIDDEN_SECRET__\nUser: bob"
        assert _sent_json(mock_req) == {"path": "Work/gitlab", "reveal": False}

    @pytest.mark.asyncio
    async def test_decrypt_plain_text(self, client):
        resp = httpx.Response(200, text="pw\nUser: bob")
        with patch.object(client._client, "request", new_callable=AsyncMock, return_value=resp):
            assert await client.decrypt("x", reveal=True) == "pw\nUser: bob"

    @pytest.mark.asyncio
    async def test_decrypt_structured_body_is_serialized(self, client):
        resp = httpx.Response(200, json={"unexpected": 1})
        with patch.object(client._client, "request", new_callable=AsyncMock, return_value=resp):
            assert json.loads(await client.decrypt("x")) == {"unexpected": 1}

    @pytest.mark.asyncio
    async def test_save_body(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json={}),
        ) as mock_req:
            await client.save("Work/new", "pw", original_path="Work/old")
        assert _sent_json(mock_req) == {
            "path": "Work/new",
            "content": "pw",
            "original_path": "Work/old",
        }

    @pytest.mark.asyncio
    async def test_fetch_tree(self, client):
        tree = [{"name": "a", "path": "a", "is_dir": False, "children": []}]
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json=tree),
        ):
            assert await client.fetch_tree() == tree

    @pytest.mark.asyncio
    async def test_fetch_tree_unexpected_shape(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json={"oops": True}),
        ):
            assert await client.fetch_tree() == []


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, client):
        resp = httpx.Response(200, json={"storage": True, "bunker": True})
        with patch.object(client._client, "get", new_callable=AsyncMock, return_value=resp):
            assert await client.check_health() == {"storage": True, "bunker": True}

    @pytest.mark.asyncio
    async def test_unreachable_fails_closed(self, client):
        with patch.object(
            client._client,
            "get",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("refused"),
        ):
            assert await client.check_health() == {"storage": False, "bunker": False}

    @pytest.mark.asyncio
    async def test_malformed_fails_closed(self, client):
        resp = httpx.Response(200, text="not json")
        with patch.object(client._client, "get", new_callable=AsyncMock, return_value=resp):
            assert await client.check_health() == {"storage": False, "bunker": False}

    @pytest.mark.asyncio
    async def test_truthy_strings_are_not_true(self, client):
        resp = httpx.Response(200, json={"storage": "yes", "bunker": 1})
        with patch.object(client._client, "get", new_callable=AsyncMock, return_value=resp):
            assert await client.check_health() == {"storage": False, "bunker": False}


class TestSystem:
    @pytest.mark.asyncio
    async def test_version(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json={"version": "1.4.2"}),
        ):
            assert await client.fetch_version() == "1.4.2"

    @pytest.mark.asyncio
    async def test_version_unavailable(self, client):
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(404),
        ):
            assert await client.fetch_version() is None

    @pytest.mark.asyncio
    async def test_backup_writes_file(self, client, tmp_path):
        dest = tmp_path / "talos.tar.gz"
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, content=b"archive-bytes"),
        ):
            written = await client.backup(dest)
        assert written == dest
        assert dest.read_bytes() == b"archive-bytes"

    @pytest.mark.asyncio
    async def test_restore_uploads_multipart(self, client, tmp_path):
        src = tmp_path / "talos.tar.gz"
        src.write_bytes(b"archive")
        with patch.object(
            client._client,
            "request",
            new_callable=AsyncMock,
            return_value=httpx.Response(200, json={}),
        ) as mock_req:
            await client.restore(src)
        files = mock_req.call_args.kwargs["files"]
        assert files["backup"][0] == "talos.tar.gz"
        assert mock_req.call_args.args == ("POST", "/api/restore")
