"""
HTTP client for the Talos web service.

Wraps httpx.AsyncClient around the /api endpoints. Mutating and decrypting
calls raise TalosAPIError (server said no) or TalosTransportError (no
response); the health probe and logout never raise.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from talos.config import ServerConfig
from talos.errors import TalosAPIError, TalosTransportError

logger = logging.getLogger(__name__)

FAIL_CLOSED_HEALTH: dict[str, bool] = {"storage": False, "bunker": False}


def _error_message(resp: httpx.Response, fallback: str) -> str:
    """Pull the user-facing message out of an error response."""
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, str) and body:
        return body
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback


class TalosClient:
    """Async client for the Talos HTTP API."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8080",
        *,
        timeout: float = 10.0,
        cert: str | tuple[str, str] | None = None,
        verify: str | bool = True,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            cert=cert,
            verify=verify,
        )

    @classmethod
    def from_config(cls, cfg: ServerConfig) -> TalosClient:
        return cls(cfg.url, timeout=cfg.timeout, cert=cfg.cert, verify=cfg.verify)

    async def close(self) -> None:
        await self._client.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        failure: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TalosTransportError(str(e)) from e
        if not 200 <= resp.status_code < 300:
            message = _error_message(resp, failure)
            logger.info("%s %s -> HTTP %d", method, path, resp.status_code)
            raise TalosAPIError(message, resp.status_code)
        return resp

    async def _json(self, method: str, path: str, failure: str, **kwargs: Any) -> Any:
        resp = await self._send(method, path, failure, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise TalosTransportError(f"{failure}: invalid response body") from e

    # -- auth ---------------------------------------------------------------

    async def auth_status(self) -> dict[str, Any]:
        """GET /api/auth/status — {initialized, authenticated, auth_method}."""
        data = await self._json("GET", "/api/auth/status", "Status check failed")
        if not isinstance(data, dict):
            raise TalosTransportError("Status check failed: invalid response body")
        return dict(data)

    async def login(self, key: str) -> None:
        """POST /api/auth/login."""
        await self._send("POST", "/api/auth/login", "Login failed", json={"key": key})

    async def logout(self) -> None:
        """POST /api/auth/logout — best effort."""
        try:
            await self._client.post("/api/auth/logout")
        except Exception as e:
            logger.debug("Logout request failed: %s", e)

    async def initialize(self, key: str) -> None:
        """POST /api/initialize — generate a new store keyed by ``key``."""
        await self._send("POST", "/api/initialize", "Initialization failed", json={"key": key})

    async def import_key(self, private_key: str, passphrase: str) -> None:
        """POST /api/initialize/import — adopt an existing private key."""
        await self._send(
            "POST",
            "/api/initialize/import",
            "Import failed",
            json={"key": private_key, "passphrase": passphrase},
        )

    # -- records ------------------------------------------------------------

    async def decrypt(self, path: str, reveal: bool = False) -> str:
        """POST /api/decrypt — return the raw record blob.

        With reveal=False the server answers with the hidden marker on line 0.
        """
        resp = await self._send(
            "POST", "/api/decrypt", "Decryption failed", json={"path": path, "reveal": reveal}
        )
        try:
            data = resp.json()
        except ValueError:
            return resp.text
        return data if isinstance(data, str) else json.dumps(data)

    async def save(self, path: str, content: str, original_path: str | None = None) -> None:
        """POST /api/save."""
        await self._send(
            "POST",
            "/api/save",
            "Save failed",
            json={"path": path, "content": content, "original_path": original_path},
        )

    async def delete(self, path: str) -> None:
        """POST /api/delete."""
        await self._send("POST", "/api/delete", "Delete failed", json={"path": path})

    async def create_category(self, path: str) -> None:
        """POST /api/create_category."""
        await self._send(
            "POST", "/api/create_category", "Create category failed", json={"path": path}
        )

    async def fetch_tree(self) -> list[dict[str, Any]]:
        """GET /api/tree — nested [{name, path, is_dir, children}]."""
        data = await self._json("GET", "/api/tree", "Tree listing failed")
        return list(data) if isinstance(data, list) else []

    # -- system -------------------------------------------------------------

    async def check_health(self) -> dict[str, bool]:
        """GET /api/health — fail-closed {storage, bunker}."""
        try:
            resp = await self._client.get("/api/health", timeout=5)
            data = resp.json()
        except Exception as e:
            logger.debug("Health probe failed: %s", e)
            return dict(FAIL_CLOSED_HEALTH)
        if not isinstance(data, dict):
            return dict(FAIL_CLOSED_HEALTH)
        return {
            "storage": data.get("storage") is True,
            "bunker": data.get("bunker") is True,
        }

    async def fetch_version(self) -> str | None:
        """GET /api/version — server version string or None."""
        try:
            data = await self._json("GET", "/api/version", "Version check failed")
        except (TalosAPIError, TalosTransportError):
            return None
        if isinstance(data, dict) and data.get("version"):
            return str(data["version"])
        return None

    async def fetch_audit_logs(self) -> list[dict[str, Any]]:
        """GET /api/audit — most recent audit entries."""
        data = await self._json("GET", "/api/audit", "Audit log fetch failed")
        return list(data) if isinstance(data, list) else []

    async def backup(self, dest: Path | str) -> Path:
        """GET /api/backup — write the archive to ``dest``."""
        resp = await self._send("GET", "/api/backup", "Backup failed")
        target = Path(dest)
        target.write_bytes(resp.content)
        logger.info("Backup written to %s (%d bytes)", target, len(resp.content))
        return target

    async def restore(self, src: Path | str) -> None:
        """POST /api/restore — upload a backup archive as multipart ``backup``."""
        source = Path(src)
        with source.open("rb") as fh:
            await self._send(
                "POST",
                "/api/restore",
                "Restore failed",
                files={"backup": (source.name, fh, "application/octet-stream")},
            )
