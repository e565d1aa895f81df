"""
HealthGate — runs an action only when the backend can actually service it.

Every guarded call re-probes /api/health. If storage is unmounted or the
key bunker is sealed, the action is skipped and the UI shows the frozen
indicator instead of an error.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HealthProbe(Protocol):
    async def check_health(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class HealthStatus:
    storage: bool = False
    bunker: bool = False

    @property
    def healthy(self) -> bool:
        return self.storage and self.bunker

    @classmethod
    def from_dict(cls, data: Any) -> HealthStatus:
        if not isinstance(data, dict):
            return cls()
        return cls(storage=data.get("storage") is True, bunker=data.get("bunker") is True)


class HealthGate:
    """Fail-closed liveness gate with a frozen/unfrozen indicator."""

    def __init__(
        self,
        probe: HealthProbe,
        on_status: Callable[[HealthStatus], None] | None = None,
    ) -> None:
        self._probe = probe
        self._listeners: list[Callable[[HealthStatus], None]] = []
        if on_status is not None:
            self._listeners.append(on_status)
        self._last = HealthStatus()

    def subscribe(self, listener: Callable[[HealthStatus], None]) -> None:
        self._listeners.append(listener)

    @property
    def last_status(self) -> HealthStatus:
        return self._last

    @property
    def frozen(self) -> bool:
        return not self._last.healthy

    async def probe(self) -> HealthStatus:
        """Query the liveness endpoint. Any failure counts as unhealthy."""
        try:
            status = HealthStatus.from_dict(await self._probe.check_health())
        except Exception as e:
            logger.debug("Health probe raised: %s", e)
            status = HealthStatus()

        if status.healthy != self._last.healthy:
            logger.info(
                "Backend %s (storage=%s bunker=%s)",
                "available" if status.healthy else "frozen",
                status.storage,
                status.bunker,
            )
        self._last = status
        for listener in self._listeners:
            listener(status)
        return status

    async def guard(self, action: Callable[[], Awaitable[T]]) -> T | None:
        """Run ``action`` if the backend is fully available, else skip it."""
        status = await self.probe()
        if not status.healthy:
            return None
        return await action()
