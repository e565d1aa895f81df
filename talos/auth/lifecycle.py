"""
AuthLifecycleController — decides which screen the client is allowed to show.

The server is the only source of truth for authentication. Every transition
(initialize, import, login, logout, expiry) asks the server to change its
state and then reloads: the status is fetched again and the mode re-derived
from scratch. No local flag ever says "logged in".

    Start ── initialized=false ─────────────────────▶ SETUP
          ├─ initialized, not authenticated ────────▶ AWAITING_LOGIN
          ├─ initialized, authenticated ────────────▶ ACTIVE (timer running)
          └─ status unreachable ────────────────────▶ UNREACHABLE
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from talos.auth.timer import DEFAULT_BUDGET, SessionTimer
from talos.errors import TalosAPIError, TalosError, ValidationError, user_message
from talos.records.passgen import GeneratorOptions, generate_from

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    SETUP = "setup"
    AWAITING_LOGIN = "awaiting_login"
    ACTIVE = "active"
    UNREACHABLE = "unreachable"


class AuthMethod(enum.Enum):
    MASTER_KEY = "password"
    MUTUAL_TLS = "mtls"

    @classmethod
    def parse(cls, raw: Any) -> AuthMethod | None:
        if raw in ("password", "master_key"):
            return cls.MASTER_KEY
        if raw == "mtls":
            return cls.MUTUAL_TLS
        return None

    @property
    def label(self) -> str:
        return "DIPLOMATIC" if self is AuthMethod.MUTUAL_TLS else "MASTER KEY"


@dataclass(frozen=True)
class AuthStatus:
    initialized: bool = False
    authenticated: bool = False
    auth_method: AuthMethod | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthStatus:
        return cls(
            initialized=data.get("initialized") is True,
            authenticated=data.get("authenticated") is True,
            auth_method=AuthMethod.parse(data.get("auth_method")),
        )


@dataclass(frozen=True)
class SessionState:
    mode: Mode
    remaining_seconds: int = 0
    auth_method: AuthMethod | None = None


def classify(status: AuthStatus) -> Mode:
    """Map the server-reported flags onto exactly one UI mode."""
    if not status.initialized:
        return Mode.SETUP
    if not status.authenticated:
        return Mode.AWAITING_LOGIN
    return Mode.ACTIVE


@dataclass(frozen=True)
class Outcome:
    ok: bool
    error: str | None = None


OK = Outcome(True)


class SetupMode(enum.Enum):
    GENERATE = "generate"
    IMPORT = "import"


@dataclass
class GenerateInput:
    options: GeneratorOptions = field(default_factory=GeneratorOptions)
    key: str = ""


@dataclass
class ImportInput:
    private_key: str = ""
    passphrase: str = ""


@dataclass
class SetupForm:
    """First-run form. Each sub-mode keeps its own input state."""

    mode: SetupMode = SetupMode.GENERATE
    generate: GenerateInput = field(default_factory=GenerateInput)
    imported: ImportInput = field(default_factory=ImportInput)

    def select(self, mode: SetupMode) -> None:
        self.mode = mode

    def regenerate(self, options: GeneratorOptions | None = None) -> str:
        if options is not None:
            self.generate.options = options
        self.generate.key = generate_from(self.generate.options)
        return self.generate.key


class AuthLifecycleController:
    """Owns SessionState. UI code subscribes and renders whatever mode it gets."""

    def __init__(
        self,
        client: Any,
        *,
        idle_timeout: int = DEFAULT_BUDGET,
        reload_delay: float = 1.5,
        tick_interval: float | None = 1.0,
    ) -> None:
        self.client = client
        self.idle_timeout = idle_timeout
        self.reload_delay = reload_delay
        self.tick_interval = tick_interval
        self.setup_form = SetupForm()
        self.timer: SessionTimer | None = None
        self._state = SessionState(Mode.UNREACHABLE)
        self._listeners: list[Callable[[SessionState], None]] = []
        self._reload_task: asyncio.Task | None = None
        self._setup_submitted = False
        self._logging_out = False

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: Callable[[SessionState], None]) -> None:
        self._listeners.append(listener)

    def _publish(self, state: SessionState) -> SessionState:
        self._state = state
        for listener in self._listeners:
            listener(state)
        return state

    # -- start / reload -----------------------------------------------------

    async def start(self) -> SessionState:
        """Fetch the auth status and enter exactly one mode."""
        try:
            status = AuthStatus.from_dict(await self.client.auth_status())
        except TalosError as e:
            logger.warning("Auth status unavailable: %s", e)
            return self._publish(SessionState(Mode.UNREACHABLE))

        mode = classify(status)
        logger.info("Auth status: mode=%s method=%s", mode.value, status.auth_method)
        if mode is not Mode.ACTIVE:
            return self._publish(SessionState(mode))

        self.timer = SessionTimer(
            self.idle_timeout,
            self._on_expire,
            interval=self.tick_interval,
            on_change=self._on_tick,
        )
        self.timer.start()
        return self._publish(
            SessionState(Mode.ACTIVE, self.idle_timeout, status.auth_method)
        )

    async def reload(self) -> SessionState:
        """Drop all client-side session state and re-derive it from the server."""
        await self._stop_timer()
        self.setup_form = SetupForm()
        self._setup_submitted = False
        return await self.start()

    def schedule_reload(self, delay: float | None = None) -> asyncio.Task:
        """Reload after ``delay`` seconds (defaults to reload_delay).

        A reload that is still pending is reused rather than duplicated.
        """
        if self._reload_task is not None and not self._reload_task.done():
            return self._reload_task
        wait = self.reload_delay if delay is None else delay

        async def _later() -> None:
            if wait:
                await asyncio.sleep(wait)
            await self.reload()

        self._reload_task = asyncio.create_task(_later())
        return self._reload_task

    async def close(self) -> None:
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
        await self._stop_timer()

    async def _stop_timer(self) -> None:
        if self.timer is not None:
            await self.timer.stop()
            self.timer = None

    # -- timer --------------------------------------------------------------

    def record_activity(self) -> None:
        if self.timer is not None:
            self.timer.activity()

    def _on_tick(self, remaining: int) -> None:
        if self._state.mode is Mode.ACTIVE:
            self._publish(replace(self._state, remaining_seconds=remaining))

    async def _on_expire(self) -> None:
        logger.info("Session expired, logging out")
        await self.logout()

    # -- transitions --------------------------------------------------------

    async def initialize(self, passphrase: str | None = None) -> Outcome:
        """Generate sub-mode: create the store with a fresh master key."""
        key = passphrase if passphrase is not None else self.setup_form.generate.key
        if not key:
            return Outcome(False, "Generate a master key first.")
        return await self._setup_call(self.client.initialize, key)

    async def import_key(
        self, private_key: str | None = None, passphrase: str | None = None
    ) -> Outcome:
        """Import sub-mode: adopt an existing private key."""
        form = self.setup_form.imported
        key = private_key if private_key is not None else form.private_key
        phrase = passphrase if passphrase is not None else form.passphrase
        if not key.strip():
            return Outcome(False, "A private key is required.")
        return await self._setup_call(self.client.import_key, key, phrase)

    async def submit_setup(self) -> Outcome:
        if self.setup_form.mode is SetupMode.IMPORT:
            return await self.import_key()
        return await self.initialize()

    async def _setup_call(self, call: Callable[..., Any], *args: str) -> Outcome:
        if self._state.mode is not Mode.SETUP:
            return Outcome(False, "System is already initialized.")
        if self._setup_submitted:
            return Outcome(False, "Setup already submitted, waiting for the server.")
        self._setup_submitted = True
        try:
            await call(*args)
        except TalosError as e:
            logger.warning("Setup failed: %s", e)
            self._setup_submitted = False
            return Outcome(False, user_message(e))
        logger.info("Setup accepted, reloading in %.1fs", self.reload_delay)
        self.schedule_reload()
        return OK

    async def login(self, key: str) -> Outcome:
        """Post a candidate master key. Success reloads into ACTIVE."""
        if not key:
            return Outcome(False, user_message(ValidationError("Master key is required.")))
        try:
            await self.client.login(key)
        except TalosAPIError as e:
            logger.info("Login rejected")
            return Outcome(False, f"ACCESS DENIED: {e.message}")
        except TalosError as e:
            return Outcome(False, user_message(e))
        await self.reload()
        return OK

    async def logout(self) -> SessionState:
        """Best-effort logout, then reload (lands in AWAITING_LOGIN).

        A logout that arrives while another is in flight is a no-op.
        """
        if self._logging_out:
            return self._state
        self._logging_out = True
        try:
            await self._stop_timer()
            await self.client.logout()
            return await self.reload()
        finally:
            self._logging_out = False
