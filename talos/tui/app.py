"""
TalosApp — main Textual application for the Talos client.

The screen follows the auth lifecycle: setup commands on a fresh install, a
masked key prompt when locked, slash commands once the session is active.
Every secret-revealing or mutating command goes through the HealthGate.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rich.markup import escape
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.timer import Timer
from textual.widgets import Footer, Header, Input

from talos.auth.lifecycle import AuthLifecycleController, Mode, SessionState
from talos.config import Config, get_config
from talos.errors import TalosError, user_message
from talos.health.gate import HealthGate, HealthStatus
from talos.records.codec import SecretRecord
from talos.tui.client import TalosClient
from talos.tui.commands import display_command, handle_command, is_command
from talos.tui.inflight import RequestTracker
from talos.tui.screens import ConfirmScreen, EditRecordScreen, EditResult
from talos.tui.widgets import MessageDisplay, SecretView, StatusBar, WelcomeBanner

logger = logging.getLogger(__name__)

PLACEHOLDERS: dict[Mode, str] = {
    Mode.SETUP: "/mode generate | /mode import | /help",
    Mode.AWAITING_LOGIN: "Master key",
    Mode.ACTIVE: "Type a command (/help)...",
    Mode.UNREACHABLE: "Waiting for server... (/quit to exit)",
}


class TalosApp(App):
    """Terminal client for a Talos secret store."""

    TITLE = "Talos"
    CSS = """
    #main-scroll {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+l", "logout", "Logout", show=True, priority=True),
        Binding("ctrl+c", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        config: Config | None = None,
        client: TalosClient | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.config = config or get_config()
        self.client = client or TalosClient.from_config(self.config.server)
        self.controller = AuthLifecycleController(
            self.client,
            idle_timeout=self.config.session.idle_timeout,
            reload_delay=self.config.session.reload_delay,
        )
        self.gate = HealthGate(self.client)
        self.requests = RequestTracker()
        self._rendered_mode: Mode | None = None
        self._background_task: asyncio.Task | None = None
        self._mask_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        # App.query_one only searches the active screen; these stay reachable under modals.
        self._main_scroll = VerticalScroll(id="main-scroll")
        self._command_input = Input(placeholder=PLACEHOLDERS[Mode.UNREACHABLE], id="command-input")
        self._status_bar = StatusBar(id="status-bar")
        yield Header()
        yield self._main_scroll
        yield self._command_input
        yield self._status_bar
        yield Footer()

    @property
    def status_bar(self) -> StatusBar:
        return self._status_bar

    @property
    def secret_view(self) -> SecretView:
        return self._main_scroll.query_one("#secret-view", SecretView)

    async def on_mount(self) -> None:
        """Derive the mode from the server and start background checks."""
        self.controller.subscribe(self._on_state)
        self.gate.subscribe(self._on_health)
        self._background_task = asyncio.create_task(self._background_loop())
        await self.controller.start()
        await self.gate.probe()
        self.status_bar.set_version(await self.client.fetch_version())

    async def _background_loop(self) -> None:
        """Retry the status while unreachable; keep the frozen indicator fresh."""
        while True:
            await asyncio.sleep(self.config.session.reconnect_interval)
            if self.controller.state.mode is Mode.UNREACHABLE:
                await self.controller.reload()
            await self.gate.probe()

    # -- state rendering ----------------------------------------------------

    def _on_state(self, state: SessionState) -> None:
        remaining = state.remaining_seconds if state.mode is Mode.ACTIVE else None
        self.status_bar.set_session(state.mode, state.auth_method, remaining)
        if state.mode is not self._rendered_mode:
            self._rendered_mode = state.mode
            self.call_later(self._render_mode, state.mode)

    def _on_health(self, status: HealthStatus) -> None:
        self.status_bar.set_health(status.storage, status.bunker)

    async def _render_mode(self, mode: Mode) -> None:
        """Rebuild the main area for ``mode``. Anything previously shown is dropped."""
        if self._mask_timer is not None:
            self._mask_timer.stop()
            self._mask_timer = None
        while len(self.screen_stack) > 1:
            await self.pop_screen()
        await self._main_scroll.remove_children()
        await self._main_scroll.mount(WelcomeBanner(mode, self.client.base_url))
        if mode is Mode.ACTIVE:
            await self._main_scroll.mount(SecretView(id="secret-view"))

        input_widget = self._command_input
        input_widget.password = mode is Mode.AWAITING_LOGIN
        input_widget.placeholder = PLACEHOLDERS[mode]
        input_widget.value = ""
        input_widget.focus()

    async def post_output(self, content: str, role: str = "system") -> None:
        await self._main_scroll.mount(MessageDisplay(content=content, role=role))
        self._main_scroll.scroll_end(animate=False)

    async def report_error(self, err: Exception) -> None:
        message = user_message(err)
        self.notify(message, severity="error")
        await self.post_output(escape(message), role="error")

    # -- input --------------------------------------------------------------

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Login attempt when locked, slash command otherwise."""
        raw = event.value
        event.input.value = ""
        mode = self.controller.state.mode

        if mode is Mode.AWAITING_LOGIN and not is_command(raw):
            await self._attempt_login(raw)
            return

        text = raw.strip()
        if not text:
            return

        await self.post_output(display_command(text), role="user")
        if text.startswith("/"):
            _handled, output = await handle_command(self, text)
            if output:
                await self.post_output(output)
            return

        await self.post_output("Commands start with /. Type /help for the list.")

    async def _attempt_login(self, key: str) -> None:
        if not key:
            return
        outcome = await self.controller.login(key)
        if not outcome.ok and outcome.error:
            self.notify(outcome.error, severity="error")
            await self.post_output(escape(outcome.error), role="error")

    # -- activity -----------------------------------------------------------

    async def on_event(self, event: events.Event) -> None:
        # Input events reach the app before any screen or widget sees them.
        if isinstance(event, (events.Key, events.MouseMove, events.MouseDown)):
            self.controller.record_activity()
        await super().on_event(event)

    # -- record flows -------------------------------------------------------

    def open_editor(
        self,
        path: str = "",
        record: SecretRecord | None = None,
        original_path: str | None = None,
    ) -> None:
        self.push_screen(EditRecordScreen(path, record, original_path), self.save_record)

    async def save_record(self, result: EditResult | None) -> None:
        """Callback from the edit form: save through the gate."""
        if result is None:
            return
        token = self.requests.begin(result.path)

        async def action() -> bool:
            await self.client.save(result.path, result.content, result.original_path)
            return True

        try:
            saved = await self.gate.guard(action)
        except TalosError as e:
            self.requests.finish(result.path, token)
            await self.report_error(e)
            return
        if saved and self.requests.finish(result.path, token):
            logger.info("Saved record %s", result.path)
            await self.post_output(f"SAVED: {escape(result.path)}")

    def confirm(self, question: str, on_yes: Any) -> None:
        """Ask ``question``; await ``on_yes()`` only if confirmed."""

        async def _answered(confirmed: bool | None) -> None:
            if not confirmed:
                await self.post_output("Cancelled.")
                return
            try:
                output = await on_yes()
            except TalosError as e:
                await self.report_error(e)
                return
            if output:
                await self.post_output(output)

        self.push_screen(ConfirmScreen(question), _answered)

    def reveal_password(self, password: str) -> None:
        """Show the password in the viewer, then mask it again."""
        self.secret_view.reveal(password)
        if self._mask_timer is not None:
            self._mask_timer.stop()
        self._mask_timer = self.set_timer(
            self.config.session.reveal_seconds, self._mask_password
        )

    def _mask_password(self) -> None:
        self._mask_timer = None
        for view in self._main_scroll.query(SecretView):
            view.mask()

    # -- actions ------------------------------------------------------------

    async def action_logout(self) -> None:
        if self.controller.state.mode is Mode.ACTIVE:
            await self.controller.logout()

    async def on_unmount(self) -> None:
        """Clean up on exit."""
        if self._background_task:
            self._background_task.cancel()
        await self.controller.close()
        await self.client.close()
