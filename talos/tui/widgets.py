"""
Custom Textual widgets for the Talos TUI.

MessageDisplay — command echo, system output and errors in the main scroll.
SecretView — the open record: metadata in clear, password masked unless revealed.
StatusBar — bottom bar with storage/bunker LEDs, auth method and session countdown.
WelcomeBanner — per-mode banner (setup, login, active, unreachable).
"""

from __future__ import annotations

from rich.markup import escape
from textual.content import Content
from textual.widgets import Static

from talos.auth.lifecycle import AuthMethod, Mode
from talos.records.codec import SecretRecord, display_password
from talos.records.paths import record_name


class MessageDisplay(Static):
    """Renders a single line of output with role-based styling."""

    def __init__(
        self,
        content: str = "",
        role: str = "system",
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        self._role = role
        self._content = content
        super().__init__(
            Content.from_markup(self._format()),
            name=name,
            id=id,
            classes=classes,
        )

    def _format(self) -> str:
        if self._role == "user":
            return f"[cyan]> {escape(self._content)}[/cyan]"
        elif self._role == "error":
            return f"[red]{self._content}[/red]"
        elif self._role == "system":
            return f"[dim italic]{self._content}[/dim italic]"
        else:
            return self._content

    def update_content(self, text: str) -> None:
        self._content = text
        self.update(Content.from_markup(self._format()))


class SecretView(Static):
    """Viewer for the currently open record.

    Keeps only display strings. A revealed password is held until mask() is
    called (the app schedules that a few seconds after reveal).
    """

    DEFAULT_CSS = """
    SecretView {
        margin: 1 2;
        height: auto;
    }
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        self._path: str | None = None
        self._username = ""
        self._url = ""
        self._note = ""
        self._revealed: str | None = None
        super().__init__(
            Content.from_markup(self._format()),
            name=name,
            id=id,
            classes=classes,
        )

    @property
    def path(self) -> str | None:
        return self._path

    @property
    def is_revealed(self) -> bool:
        return self._revealed is not None

    def _format(self) -> str:
        if self._path is None:
            return "[dim]IDLE_SYSTEM[/dim]"

        lines = [
            f"[bold green]{escape(record_name(self._path))}[/bold green]",
            f"[dim italic]{escape(self._note) if self._note else 'No description.'}[/dim italic]",
            "",
        ]
        if self._url:
            lines.append(f"[dim]URL     [/dim] {escape(self._url)}")
        if self._username:
            lines.append(f"[dim]User    [/dim] {escape(self._username)}")
        password = escape(display_password(self._revealed))
        lines.append(f"[dim]Password[/dim] [bold]{password}[/bold]")
        return "\n".join(lines)

    def _refresh(self) -> None:
        self.update(Content.from_markup(self._format()))

    def show_record(self, path: str, record: SecretRecord) -> None:
        self._path = path
        self._username = record.username
        self._url = record.url
        self._note = record.note
        self._revealed = None
        self._refresh()

    def reveal(self, password: str) -> None:
        self._revealed = password
        self._refresh()

    def mask(self) -> None:
        self._revealed = None
        self._refresh()

    def clear(self) -> None:
        self._path = None
        self._username = self._url = self._note = ""
        self._revealed = None
        self._refresh()


class StatusBar(Static):
    """Bottom status bar: backend LEDs, frozen flag, auth method, countdown."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: 1;
        background: $surface;
        padding: 0 1;
    }
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        self._storage = False
        self._bunker = False
        self._mode = Mode.UNREACHABLE
        self._auth_method: AuthMethod | None = None
        self._remaining: int | None = None
        self._version: str | None = None
        super().__init__(
            Content.from_markup(self._format()),
            name=name,
            id=id,
            classes=classes,
        )

    @staticmethod
    def _led(ok: bool) -> str:
        return "[green]●[/green]" if ok else "[red]●[/red]"

    @property
    def frozen(self) -> bool:
        return not (self._storage and self._bunker)

    def _format(self) -> str:
        parts = [
            f"{self._led(self._storage)} storage {self._led(self._bunker)} bunker",
        ]
        if self.frozen:
            parts.append("[bold red]FROZEN[/bold red]")

        if self._mode is Mode.ACTIVE:
            method = self._auth_method.label if self._auth_method else "SESSION"
            color = "yellow" if self._auth_method is AuthMethod.MUTUAL_TLS else "white"
            parts.append(f"[{color}]{method}[/{color}]")
            if self._remaining is not None:
                minutes, seconds = divmod(max(self._remaining, 0), 60)
                parts.append(f"session {minutes:02d}:{seconds:02d}")
        elif self._mode is Mode.AWAITING_LOGIN:
            parts.append("locked")
        elif self._mode is Mode.SETUP:
            parts.append("uninitialized")
        else:
            parts.append("[red]disconnected[/red]")

        if self._version:
            parts.append(f"v{self._version}")
        return " | ".join(parts)

    def _refresh(self) -> None:
        self.update(Content.from_markup(self._format()))

    def set_health(self, storage: bool, bunker: bool) -> None:
        self._storage = storage
        self._bunker = bunker
        self._refresh()

    def set_session(
        self,
        mode: Mode,
        auth_method: AuthMethod | None = None,
        remaining: int | None = None,
    ) -> None:
        self._mode = mode
        self._auth_method = auth_method
        self._remaining = remaining
        self._refresh()

    def set_version(self, version: str | None) -> None:
        self._version = version
        self._refresh()


_BANNERS: dict[Mode, str] = {
    Mode.SETUP: (
        "[bold]Talos — first run[/bold]\n\n"
        "No key store exists on {url} yet.\n"
        "[dim]/mode generate[/dim] create a new master key "
        "([dim]/generate \\[length] \\[--no-symbols][/dim], then [dim]/submit[/dim])\n"
        "[dim]/mode import[/dim] adopt an existing private key "
        "([dim]/keyfile <path>[/dim], [dim]/passphrase <text>[/dim], then [dim]/submit[/dim])"
    ),
    Mode.AWAITING_LOGIN: (
        "[bold]Talos — locked[/bold]\n\n"
        "Enter the master key for {url} and press Enter."
    ),
    Mode.ACTIVE: (
        "[bold]Talos[/bold]\n\n"
        "Session active on {url}.\n"
        "[dim]/ls[/dim] to list secrets, [dim]/help[/dim] for commands."
    ),
    Mode.UNREACHABLE: (
        "[bold]Talos[/bold]\n\n"
        "Cannot reach {url}. Retrying in the background."
    ),
}


class WelcomeBanner(Static):
    """Startup banner for the current mode."""

    DEFAULT_CSS = """
    WelcomeBanner {
        margin: 1 2;
        padding: 1 2;
        border: solid $accent;
        height: auto;
    }
    """

    def __init__(
        self,
        mode: Mode,
        url: str = "",
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        self.mode = mode
        text = _BANNERS[mode].format(url=escape(url))
        super().__init__(
            Content.from_markup(text),
            name=name,
            id=id,
            classes=classes,
        )
