"""
Slash command registry for the Talos TUI.

Each command is available in a subset of modes (setup commands only before
initialization, record commands only in an active session).
Returns (handled: bool, output: str | None). Every TalosError raised by a
handler is turned into an error notification here.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from talos.auth.lifecycle import Mode, SetupMode
from talos.errors import TalosError, ValidationError, user_message
from talos.records.codec import decode
from talos.records.passgen import generate_from, parse_generator_args
from talos.records.paths import (
    flatten_tree,
    render_tree,
    validate_category,
    validate_record_path,
)

if TYPE_CHECKING:
    from talos.tui.app import TalosApp

VIEWER = "viewer"

ALL = frozenset(Mode)
SETUP = frozenset({Mode.SETUP})
ACTIVE = frozenset({Mode.ACTIVE})
CONNECTED = frozenset({Mode.SETUP, Mode.AWAITING_LOGIN, Mode.ACTIVE})

# Command registry: name → (handler_name, description, modes)
COMMANDS: dict[str, tuple[str, str, frozenset[Mode]]] = {
    "/mode": ("cmd_mode", "Setup: choose 'generate' or 'import'", SETUP),
    "/generate": ("cmd_generate", "Setup: generate a master key [length] [--no-symbols]", SETUP),
    "/keyfile": ("cmd_keyfile", "Setup: load a private key file to import", SETUP),
    "/passphrase": ("cmd_passphrase", "Setup: passphrase of the imported key", SETUP),
    "/submit": ("cmd_submit", "Setup: initialize the store", SETUP),
    "/ls": ("cmd_ls", "List secrets, optionally filtered", ACTIVE),
    "/show": ("cmd_show", "Open a secret (password stays hidden)", ACTIVE),
    "/reveal": ("cmd_reveal", "Show a password for a few seconds", ACTIVE),
    "/copy": ("cmd_copy", "Copy a password to the clipboard", ACTIVE),
    "/edit": ("cmd_edit", "Edit a secret", ACTIVE),
    "/new": ("cmd_new", "New secret [category]", ACTIVE),
    "/rm": ("cmd_rm", "Delete a secret", ACTIVE),
    "/mkdir": ("cmd_mkdir", "Create a category", ACTIVE),
    "/audit": ("cmd_audit", "Show the audit log", ACTIVE),
    "/backup": ("cmd_backup", "Download a backup archive to a file", ACTIVE),
    "/restore": ("cmd_restore", "Restore secrets from a backup archive", ACTIVE),
    "/genpass": ("cmd_genpass", "Generate a password [length] [--no-symbols]", ACTIVE),
    "/health": ("cmd_health", "Storage and bunker availability", CONNECTED),
    "/status": ("cmd_status", "Session and server summary", ALL),
    "/logout": ("cmd_logout", "End the session", ACTIVE),
    "/help": ("cmd_help", "Show available commands", ALL),
    "/quit": ("cmd_quit", "Exit the TUI", ALL),
    "/exit": ("cmd_quit", "Exit the TUI", ALL),
}

# Arguments of these commands are never echoed.
SENSITIVE = frozenset({"/passphrase"})

MODE_LABELS: dict[Mode, str] = {
    Mode.SETUP: "uninitialized",
    Mode.AWAITING_LOGIN: "locked",
    Mode.ACTIVE: "active",
    Mode.UNREACHABLE: "disconnected",
}


def is_command(text: str) -> bool:
    """True if ``text`` starts with a registered command name."""
    parts = text.strip().split(None, 1)
    return bool(parts) and parts[0].lower() in COMMANDS


def display_command(text: str) -> str:
    """Command line as it may be echoed back to the screen."""
    parts = text.strip().split(None, 1)
    if parts and parts[0].lower() in SENSITIVE and len(parts) > 1:
        return f"{parts[0]} ********"
    return text


async def handle_command(app: TalosApp, text: str) -> tuple[bool, str | None]:
    """Try to handle text as a slash command.

    Returns (True, output) if handled, (False, None) if not a command.
    """
    parts = text.strip().split(None, 1)
    if not parts or not parts[0].startswith("/"):
        return False, None

    cmd = parts[0].lower()
    args = parts[1] if len(parts) > 1 else ""

    if cmd not in COMMANDS:
        return True, f"Unknown command: {escape(cmd)}. Type /help for available commands."

    handler_name, _, modes = COMMANDS[cmd]
    mode = app.controller.state.mode
    if mode not in modes:
        return True, f"{cmd} is not available while {MODE_LABELS[mode]}."

    handler = globals().get(handler_name)
    if handler is None:
        return True, f"Command {cmd} not implemented."

    try:
        output = await handler(app, args)
    except TalosError as e:
        message = user_message(e)
        app.notify(message, severity="error")
        return True, f"[red]{escape(message)}[/red]"
    return True, output


# -- setup ------------------------------------------------------------------


def _require_setup_mode(app: TalosApp, wanted: SetupMode) -> None:
    if app.controller.setup_form.mode is not wanted:
        raise ValidationError(f"Switch with /mode {wanted.value} first.")


async def cmd_mode(app: TalosApp, args: str) -> str:
    """Select the generate or import sub-mode. Entered values are kept."""
    form = app.controller.setup_form
    choice = args.strip().lower()
    if not choice:
        return f"Setup mode: {form.mode.value}"
    try:
        form.select(SetupMode(choice))
    except ValueError:
        raise ValidationError("Mode must be 'generate' or 'import'.") from None

    if form.mode is SetupMode.GENERATE:
        state = "key generated" if form.generate.key else "no key generated yet"
    else:
        key_state = "key loaded" if form.imported.private_key else "no key loaded"
        phrase_state = "passphrase set" if form.imported.passphrase else "no passphrase"
        state = f"{key_state}, {phrase_state}"
    return f"Setup mode: {form.mode.value} ({state})"


async def cmd_generate(app: TalosApp, args: str) -> str:
    """Generate a new master key."""
    _require_setup_mode(app, SetupMode.GENERATE)
    form = app.controller.setup_form
    try:
        options = parse_generator_args(args, form.generate.options)
        key = form.regenerate(options)
    except ValueError as e:
        raise ValidationError(str(e)) from None
    return (
        f"[bold]Master key:[/bold] {escape(key)}\n"
        "Store it somewhere safe; it cannot be recovered. /submit to initialize."
    )


async def cmd_keyfile(app: TalosApp, args: str) -> str:
    """Load the private key to import from a file."""
    _require_setup_mode(app, SetupMode.IMPORT)
    if not args.strip():
        raise ValidationError("Usage: /keyfile <path>")
    path = Path(args.strip()).expanduser()
    try:
        text = path.read_text()
    except OSError as e:
        raise ValidationError(f"Cannot read {path}: {e.strerror}") from None
    app.controller.setup_form.imported.private_key = text
    return f"Private key loaded from {escape(str(path))}."


async def cmd_passphrase(app: TalosApp, args: str) -> str:
    _require_setup_mode(app, SetupMode.IMPORT)
    app.controller.setup_form.imported.passphrase = args
    return "Passphrase set." if args else "Passphrase cleared."


async def cmd_submit(app: TalosApp, args: str) -> str:
    """Send the current setup sub-mode to the server."""
    outcome = await app.controller.submit_setup()
    if not outcome.ok:
        app.notify(outcome.error or "Setup failed", severity="error")
        return f"[red]{escape(outcome.error or 'Setup failed')}[/red]"
    return "[green]Setup accepted.[/green] Reloading..."


# -- records ----------------------------------------------------------------


async def cmd_ls(app: TalosApp, args: str) -> str | None:
    """List the secret tree."""

    async def action() -> str:
        entries = flatten_tree(await app.client.fetch_tree(), args)
        if not entries:
            return "No matching secrets." if args.strip() else "No secrets yet. /new to add one."
        return escape(render_tree(entries))

    return await app.gate.guard(action)


async def cmd_show(app: TalosApp, args: str) -> str | None:
    """Open a record without fetching its password."""
    path = validate_record_path(args)
    token = app.requests.begin(VIEWER)

    async def action() -> str | None:
        blob = await app.client.decrypt(path, reveal=False)
        if not app.requests.finish(VIEWER, token):
            return None
        app.secret_view.show_record(path, decode(blob))
        return f"OPEN: {escape(path)}"

    return await app.gate.guard(action)


async def cmd_reveal(app: TalosApp, args: str) -> str | None:
    """Fetch the real password and show it briefly."""
    path = validate_record_path(args)
    token = app.requests.begin(VIEWER)

    async def action() -> str | None:
        record = decode(await app.client.decrypt(path, reveal=True))
        if not app.requests.finish(VIEWER, token):
            return None
        if record.is_hidden:
            return "The server withheld this secret."
        app.secret_view.show_record(path, record)
        app.reveal_password(str(record.password))
        return f"REVEALED: {escape(path)}"

    return await app.gate.guard(action)


async def cmd_copy(app: TalosApp, args: str) -> str | None:
    """Copy a password to the clipboard without displaying it."""
    path = validate_record_path(args)

    async def action() -> str:
        record = decode(await app.client.decrypt(path, reveal=True))
        if record.is_hidden or not record.password:
            return "Nothing to copy."
        app.copy_to_clipboard(str(record.password))
        return f"[green]COPIED: {escape(path)}[/green]"

    return await app.gate.guard(action)


async def cmd_edit(app: TalosApp, args: str) -> None:
    """Open the edit form. The password is requested redacted."""
    path = validate_record_path(args)

    async def action() -> None:
        record = decode(await app.client.decrypt(path, reveal=False))
        app.open_editor(path, record, original_path=path)

    await app.gate.guard(action)


async def cmd_new(app: TalosApp, args: str) -> None:
    category = args.strip().strip("/")
    app.open_editor(f"{category}/" if category else "")


async def cmd_rm(app: TalosApp, args: str) -> None:
    """Delete a record after confirmation."""
    path = validate_record_path(args)

    async def action() -> str:
        await app.client.delete(path)
        if app.secret_view.path == path:
            app.secret_view.clear()
        return f"DELETED: {escape(path)}"

    async def on_yes() -> str | None:
        return await app.gate.guard(action)

    app.confirm(f"DELETE {path} PERMANENTLY?", on_yes)


async def cmd_mkdir(app: TalosApp, args: str) -> str | None:
    path = validate_category(args)

    async def action() -> str:
        await app.client.create_category(path)
        return f"CREATED: {escape(path)}/"

    return await app.gate.guard(action)


def format_audit_logs(logs: list[dict[str, Any]]) -> str:
    """Render audit entries as a fixed-width table."""
    if not logs:
        return "Audit log is empty."
    lines = [f"{'Time':<20} {'Action':<20} {'Target':<30} {'IP':<16} {'Auth'}"]
    lines.append("─" * 96)
    for log in logs:
        timestamp = str(log.get("timestamp") or "-")[:19].replace("T", " ")
        lines.append(
            f"{timestamp:<20} {str(log.get('action') or '-'):<20} "
            f"{str(log.get('target') or '-'):<30} "
            f"{str(log.get('ip_address') or '-'):<16} "
            f"{log.get('auth_method') or 'system'}"
        )
    return "\n".join(lines)


async def cmd_audit(app: TalosApp, args: str) -> str:
    logs = await app.client.fetch_audit_logs()
    return escape(format_audit_logs(logs))


async def cmd_backup(app: TalosApp, args: str) -> str:
    if not args.strip():
        raise ValidationError("Usage: /backup <file>")
    target = await app.client.backup(Path(args.strip()).expanduser())
    return f"Backup written to {escape(str(target))}."


async def cmd_restore(app: TalosApp, args: str) -> None:
    """Upload a backup archive after confirmation."""
    if not args.strip():
        raise ValidationError("Usage: /restore <file>")
    source = Path(args.strip()).expanduser()
    if not source.is_file():
        raise ValidationError(f"No such file: {source}")

    async def action() -> str:
        await app.client.restore(source)
        return "[green]Restored successfully.[/green]"

    async def on_yes() -> str | None:
        return await app.gate.guard(action)

    app.confirm("WARNING: This will overwrite existing secrets. Continue?", on_yes)


async def cmd_genpass(app: TalosApp, args: str) -> str:
    try:
        password = generate_from(parse_generator_args(args))
    except ValueError as e:
        raise ValidationError(str(e)) from None
    return f"Generated: {escape(password)}"


# -- session ----------------------------------------------------------------


async def cmd_health(app: TalosApp, args: str) -> str:
    status = await app.gate.probe()

    def led(ok: bool) -> str:
        return "[green]online[/green]" if ok else "[red]offline[/red]"

    lines = [
        f"Storage: {led(status.storage)}",
        f"Bunker: {led(status.bunker)}",
    ]
    if not status.healthy:
        lines.append("[bold red]System frozen[/bold red]: protected actions are suspended.")
    return "\n".join(lines)


async def cmd_status(app: TalosApp, args: str) -> str:
    state = app.controller.state
    lines = [
        f"[bold]Server[/bold]: {escape(app.client.base_url)}",
        f"Session: {MODE_LABELS[state.mode]}",
    ]
    if state.mode is Mode.ACTIVE:
        method = state.auth_method.label if state.auth_method else "unknown"
        minutes, seconds = divmod(state.remaining_seconds, 60)
        lines.append(f"Auth: {method}")
        lines.append(f"Idle timeout in: {minutes:02d}:{seconds:02d}")
    lines.append(f"Backend: {'frozen' if app.gate.frozen else 'available'}")
    return "\n".join(lines)


async def cmd_logout(app: TalosApp, args: str) -> None:
    await app.controller.logout()


async def cmd_help(app: TalosApp, args: str) -> str:
    """Show the commands available in the current mode."""
    mode = app.controller.state.mode
    lines = ["[bold]Available Commands[/bold]", ""]
    for cmd, (_, desc, modes) in sorted(COMMANDS.items()):
        if cmd == "/exit" or mode not in modes:
            continue  # Skip alias
        lines.append(f"  {cmd:<12} {escape(desc)}")
    if mode is Mode.AWAITING_LOGIN:
        lines.append("")
        lines.append("Type the master key and press Enter to unlock.")
    return "\n".join(lines)


async def cmd_quit(app: TalosApp, args: str) -> str:
    """Exit the TUI."""
    app.exit()
    return ""
