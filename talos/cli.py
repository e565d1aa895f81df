"""
Talos CLI — entry point.

Usage:
    talos tui               # Interactive terminal client
    talos status            # Show server auth status
    talos health            # Storage / bunker availability (exit 1 if frozen)
    talos genpass           # Print a generated password
    talos version           # Show version
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from talos.config import Config, get_config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="talos",
        description="Talos — terminal client for a self-hosted secret store.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("--url", help="Talos server URL (default: $TALOS_URL)")

    subparsers = parser.add_subparsers(dest="command")

    # tui
    subparsers.add_parser("tui", help="Start the terminal client")

    # status
    subparsers.add_parser("status", help="Show server auth status")

    # health
    subparsers.add_parser("health", help="Show storage and bunker availability")

    # genpass
    gen_parser = subparsers.add_parser("genpass", help="Generate a password")
    gen_parser.add_argument("--length", "-l", type=int, default=24, help="Length (8-128)")
    gen_parser.add_argument("--no-upper", action="store_true", help="No uppercase letters")
    gen_parser.add_argument("--no-numbers", action="store_true", help="No digits")
    gen_parser.add_argument("--no-symbols", action="store_true", help="No symbols")

    # version
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    if args.version or args.command == "version":
        from talos import __version__

        print(f"talos {__version__}")
        return 0

    cfg = get_config().with_url(args.url)

    if args.command == "tui":
        return _cmd_tui(cfg)
    elif args.command == "status":
        _setup_logging(cfg)
        return asyncio.run(_cmd_status(cfg))
    elif args.command == "health":
        _setup_logging(cfg)
        return asyncio.run(_cmd_health(cfg))
    elif args.command == "genpass":
        return _cmd_genpass(args)
    else:
        parser.print_help()
        return 0


def _setup_logging(cfg: Config, *, tui: bool = False) -> None:
    """Log to a file when configured. The TUI owns the terminal, so it never logs to stderr."""
    if cfg.log_file:
        logging.basicConfig(
            filename=cfg.log_file,
            level=cfg.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    elif tui:
        logging.basicConfig(level=cfg.log_level, handlers=[logging.NullHandler()])
    else:
        logging.basicConfig(level=cfg.log_level, format="%(levelname)s %(name)s: %(message)s")


def _cmd_tui(cfg: Config) -> int:
    from talos.tui import check_textual

    if not check_textual():
        print("Error: the terminal client needs Textual.")
        print("Install it with: pip install talos-client[tui]")
        return 1

    from talos.tui.app import TalosApp

    _setup_logging(cfg, tui=True)
    TalosApp(config=cfg).run()
    return 0


async def _cmd_status(cfg: Config) -> int:
    from talos.auth.lifecycle import AuthStatus, classify
    from talos.errors import TalosError, user_message
    from talos.tui.client import TalosClient

    client = TalosClient.from_config(cfg.server)
    try:
        print(f"  Server:   {client.base_url}")
        try:
            status = AuthStatus.from_dict(await client.auth_status())
        except TalosError as e:
            print(f"            UNREACHABLE — {user_message(e)}")
            return 1
        version = await client.fetch_version()
        mode = classify(status)
        print(f"  Version:  {version or 'unknown'}")
        print(f"  Session:  {mode.value}")
        if status.auth_method is not None:
            print(f"  Auth:     {status.auth_method.label}")
        return 0
    finally:
        await client.close()


async def _cmd_health(cfg: Config) -> int:
    from talos.health.gate import HealthGate
    from talos.tui.client import TalosClient

    client = TalosClient.from_config(cfg.server)
    try:
        status = await HealthGate(client).probe()
    finally:
        await client.close()

    print(f"  Storage:  {'online' if status.storage else 'OFFLINE'}")
    print(f"  Bunker:   {'online' if status.bunker else 'OFFLINE'}")
    if not status.healthy:
        print("  System frozen — protected actions are suspended.")
        return 1
    return 0


def _cmd_genpass(args: argparse.Namespace) -> int:
    from talos.records.passgen import generate_password

    try:
        password = generate_password(
            args.length,
            upper=not args.no_upper,
            numbers=not args.no_numbers,
            symbols=not args.no_symbols,
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    print(password)
    return 0
