#!/usr/bin/env python3
"""
gh-accounts - GitHub SSH Account Manager

Manage several GitHub identities in one SSH client config:
1. Generate a key pair and a Host block per account
2. List, update, switch and test accounts
3. Move blocks between the unified config and per-account split files
4. Back up, restore and diagnose the setup

Usage:
    gh-accounts create work me@company.com
    gh-accounts list
    gh-accounts split
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from rich.logging import RichHandler

from .commands import AppContext, BaseCommand, get_commands
from .errors import GhAccountsError
from .utils.config import load_settings
from .utils.display import console, display_error


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
    )


def build_parser(commands: Sequence[BaseCommand]) -> argparse.ArgumentParser:
    """Construct the top-level argument parser and attach subcommands."""
    parser = argparse.ArgumentParser(
        prog="gh-accounts",
        description="Manage multiple GitHub SSH accounts in one SSH config.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gh-accounts create work me@company.com
  gh-accounts switch work --global
  gh-accounts split
  gh-accounts doctor
        """,
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML settings file (default: ~/.config/gh-accounts/config.yaml).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "-y", "--yes", action="store_true", help="Answer yes to confirmation prompts."
    )

    subparsers = parser.add_subparsers(dest="command")
    for command in commands:
        command.register(subparsers)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    commands = get_commands()
    parser = build_parser(commands)
    args = parser.parse_args(argv)

    handler: Optional[BaseCommand] = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 1

    configure_logging(verbose=args.verbose)

    try:
        settings = load_settings(args.config)
        context = AppContext.create(settings, assume_yes=args.yes)
        return handler.execute(context, args)
    except GhAccountsError as exc:
        display_error(str(exc))
        return 1
    except OSError as exc:
        display_error(f"File operation failed: {exc}")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Program interrupted by user.[/yellow]")
        return 130


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
