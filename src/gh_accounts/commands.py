"""
CLI subcommands.

Each command class registers its own arguments and receives a shared
``AppContext`` holding the wired-up components.
"""

from __future__ import annotations

import argparse
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List

from rich.prompt import Confirm, IntPrompt

from . import __version__
from .accounts import AccountManager
from .backup import BackupManager
from .doctor import Doctor
from .errors import ValidationError
from .keys import AuthResult
from .models import Settings
from .modes import ModeTransitionEngine
from .utils.display import (
    console,
    display_accounts,
    display_backups,
    display_created_account,
    display_doctor_report,
    display_error,
    display_info,
    display_success,
    display_warning,
)


@dataclass
class AppContext:
    settings: Settings
    accounts: AccountManager
    modes: ModeTransitionEngine
    backups: BackupManager
    doctor: Doctor
    assume_yes: bool = False

    @classmethod
    def create(cls, settings: Settings, assume_yes: bool = False) -> "AppContext":
        accounts = AccountManager(settings)
        return cls(
            settings=settings,
            accounts=accounts,
            modes=accounts.modes,
            backups=accounts.backups,
            doctor=Doctor(settings, accounts.directory, accounts.keys),
            assume_yes=assume_yes,
        )

    def confirm(self, prompt: str) -> bool:
        if self.assume_yes:
            return True
        return Confirm.ask(f"[yellow]{prompt}[/yellow]", default=False, console=console)


class BaseCommand(ABC):
    """Abstract base class for subcommands."""

    name: str
    help_text: str

    def register(self, subparsers: argparse._SubParsersAction) -> None:
        """Attach this command to the provided subparser collection."""
        parser = subparsers.add_parser(self.name, help=self.help_text)
        self.add_arguments(parser)
        parser.set_defaults(handler=self)

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Register CLI arguments specific to this command."""

    @abstractmethod
    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        """Run the command and return the exit status."""


class CreateCommand(BaseCommand):
    name = "create"
    help_text = "Create a new account: key pair plus Host block."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("account", help="Account name (letters, digits, '.', '_', '-').")
        parser.add_argument("email", help="Email address recorded with the key.")

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        record = context.accounts.create(args.account, args.email)
        public_key = Path(record.public_key_path)
        display_created_account(record, public_key.read_text().strip() if public_key.is_file() else "")
        return 0


class DeleteCommand(BaseCommand):
    name = "delete"
    help_text = "Delete an account, its keys and its Host block."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("account", help="Account name to delete.")

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        if not context.accounts.exists(args.account):
            display_error(f"Account '{args.account}' does not exist.")
            return 1
        if not context.confirm(
            f"Delete account '{args.account}' and its SSH keys? This cannot be undone."
        ):
            display_info("Aborted.")
            return 0
        context.accounts.delete(args.account)
        display_success(f"Account '{args.account}' deleted.")
        return 0


class UpdateCommand(BaseCommand):
    name = "update"
    help_text = "Change the email recorded for an account."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("account", help="Account name to update.")
        parser.add_argument("email", help="New email address.")

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        context.accounts.update(args.account, args.email)
        display_success(f"Account '{args.account}' updated with email '{args.email}'.")
        return 0


class ListCommand(BaseCommand):
    name = "list"
    help_text = "List all GitHub SSH accounts."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        display_accounts(context.accounts.list())
        return 0


class ExportCommand(BaseCommand):
    name = "export"
    help_text = "Print all accounts as JSON."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        console.print_json(json.dumps(context.accounts.export()))
        return 0


class SwitchCommand(BaseCommand):
    name = "switch"
    help_text = "Set git user.name/user.email from an account."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("account", help="Account to switch to.")
        parser.add_argument(
            "--global",
            dest="scope",
            action="store_const",
            const="global",
            default="local",
            help="Change the global git config instead of the current repository.",
        )

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        record = context.accounts.switch(args.account, args.scope)
        label = "global config" if args.scope == "global" else "this repository"
        display_success(f"Switched git identity for {label}:")
        console.print(f"  user.name  = {record.name}", highlight=False)
        console.print(f"  user.email = {record.email}", highlight=False)
        if args.scope != "global":
            display_info(f"Clone/push via: git@{record.alias}:<org>/<repo>.git")
        return 0


class AuthTestCommand(BaseCommand):
    name = "test"
    help_text = "Test SSH authentication against GitHub for an account."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("account", help="Account to test.")

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        result, output = context.accounts.test(args.account)
        if result is AuthResult.SUCCESS:
            display_success("Authentication successful!")
        elif result is AuthResult.DENIED:
            display_error("Authentication failed. Ensure the public key is added to GitHub.")
        else:
            display_warning("Unexpected response:")
        console.print(f"  {output}", highlight=False)
        return 0 if result is AuthResult.SUCCESS else 1


class DoctorCommand(BaseCommand):
    name = "doctor"
    help_text = "Run diagnostics on keys, permissions and config."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        report = context.doctor.run()
        display_doctor_report(report)
        return 0 if report.healthy else 1


class SplitCommand(BaseCommand):
    name = "split"
    help_text = "Move managed blocks into one file per account and enable split mode."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        count = context.accounts.split_all()
        if count:
            display_success(f"Split {count} account(s) into {context.settings.split_dir}/.")
        else:
            display_warning("No gh-accounts blocks found in unified config.")
        return 0


class MergeCommand(BaseCommand):
    name = "merge"
    help_text = "Merge split configs back into the unified config."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        count = context.accounts.merge_all()
        if count:
            display_success(f"Merged {count} split config(s) into {context.settings.config_file}.")
        else:
            display_warning("No split config files found to merge.")
        return 0


class SplitModeCommand(BaseCommand):
    name = "split-mode"
    help_text = "Turn the split-mode include directive on or off, or show its state."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("action", choices=["on", "off", "status"])

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        if args.action == "on":
            if context.modes.enable_split():
                display_success("Split mode enabled.")
            else:
                display_warning("Split mode is already enabled.")
        elif args.action == "off":
            if context.modes.disable_split():
                display_success("Split mode disabled.")
            else:
                display_warning("Split mode is not enabled.")
        else:
            display_info(f"Current mode: {context.modes.current_mode().value}")
        return 0


class BackupCommand(BaseCommand):
    name = "backup"
    help_text = "Create a backup of the SSH config, keys and split configs."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        path = context.backups.create()
        if path is None:
            display_warning("Nothing to back up.")
        else:
            display_success(f"Backup created: {path}")
        return 0


class BackupsCommand(BaseCommand):
    name = "backups"
    help_text = "List available backups."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        display_backups(context.backups.list())
        return 0


class RestoreCommand(BaseCommand):
    name = "restore"
    help_text = "Restore a backup (interactive selection when no name is given)."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("backup", nargs="?", help="Backup name, as shown by 'backups'.")

    def _select(self, context: AppContext) -> str:
        backups = context.backups.list()
        if not backups:
            raise ValidationError("No backups available to restore.")
        display_backups(backups, numbered=True)
        choice = IntPrompt.ask("Select backup number to restore", console=console)
        if choice < 1 or choice > len(backups):
            raise ValidationError("Invalid selection.")
        return backups[choice - 1].name

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        name = args.backup or self._select(context)
        context.backups.get(name)
        if not context.confirm(
            f"Restore from '{name}'? Current config and keys will be overwritten."
        ):
            display_info("Aborted.")
            return 0
        count = context.backups.restore(name)
        display_success(f"Restore from '{name}' completed ({count} file(s)).")
        return 0


class VersionCommand(BaseCommand):
    name = "version"
    help_text = "Print the version."

    def execute(self, context: AppContext, args: argparse.Namespace) -> int:
        console.print(f"gh-accounts {__version__}")
        return 0


def get_commands() -> List[BaseCommand]:
    return [
        CreateCommand(),
        DeleteCommand(),
        UpdateCommand(),
        ListCommand(),
        ExportCommand(),
        SwitchCommand(),
        AuthTestCommand(),
        DoctorCommand(),
        SplitCommand(),
        MergeCommand(),
        SplitModeCommand(),
        BackupCommand(),
        BackupsCommand(),
        RestoreCommand(),
        VersionCommand(),
    ]
