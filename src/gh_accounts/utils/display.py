"""
Display utilities for formatting and presenting accounts, backups and diagnostics.
"""

from typing import List

from rich.console import Console
from rich.table import Table

from ..backup import BackupInfo
from ..doctor import DoctorReport
from ..models import UNKNOWN_EMAIL, AccountRecord

console = Console()


def display_accounts(records: List[AccountRecord]) -> None:
    """Display accounts in a formatted table."""
    if not records:
        console.print("[dim]No GitHub SSH accounts found.[/dim]")
        return

    table = Table(title="GitHub SSH Accounts")
    table.add_column("", width=1)
    table.add_column("Account", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Host Alias", style="magenta")
    table.add_column("Mode", style="yellow")
    table.add_column("Source", style="blue")

    for record in records:
        key_status = "[green]●[/green]" if record.key_exists else "[red]✗[/red]"
        email = record.email if record.email != UNKNOWN_EMAIL else "[dim]unknown[/dim]"
        source = "managed" if record.managed else "manual"
        table.add_row(key_status, record.name, email, record.alias, record.source_mode.value, source)

    console.print(table)


def display_created_account(record: AccountRecord, public_key: str) -> None:
    console.print(f"[bold green]✓ Account '{record.name}' created successfully.[/bold green]")
    if public_key:
        console.print("\n[bold]Public key (add this to GitHub → Settings → SSH keys):[/bold]\n")
        console.print(public_key, soft_wrap=True, highlight=False)
    console.print("\n[bold]Git clone usage:[/bold]")
    console.print(f"  git clone git@{record.alias}:username/repo.git", highlight=False)


def display_backups(backups: List[BackupInfo], numbered: bool = False) -> None:
    """Display available backups."""
    if not backups:
        console.print("[dim]No backups found.[/dim]")
        return

    table = Table(title="Available Backups")
    if numbered:
        table.add_column("#", style="bold")
    table.add_column("Backup", style="cyan")
    table.add_column("Files", style="green", justify="right")
    table.add_column("Type", style="yellow")

    for index, backup in enumerate(backups, 1):
        row = [backup.name, str(backup.file_count), "auto" if backup.auto else "manual"]
        if numbered:
            row.insert(0, str(index))
        table.add_row(*row)

    console.print(table)


def display_doctor_report(report: DoctorReport) -> None:
    """Display diagnostic results check by check."""
    console.print("\n[bold]Running diagnostics...[/bold]\n")
    for check in report.checks:
        colour = "green" if check.ok else "red"
        console.print(f"  Checking {check.name}... [{colour}]{check.status}[/{colour}]")
        for warning in check.warnings:
            console.print(f"    [yellow]⚠ {warning.message}[/yellow]", highlight=False)

    console.print()
    if report.healthy:
        display_success("All checks passed. Your setup is healthy.")
    else:
        display_warning(f"{report.issue_count} issue(s) found. Review the warnings above.")


def display_error(message: str) -> None:
    """Display error message."""
    console.print(f"[red]{message}[/red]")


def display_warning(message: str) -> None:
    """Display warning message."""
    console.print(f"[yellow]{message}[/yellow]")


def display_success(message: str) -> None:
    """Display success message."""
    console.print(f"[green]{message}[/green]")


def display_info(message: str) -> None:
    console.print(f"[blue]{message}[/blue]")
