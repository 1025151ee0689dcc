"""
Health checks over the SSH setup.

The doctor only reads: it consumes the account listing and file metadata
and reports ``IntegrityWarning`` values. Nothing found here is raised.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from .directory import AccountDirectory
from .errors import IntegrityWarning
from .keys import AgentStatus, SSHKeyTool
from .models import Settings
from .parser import HOSTNAME_RE, IDENTITY_FILE_RE, split_segments
from .utils.files import file_mode, read_text

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of one check. ``status`` is a short label for display."""
    name: str
    status: str
    warnings: List[IntegrityWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


@dataclass
class DoctorReport:
    checks: List[CheckResult] = field(default_factory=list)

    @property
    def warnings(self) -> List[IntegrityWarning]:
        return [warning for check in self.checks for warning in check.warnings]

    @property
    def issue_count(self) -> int:
        return len(self.warnings)

    @property
    def healthy(self) -> bool:
        return self.issue_count == 0


class Doctor:
    """Run every diagnostic check and collect the results."""

    def __init__(
        self,
        settings: Settings,
        directory: Optional[AccountDirectory] = None,
        keys: Optional[SSHKeyTool] = None,
    ):
        self.settings = settings
        self.directory = directory or AccountDirectory(settings)
        self.keys = keys or SSHKeyTool()

    def run(self) -> DoctorReport:
        logger.debug("Running diagnostics for %s", self.settings.ssh_dir)
        return DoctorReport(
            checks=[
                self.check_agent(),
                self.check_permissions(),
                self.check_config_integrity(),
                self.check_keys(),
                self.check_duplicates(),
                self.check_split_mode(),
            ]
        )

    def check_agent(self) -> CheckResult:
        status = self.keys.agent_status()
        if status is AgentStatus.RUNNING:
            return CheckResult("ssh-agent", "running")
        if status is AgentStatus.NO_KEYS:
            message = "socket exists but no keys loaded"
        else:
            message = 'not running. Start it with: eval "$(ssh-agent -s)"'
        return CheckResult(
            "ssh-agent", status.value, [IntegrityWarning("agent", "ssh-agent", message)]
        )

    def check_permissions(self) -> CheckResult:
        ssh_dir = self.settings.ssh_dir
        if not ssh_dir.is_dir():
            return CheckResult(
                "permissions",
                "directory missing",
                [IntegrityWarning("dir-permissions", str(ssh_dir), f"{ssh_dir} does not exist")],
            )

        warnings = []
        dir_mode = file_mode(ssh_dir)
        if dir_mode != 0o700:
            warnings.append(
                IntegrityWarning(
                    "dir-permissions",
                    str(ssh_dir),
                    f"{ssh_dir} has permissions {dir_mode:o} (expected 700)",
                )
            )

        config_file = self.settings.config_file
        if config_file.is_file():
            config_mode = file_mode(config_file)
            if config_mode not in (0o600, 0o644):
                warnings.append(
                    IntegrityWarning(
                        "file-permissions",
                        str(config_file),
                        f"{config_file} has permissions {config_mode:o} (expected 600)",
                    )
                )
        return CheckResult("permissions", "ok" if not warnings else "issues", warnings)

    def _incomplete_managed_blocks(self, path: Path) -> List[IntegrityWarning]:
        warnings = []
        for segment in split_segments(read_text(path)):
            if not segment.managed:
                continue
            missing = [
                label
                for label, pattern in (("HostName", HOSTNAME_RE), ("IdentityFile", IDENTITY_FILE_RE))
                if not segment.has_field(pattern)
            ]
            if missing:
                warnings.append(
                    IntegrityWarning(
                        "incomplete-block",
                        segment.owner,
                        f"incomplete block for '{segment.owner}' in {path} "
                        f"(missing {', '.join(missing)})",
                    )
                )
        return warnings

    def check_config_integrity(self) -> CheckResult:
        config_file = self.settings.config_file
        if not config_file.is_file() and not self.directory.split_files():
            return CheckResult("config integrity", "no config file")

        warnings = self._incomplete_managed_blocks(config_file)
        for split_file in self.directory.split_files():
            warnings.extend(self._incomplete_managed_blocks(split_file))

        # Hand-written blocks have no ownership comment; catch them by record.
        flagged: Set[str] = {warning.subject for warning in warnings}
        for record in self.directory.list():
            if not record.is_complete and record.name not in flagged:
                warnings.append(
                    IntegrityWarning(
                        "incomplete-block",
                        record.name,
                        f"incomplete block for '{record.name}' (alias {record.alias} has no IdentityFile)",
                    )
                )
        return CheckResult("config integrity", "valid" if not warnings else "invalid", warnings)

    def check_keys(self) -> CheckResult:
        records = [record for record in self.directory.list() if record.is_complete]
        if not records:
            return CheckResult("keys", "no accounts configured")

        warnings = []
        for record in records:
            key_path = Path(record.key_path)
            if not key_path.is_file():
                warnings.append(
                    IntegrityWarning(
                        "missing-private-key",
                        record.name,
                        f"Missing private key for '{record.name}': {key_path}",
                    )
                )
                continue

            mode = file_mode(key_path)
            if mode != 0o600:
                warnings.append(
                    IntegrityWarning(
                        "key-permissions",
                        record.name,
                        f"Key '{record.name}' has permissions {mode:o} (expected 600)",
                    )
                )

            if not Path(record.public_key_path).is_file():
                warnings.append(
                    IntegrityWarning(
                        "missing-public-key",
                        record.name,
                        f"Missing public key for '{record.name}': {record.public_key_path}",
                    )
                )
        return CheckResult("keys", "all keys valid" if not warnings else "issues", warnings)

    def check_duplicates(self) -> CheckResult:
        duplicates = self.directory.duplicate_aliases()
        warnings = [
            IntegrityWarning("duplicate-alias", alias, f"Duplicate alias: {alias}")
            for alias in duplicates
        ]
        return CheckResult("duplicate aliases", "none" if not warnings else "found duplicates", warnings)

    def check_split_mode(self) -> CheckResult:
        if not self.directory.is_split_mode_enabled():
            return CheckResult("split mode", "disabled (unified mode)")

        split_dir = self.settings.split_dir
        if not split_dir.is_dir():
            return CheckResult(
                "split mode",
                "enabled",
                [
                    IntegrityWarning(
                        "orphaned-include",
                        str(split_dir),
                        f"Include directive exists but directory is missing: {split_dir}",
                    )
                ],
            )

        mode = file_mode(split_dir)
        if mode != 0o700:
            return CheckResult(
                "split mode",
                "enabled",
                [
                    IntegrityWarning(
                        "dir-permissions",
                        str(split_dir),
                        f"Split dir permissions: {mode:o} (expected 700)",
                    )
                ],
            )
        return CheckResult("split mode", "enabled")
