"""
Account lifecycle: create, delete, update, switch, test, list and export.

Every mutating operation validates its input before touching a file and
takes an automatic backup before changing anything.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .backup import BackupManager
from .directory import AccountDirectory
from .errors import ConflictError, NotFoundError, UnmanagedAccountError
from .gitconfig import GitIdentity
from .keys import AuthResult, SSHKeyTool
from .models import AccountRecord, Settings, SourceMode
from .modes import ModeTransitionEngine
from .utils.validation import validate_account_name, validate_email
from .writer import BlockWriter

logger = logging.getLogger(__name__)


class AccountManager:
    """High-level operations used by the CLI."""

    def __init__(
        self,
        settings: Settings,
        directory: Optional[AccountDirectory] = None,
        writer: Optional[BlockWriter] = None,
        modes: Optional[ModeTransitionEngine] = None,
        backups: Optional[BackupManager] = None,
        keys: Optional[SSHKeyTool] = None,
        git: Optional[GitIdentity] = None,
    ):
        self.settings = settings
        self.directory = directory or AccountDirectory(settings)
        self.writer = writer or BlockWriter(settings)
        self.modes = modes or ModeTransitionEngine(settings, self.directory)
        self.backups = backups or BackupManager(settings)
        self.keys = keys or SSHKeyTool()
        self.git = git or GitIdentity()

    def exists(self, name: str) -> bool:
        return self.directory.key_exists(name) or self.directory.host_exists(name)

    def _require_existing(self, name: str) -> None:
        if not self.exists(name):
            raise NotFoundError(f"Account '{name}' does not exist.")

    def create(self, name: str, email: str) -> AccountRecord:
        validate_account_name(name)
        validate_email(email)

        key_path = self.settings.key_path_for(name)
        if self.directory.key_exists(name):
            raise ConflictError(f"SSH key already exists for account '{name}': {key_path}")
        if self.directory.host_exists(name):
            raise ConflictError(f"Host alias already exists for account '{name}'.")

        self.backups.create_auto()

        logger.info("Generating SSH key pair for '%s'...", name)
        self.keys.generate_key(key_path, email, self.settings.key_type)
        self.keys.add_to_agent(key_path)

        mode = self.modes.current_mode()
        self.writer.write(name, email, mode)
        logger.debug("Account '%s' created in %s mode.", name, mode.value)

        return AccountRecord(
            name=name,
            email=email,
            alias=self.settings.host_alias_for(name),
            key_path=str(key_path),
            source_mode=mode,
            managed=True,
        )

    def delete(self, name: str) -> None:
        validate_account_name(name)
        self._require_existing(name)

        self.backups.create_auto()

        key_path = self.settings.key_path_for(name)
        if key_path.is_file():
            self.keys.remove_from_agent(key_path)
        for path in (key_path, Path(f"{key_path}.pub")):
            path.unlink(missing_ok=True)
        logger.info("Removed key files for '%s'.", name)

        # The block may live in either representation depending on history.
        self.writer.remove(name)
        logger.debug("Account '%s' deleted.", name)

    def update(self, name: str, email: str) -> None:
        validate_account_name(name)
        validate_email(email)
        self._require_existing(name)

        self.backups.create_auto()

        updated = False
        for mode in (SourceMode.UNIFIED, SourceMode.SPLIT):
            updated = self.writer.update_email(name, email, mode) or updated
        if not updated:
            raise UnmanagedAccountError(
                f"Could not find a managed config entry for account '{name}'. "
                "Hand-written blocks must be edited manually."
            )

        self.keys.update_key_comment(self.settings.key_path_for(name), email)
        logger.debug("Account '%s' updated with email '%s'.", name, email)

    def get(self, name: str) -> AccountRecord:
        record = self.directory.find(name)
        if record is None:
            raise NotFoundError(
                f"Account '{name}' not found. Run 'gh-accounts list' to see available accounts."
            )
        return record

    def switch(self, name: str, scope: str = "local") -> AccountRecord:
        validate_account_name(name)
        record = self.get(name)
        self.git.set_identity(record.name, record.email, scope)
        return record

    def test(self, name: str) -> Tuple[AuthResult, str]:
        validate_account_name(name)
        self._require_existing(name)
        record = self.directory.find(name)
        alias = record.alias if record else self.settings.host_alias_for(name)
        logger.info("Testing SSH connection for '%s' (%s)...", name, alias)
        return self.keys.probe_authentication(alias)

    def list(self) -> List[AccountRecord]:
        return self.directory.list()

    def export(self) -> List[Dict[str, Any]]:
        entries = []
        for record in self.directory.list():
            public_key = Path(record.public_key_path)
            entries.append(
                {
                    "account": record.name,
                    "email": record.email,
                    "host_alias": record.alias,
                    "key_path": record.key_path,
                    "key_exists": record.key_exists,
                    "public_key": (
                        public_key.read_text().strip()
                        if record.key_path and public_key.is_file()
                        else ""
                    ),
                    "mode": record.source_mode.value,
                    "managed": record.managed,
                }
            )
        return entries

    def split_all(self) -> int:
        self.backups.create_auto()
        return self.modes.split_all()

    def merge_all(self) -> int:
        self.backups.create_auto()
        return self.modes.merge_all()
