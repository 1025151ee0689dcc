"""
Snapshots of the SSH config, managed keys and split configs.

Every destructive command takes an automatic snapshot first. Snapshots are
a manual recovery aid: nothing is rolled back automatically.
"""

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .errors import NotFoundError
from .models import Settings
from .utils.files import PRIVATE_FILE_MODE, PUBLIC_KEY_MODE, ensure_dir

logger = logging.getLogger(__name__)

AUTO_PREFIX = "auto_"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@dataclass
class BackupInfo:
    """A snapshot directory under the backup root."""
    name: str
    path: Path
    file_count: int

    @property
    def auto(self) -> bool:
        return self.name.startswith(AUTO_PREFIX)


class BackupManager:
    """Create, list and restore snapshots."""

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = datetime.now):
        self.settings = settings
        self.clock = clock

    def _new_backup_path(self, auto: bool) -> Path:
        stamp = self.clock().strftime(TIMESTAMP_FORMAT)
        name = f"{AUTO_PREFIX}{stamp}" if auto else stamp
        path = self.settings.backup_dir / name
        suffix = 1
        while path.exists():
            path = self.settings.backup_dir / f"{name}_{suffix}"
            suffix += 1
        return path

    def _key_files(self, directory: Path) -> List[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path for path in directory.glob(f"{self.settings.key_prefix}-*") if path.is_file()
        )

    def _split_files(self, directory: Path) -> List[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            path for path in directory.glob(f"{self.settings.alias_prefix}-*") if path.is_file()
        )

    def create(self, auto: bool = False) -> Optional[Path]:
        """
        Snapshot the current state.

        Returns the snapshot directory, or None when there was nothing to
        copy (the empty directory is removed again).
        """
        ensure_dir(self.settings.backup_dir)
        backup_path = self._new_backup_path(auto)
        ensure_dir(backup_path)

        count = 0
        config_file = self.settings.config_file
        if config_file.is_file():
            shutil.copy2(config_file, backup_path / "config")
            count += 1

        for key_file in self._key_files(self.settings.ssh_dir):
            shutil.copy2(key_file, backup_path / key_file.name)
            count += 1

        split_files = self._split_files(self.settings.split_dir)
        if split_files:
            split_backup = ensure_dir(backup_path / "split")
            for split_file in split_files:
                shutil.copy2(split_file, split_backup / split_file.name)
                count += 1

        if count == 0:
            shutil.rmtree(backup_path)
            logger.debug("Nothing to back up.")
            return None

        logger.debug("Backup created: %s (%d file(s))", backup_path, count)
        return backup_path

    def create_auto(self) -> Optional[Path]:
        return self.create(auto=True)

    def list(self) -> List[BackupInfo]:
        backup_dir = self.settings.backup_dir
        if not backup_dir.is_dir():
            return []
        backups = []
        for path in sorted(p for p in backup_dir.iterdir() if p.is_dir()):
            file_count = sum(1 for item in path.rglob("*") if item.is_file())
            backups.append(BackupInfo(name=path.name, path=path, file_count=file_count))
        return backups

    def get(self, name: str) -> BackupInfo:
        for backup in self.list():
            if backup.name == name:
                return backup
        raise NotFoundError(f"Backup '{name}' not found in {self.settings.backup_dir}.")

    def restore(self, name: str) -> int:
        """
        Copy a snapshot back over the live files.

        A fresh automatic snapshot is taken first. Returns the number of
        files restored.
        """
        backup = self.get(name)
        self.create_auto()

        restored = 0
        saved_config = backup.path / "config"
        if saved_config.is_file():
            ensure_dir(self.settings.ssh_dir)
            shutil.copy2(saved_config, self.settings.config_file)
            self.settings.config_file.chmod(PRIVATE_FILE_MODE)
            logger.info("Restored %s.", self.settings.config_file)
            restored += 1

        for key_file in self._key_files(backup.path):
            target = self.settings.ssh_dir / key_file.name
            shutil.copy2(key_file, target)
            target.chmod(PUBLIC_KEY_MODE if target.name.endswith(".pub") else PRIVATE_FILE_MODE)
            logger.info("Restored %s.", target)
            restored += 1

        split_files = self._split_files(backup.path / "split")
        if split_files:
            ensure_dir(self.settings.split_dir)
            for split_file in split_files:
                target = self.settings.split_dir / split_file.name
                shutil.copy2(split_file, target)
                target.chmod(PRIVATE_FILE_MODE)
                logger.info("Restored %s.", target)
                restored += 1

        logger.debug("Restore from '%s' completed.", name)
        return restored
