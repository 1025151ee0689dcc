"""Data models for gh-accounts."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, model_validator

UNKNOWN_EMAIL = "unknown"
DEFAULT_ACCOUNT = "default"


class SourceMode(str, Enum):
    """Physical representation a block lives in."""
    UNIFIED = "unified"
    SPLIT = "split"


@dataclass
class AccountRecord:
    """A GitHub identity discovered in the SSH config."""
    name: str
    email: str
    alias: str
    key_path: str
    source_mode: SourceMode
    managed: bool = False

    @property
    def public_key_path(self) -> str:
        return f"{self.key_path}.pub"

    @property
    def is_complete(self) -> bool:
        """True when the block names an identity file."""
        return bool(self.key_path)

    @property
    def key_exists(self) -> bool:
        return self.is_complete and Path(self.key_path).is_file()


class Settings(BaseModel):
    """
    Locations and naming conventions used by every component.

    Paths left unset are derived from ``home_dir`` so tests can root the
    whole layout in a temporary directory.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    home_dir: Path
    ssh_dir: Path
    config_file: Path
    split_dir: Path
    backup_dir: Path
    key_prefix: str = "github"
    alias_prefix: str = "github"
    github_host: str = "github.com"
    default_alias: str = "github.com"
    key_type: str = "ed25519"

    @model_validator(mode="before")
    @classmethod
    def _derive_paths(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        values: Dict[str, Any] = {key: value for key, value in data.items() if value is not None}

        home = Path(values.get("home_dir") or Path.home()).expanduser()
        ssh_dir = Path(values.get("ssh_dir") or home / ".ssh").expanduser()
        values["home_dir"] = home
        values["ssh_dir"] = ssh_dir
        values["config_file"] = Path(values.get("config_file") or ssh_dir / "config").expanduser()
        values["split_dir"] = Path(values.get("split_dir") or ssh_dir / "gh-accounts").expanduser()
        values["backup_dir"] = Path(
            values.get("backup_dir") or ssh_dir / "gh-accounts-backups"
        ).expanduser()
        return values

    @property
    def include_directive(self) -> str:
        """Line whose presence in the unified file turns split mode on."""
        return f"Include {self.split_dir}/*"

    def key_path_for(self, name: str) -> Path:
        return self.ssh_dir / f"{self.key_prefix}-{name}"

    def host_alias_for(self, name: str) -> str:
        return f"{self.alias_prefix}-{name}"

    def split_file_for(self, alias: str) -> Path:
        return self.split_dir / alias

    def name_for_alias(self, alias: str) -> str:
        """Map a ``Host`` alias back to its account name."""
        if alias == self.default_alias:
            return DEFAULT_ACCOUNT
        prefix = f"{self.alias_prefix}-"
        if alias.startswith(prefix) and len(alias) > len(prefix):
            return alias[len(prefix):]
        return alias
