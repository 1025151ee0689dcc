"""Read-only view of every GitHub account across both representations."""

import logging
from collections import Counter
from itertools import chain
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

from .models import AccountRecord, Settings, SourceMode
from .parser import has_include_directive, host_aliases, parse_file
from .utils.files import read_text

logger = logging.getLogger(__name__)


class AccountDirectory:
    """
    Aggregate parser output from the unified file and the split directory.

    Nothing is cached: each call re-reads the files, so the view always
    matches what is on disk.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def split_files(self) -> List[Path]:
        """Split files following the ``<alias_prefix>-*`` naming convention."""
        split_dir = self.settings.split_dir
        if not split_dir.is_dir():
            return []
        return sorted(
            path for path in split_dir.glob(f"{self.settings.alias_prefix}-*") if path.is_file()
        )

    def _unified_records(self) -> List[AccountRecord]:
        return parse_file(self.settings.config_file, self.settings, SourceMode.UNIFIED)

    def _split_records(self) -> Iterator[AccountRecord]:
        for path in self.split_files():
            yield from parse_file(path, self.settings, SourceMode.SPLIT)

    def _raw_records(self) -> Iterator[AccountRecord]:
        return chain(self._unified_records(), self._split_records())

    def list(self) -> List[AccountRecord]:
        """
        Effective accounts in discovery order.

        Unified blocks come first, so an alias present in both sources is
        reported once, from the unified file.
        """
        seen: Set[str] = set()
        records = []
        for record in self._raw_records():
            if record.alias in seen:
                logger.debug(
                    "Skipping %s block for alias '%s': already defined",
                    record.source_mode.value,
                    record.alias,
                )
                continue
            seen.add(record.alias)
            records.append(record)
        return records

    def find(self, name: str) -> Optional[AccountRecord]:
        for record in self.list():
            if record.name == name:
                return record
        return None

    def alias_occurrences(self) -> List[Tuple[str, SourceMode]]:
        """Every GitHub alias as found on disk, duplicates included."""
        return [(record.alias, record.source_mode) for record in self._raw_records()]

    def all_aliases(self) -> Set[str]:
        """Raw union of aliases from both sources, without precedence."""
        return {alias for alias, _ in self.alias_occurrences()}

    def duplicate_aliases(self) -> List[str]:
        counts = Counter(alias for alias, _ in self.alias_occurrences())
        return sorted(alias for alias, count in counts.items() if count > 1)

    def host_exists(self, name: str) -> bool:
        """True if the alias for ``name`` appears in either representation."""
        alias = self.settings.host_alias_for(name)
        if alias in host_aliases(read_text(self.settings.config_file)):
            return True
        return self.settings.split_file_for(alias).is_file()

    def key_exists(self, name: str) -> bool:
        return self.settings.key_path_for(name).is_file()

    def is_split_mode_enabled(self) -> bool:
        return has_include_directive(
            read_text(self.settings.config_file), self.settings.include_directive
        )
