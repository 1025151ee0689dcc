"""
Generation and placement of managed ``Host`` blocks.

The writer knows where a block lives in each representation: appended to
the unified config, or alone in ``<split_dir>/<alias>``. Removal and email
updates go through the segment view so that unrelated content is written
back exactly as it was read.
"""

import logging
from typing import Optional

from .errors import ConflictError
from .models import Settings, SourceMode
from .parser import (
    collapse_trailing_blank_lines,
    format_ownership_comment,
    join_segments,
    split_segments,
)
from .utils.files import atomic_write, ensure_dir, read_text

logger = logging.getLogger(__name__)


def build_host_block(name: str, email: str, settings: Settings) -> str:
    """Canonical managed block for ``name``."""
    return (
        f"{format_ownership_comment(name, email)}\n"
        f"Host {settings.host_alias_for(name)}\n"
        f"    HostName {settings.github_host}\n"
        f"    User git\n"
        f"    IdentityFile {settings.key_path_for(name)}\n"
        f"    IdentitiesOnly yes\n"
    )


class BlockWriter:
    """Write, remove and update managed blocks in either representation."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def write(self, name: str, email: str, mode: SourceMode) -> None:
        """
        Store a new block for ``name``.

        Unified mode always appends; duplicate detection is up to the
        caller. Split mode refuses to overwrite an existing split file.
        """
        block = build_host_block(name, email, self.settings)
        if mode is SourceMode.SPLIT:
            self._write_split(name, block)
        else:
            self._append_unified(name, block)

    def _append_unified(self, name: str, block: str) -> None:
        config_file = self.settings.config_file
        ensure_dir(self.settings.ssh_dir)
        existing = read_text(config_file)
        if existing and not existing.endswith("\n"):
            existing += "\n"
        atomic_write(config_file, f"{existing}\n{block}")
        logger.info("Added host block for '%s' to %s.", name, config_file)

    def _write_split(self, name: str, block: str) -> None:
        ensure_dir(self.settings.split_dir)
        split_file = self.settings.split_file_for(self.settings.host_alias_for(name))
        if split_file.exists():
            raise ConflictError(f"Split config already exists: {split_file}")
        atomic_write(split_file, block)
        logger.info("Created split config %s.", split_file)

    def remove(self, name: str, mode: Optional[SourceMode] = None) -> bool:
        """
        Remove the block for ``name``.

        With ``mode=None`` both representations are tried. A block missing
        from a representation is not an error. Returns True if anything
        was removed.
        """
        removed = False
        if mode in (None, SourceMode.UNIFIED):
            removed = self._remove_unified(name) or removed
        if mode in (None, SourceMode.SPLIT):
            removed = self._remove_split(name) or removed
        return removed

    def _remove_unified(self, name: str) -> bool:
        config_file = self.settings.config_file
        if not config_file.is_file():
            return False

        segments = split_segments(config_file.read_text())
        kept = [segment for segment in segments if segment.owner != name]
        if len(kept) == len(segments):
            return False

        atomic_write(config_file, collapse_trailing_blank_lines(join_segments(kept)))
        logger.info("Removed host block for '%s' from %s.", name, config_file)
        return True

    def _remove_split(self, name: str) -> bool:
        split_file = self.settings.split_file_for(self.settings.host_alias_for(name))
        if not split_file.is_file():
            return False
        split_file.unlink()
        logger.info("Removed split config %s.", split_file)
        return True

    def update_email(self, name: str, new_email: str, mode: SourceMode) -> bool:
        """
        Rewrite the email in the ownership comment of ``name``.

        Only the comment line changes. Returns False when that
        representation holds no ownership comment for ``name``, which is
        also the case for hand-written blocks.
        """
        if mode is SourceMode.SPLIT:
            path = self.settings.split_file_for(self.settings.host_alias_for(name))
        else:
            path = self.settings.config_file
        if not path.is_file():
            return False

        segments = split_segments(path.read_text())
        updated = False
        for segment in segments:
            if segment.owner != name:
                continue
            first = segment.lines[0]
            ending = first[len(first.rstrip("\r\n")):]
            segment.lines[0] = format_ownership_comment(name, new_email) + ending
            segment.owner_email = new_email
            updated = True

        if not updated:
            return False

        atomic_write(path, join_segments(segments))
        logger.info("Updated email for '%s' in %s config.", name, mode.value)
        return True
