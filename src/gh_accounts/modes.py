"""
Transitions between the unified and split representations.

Split mode is on iff the unified config contains the include directive for
the split directory; the state is recomputed from the file on every call.

``split_all`` and ``merge_all`` work one block at a time and each step is
safe to repeat, so an interrupted transition leaves some blocks on each
side rather than a torn file. Alias precedence in ``AccountDirectory``
keeps the logical view duplicate-free in the meantime.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .directory import AccountDirectory
from .errors import ConflictError, NotFoundError
from .models import Settings, SourceMode
from .parser import (
    Segment,
    collapse_trailing_blank_lines,
    has_include_directive,
    join_segments,
    split_segments,
    strip_leading_blank_lines,
)
from .utils.files import atomic_write, ensure_dir, read_text

logger = logging.getLogger(__name__)


class ModeTransitionEngine:
    """Move managed blocks between the unified file and split files."""

    def __init__(self, settings: Settings, directory: Optional[AccountDirectory] = None):
        self.settings = settings
        self.directory = directory or AccountDirectory(settings)

    def is_split_enabled(self) -> bool:
        return has_include_directive(
            read_text(self.settings.config_file), self.settings.include_directive
        )

    def current_mode(self) -> SourceMode:
        return SourceMode.SPLIT if self.is_split_enabled() else SourceMode.UNIFIED

    def enable_split(self) -> bool:
        """Insert the include directive at the top of the unified file."""
        config_file = self.settings.config_file
        ensure_dir(self.settings.ssh_dir)
        ensure_dir(self.settings.split_dir)

        text = read_text(config_file)
        directive = self.settings.include_directive
        if has_include_directive(text, directive):
            logger.debug("Split mode is already enabled.")
            return False

        content = f"{directive}\n"
        if text:
            content += f"\n{text}"
        atomic_write(config_file, content)
        logger.debug("Split mode enabled. Include directive added to %s.", config_file)
        return True

    def disable_split(self) -> bool:
        """Remove the include directive. Split files are left in place."""
        config_file = self.settings.config_file
        if not config_file.is_file():
            logger.debug("No SSH config found.")
            return False

        text = config_file.read_text()
        directive = self.settings.include_directive
        if not has_include_directive(text, directive):
            logger.debug("Split mode is not enabled.")
            return False

        kept = [line for line in text.splitlines(keepends=True) if line.strip() != directive]
        atomic_write(config_file, strip_leading_blank_lines("".join(kept)))
        logger.debug("Split mode disabled. Include directive removed from %s.", config_file)
        return True

    def _plan_split(self, managed: List[Segment]) -> List[Tuple[Path, str, bool]]:
        """Work out the target file for each block; refuse any collision up front."""
        plan = []
        targets = set()
        for segment in managed:
            alias = segment.alias or self.settings.host_alias_for(segment.owner)
            target = self.settings.split_file_for(alias)
            body = segment.body
            if target in targets:
                raise ConflictError(f"More than one managed block uses alias '{alias}'.")
            targets.add(target)

            if target.exists():
                if read_text(target) != body:
                    raise ConflictError(f"Split config already exists: {target}")
                # Left behind by an interrupted split; nothing to write.
                plan.append((target, body, False))
            else:
                plan.append((target, body, True))
        return plan

    def split_all(self) -> int:
        """
        Move every managed block from the unified file to its own split file.

        All split files are written before the unified file is rewritten. If
        any write fails, the split files created so far are removed and the
        unified file is left as it was. Returns the number of blocks moved.
        """
        config_file = self.settings.config_file
        if not config_file.is_file():
            raise NotFoundError(f"No SSH config found: {config_file}")

        segments = split_segments(config_file.read_text())
        managed = [segment for segment in segments if segment.managed]
        if not managed:
            logger.debug("No gh-accounts blocks found in unified config.")
            return 0

        plan = self._plan_split(managed)
        ensure_dir(self.settings.split_dir)

        written: List[Path] = []
        try:
            for target, body, needs_write in plan:
                if needs_write:
                    atomic_write(target, body)
                    written.append(target)
            remaining = [segment for segment in segments if not segment.managed]
            atomic_write(config_file, collapse_trailing_blank_lines(join_segments(remaining)))
        except OSError:
            for target in written:
                target.unlink(missing_ok=True)
            logger.error("Split aborted; %s left unchanged.", config_file)
            raise

        self.enable_split()
        logger.debug("Split %d account(s) into %s/.", len(plan), self.settings.split_dir)
        return len(plan)

    def merge_all(self) -> int:
        """
        Append every managed split file to the unified file and delete it.

        A block that an interrupted merge already appended is not appended
        twice. Having nothing to merge is a successful no-op. Returns the
        number of split files merged.
        """
        split_files = self.directory.split_files()
        if not split_files:
            logger.debug("No split config files found to merge.")
            return 0

        config_file = self.settings.config_file
        ensure_dir(self.settings.ssh_dir)
        for split_file in split_files:
            block = split_file.read_text()
            if block and not block.endswith("\n"):
                block += "\n"

            unified = read_text(config_file)
            if block.strip() and block.strip() in unified:
                logger.debug("Block from %s already present in unified config", split_file)
            else:
                if unified and not unified.endswith("\n"):
                    unified += "\n"
                atomic_write(config_file, f"{unified}\n{block}")
            split_file.unlink()

        logger.debug("Merged %d split config(s) into %s.", len(split_files), config_file)
        self.disable_split()
        return len(split_files)
