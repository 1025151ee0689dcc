"""
Parser for GitHub ``Host`` blocks in SSH client config files.

Two views of the same text are provided:

* a record view: a single forward pass folds every line into a small
  ``BlockState`` and flushes finished blocks into ``AccountRecord`` objects;
* a segment view: the text is cut into managed blocks (ownership comment
  through the next blank line) and unrelated raw text, so callers can drop
  or rewrite one block and serialize the rest back unchanged.

Parsing never raises on malformed input. Incomplete blocks become partial
records and are reported later by diagnostics.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .models import UNKNOWN_EMAIL, AccountRecord, Settings, SourceMode

logger = logging.getLogger(__name__)

OWNER_TAG = "gh-accounts"
OWNERSHIP_COMMENT_RE = re.compile(r"^# gh-accounts :: (\S+) <([^>]+)>")
HOST_RE = re.compile(r"^Host\s+(\S.*?)\s*$")
HOSTNAME_RE = re.compile(r"^\s*HostName\s+(\S.*?)\s*$", re.IGNORECASE)
IDENTITY_FILE_RE = re.compile(r"^\s*IdentityFile\s+(\S.*?)\s*$", re.IGNORECASE)
# A Host or Match line opens a new stanza.
STANZA_RE = re.compile(r"^(Host|Match)\s", re.IGNORECASE)


def format_ownership_comment(name: str, email: str) -> str:
    return f"# {OWNER_TAG} :: {name} <{email}>"


@dataclass(frozen=True)
class BlockState:
    """Parser state carried from one line to the next."""
    current_alias: str = ""
    current_hostname: str = ""
    current_identity_file: str = ""
    is_managed: bool = False
    managed_email: str = ""
    # Ownership comment waiting for the Host line it belongs to.
    pending_owner: Optional[Tuple[str, str]] = None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def step(state: BlockState, line: str) -> Tuple[BlockState, Optional[BlockState]]:
    """
    Advance the parser by one line.

    Returns the new state and, when the line closed a block, the closed
    block so the caller can flush it.
    """
    text = line.rstrip("\r\n")

    match = OWNERSHIP_COMMENT_RE.match(text)
    if match:
        return replace(state, pending_owner=(match.group(1), match.group(2))), None

    match = HOST_RE.match(text)
    if match:
        owner = state.pending_owner
        opened = BlockState(
            current_alias=match.group(1),
            is_managed=owner is not None,
            managed_email=owner[1] if owner else "",
        )
        closed = state if state.current_alias else None
        return opened, closed

    if state.current_alias:
        match = HOSTNAME_RE.match(text)
        if match:
            return replace(state, current_hostname=_unquote(match.group(1))), None
        match = IDENTITY_FILE_RE.match(text)
        if match:
            return replace(state, current_identity_file=_unquote(match.group(1))), None

    return state, None


def expand_home(value: str, home_dir: Path) -> str:
    """Expand a leading ``~`` against ``home_dir``."""
    if value == "~":
        return str(home_dir)
    if value.startswith("~/"):
        return str(home_dir / value[2:])
    return value


def email_from_public_key(key_path: str) -> str:
    """Read the comment field (third column) of ``<key_path>.pub``."""
    if not key_path:
        return UNKNOWN_EMAIL
    public_key = Path(f"{key_path}.pub")
    try:
        if not public_key.is_file():
            return UNKNOWN_EMAIL
        fields = public_key.read_text(errors="replace").split()
    except OSError as e:
        logger.debug("Could not read public key %s: %s", public_key, e)
        return UNKNOWN_EMAIL
    return fields[2] if len(fields) >= 3 else UNKNOWN_EMAIL


def flush(block: BlockState, settings: Settings, mode: SourceMode) -> Optional[AccountRecord]:
    """Turn a closed block into a record if it routes to GitHub."""
    if not block.current_alias or block.current_hostname != settings.github_host:
        return None

    key_path = expand_home(block.current_identity_file, settings.home_dir)
    if block.is_managed:
        email = block.managed_email
    else:
        email = email_from_public_key(key_path)

    return AccountRecord(
        name=settings.name_for_alias(block.current_alias),
        email=email,
        alias=block.current_alias,
        key_path=key_path,
        source_mode=mode,
        managed=block.is_managed,
    )


def iter_records(
    lines: Iterable[str], settings: Settings, mode: SourceMode
) -> Iterator[AccountRecord]:
    state = BlockState()
    for line in lines:
        state, closed = step(state, line)
        if closed is not None:
            record = flush(closed, settings, mode)
            if record is not None:
                yield record

    record = flush(state, settings, mode)
    if record is not None:
        yield record


def parse_text(text: str, settings: Settings, mode: SourceMode) -> List[AccountRecord]:
    return list(iter_records(text.splitlines(), settings, mode))


def parse_file(path: Path, settings: Settings, mode: SourceMode) -> List[AccountRecord]:
    """Parse one config file. A missing or unreadable file yields no records."""
    try:
        if not path.is_file():
            return []
        text = path.read_text(errors="replace")
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return []
    return parse_text(text, settings, mode)


def host_aliases(text: str) -> List[str]:
    """Every alias that follows a ``Host`` keyword, GitHub or not."""
    aliases = []
    for line in text.splitlines():
        match = HOST_RE.match(line)
        if match:
            aliases.append(match.group(1))
    return aliases


def has_include_directive(text: str, directive: str) -> bool:
    return any(line.strip() == directive for line in text.splitlines())


# ---------------------------------------------------------------------------
# Segment view
# ---------------------------------------------------------------------------


def _is_blank(line: str) -> bool:
    return not line.strip()


@dataclass
class Segment:
    """A run of raw lines: either one managed block or unrelated text."""
    lines: List[str] = field(default_factory=list)
    owner: Optional[str] = None
    owner_email: Optional[str] = None

    @property
    def managed(self) -> bool:
        return self.owner is not None

    @property
    def text(self) -> str:
        return "".join(self.lines)

    @property
    def body(self) -> str:
        """The block without its trailing blank separator, newline-terminated."""
        lines = list(self.lines)
        while lines and _is_blank(lines[-1]):
            lines.pop()
        body = "".join(lines)
        if body and not body.endswith("\n"):
            body += "\n"
        return body

    @property
    def alias(self) -> Optional[str]:
        for line in self.lines:
            match = HOST_RE.match(line.rstrip("\r\n"))
            if match:
                return match.group(1)
        return None

    def has_field(self, pattern: "re.Pattern[str]") -> bool:
        return any(pattern.match(line.rstrip("\r\n")) for line in self.lines)


def split_segments(text: str) -> List[Segment]:
    """
    Cut ``text`` into segments.

    A managed segment starts at an ownership comment and runs through the
    next blank line (inclusive), the next ownership comment, or EOF. A
    ``Host`` or ``Match`` line after the segment's own ``Host`` line also
    ends it, so a stanza written directly below stays raw text.
    ``join_segments(split_segments(text)) == text`` always holds.
    """
    segments: List[Segment] = []
    current: Optional[Segment] = None
    seen_host = False

    for line in text.splitlines(keepends=True):
        stripped = line.rstrip("\r\n")
        match = OWNERSHIP_COMMENT_RE.match(stripped)
        if match:
            current = Segment([line], owner=match.group(1), owner_email=match.group(2))
            segments.append(current)
            seen_host = False
            continue

        if current is not None and current.managed:
            if STANZA_RE.match(stripped):
                if seen_host:
                    current = None
                else:
                    seen_host = True
            if current is not None:
                current.lines.append(line)
                if _is_blank(line):
                    current = None
                continue

        if current is None:
            current = Segment()
            segments.append(current)
        current.lines.append(line)

    return segments


def join_segments(segments: Iterable[Segment]) -> str:
    return "".join(segment.text for segment in segments)


def collapse_trailing_blank_lines(text: str) -> str:
    lines = text.splitlines(keepends=True)
    while lines and _is_blank(lines[-1]):
        lines.pop()
    return "".join(lines)


def strip_leading_blank_lines(text: str) -> str:
    lines = text.splitlines(keepends=True)
    while lines and _is_blank(lines[0]):
        lines.pop(0)
    return "".join(lines)
