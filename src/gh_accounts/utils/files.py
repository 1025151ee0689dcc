"""Filesystem helpers shared by the writer, the mode engine and backups."""

import os
import tempfile
from pathlib import Path

PRIVATE_FILE_MODE = 0o600
PRIVATE_DIR_MODE = 0o700
PUBLIC_KEY_MODE = 0o644


def ensure_dir(path: Path, mode: int = PRIVATE_DIR_MODE) -> Path:
    """Create ``path`` if needed and force its permission bits."""
    path.mkdir(parents=True, exist_ok=True)
    path.chmod(mode)
    return path


def read_text(path: Path) -> str:
    """Return the file content, or an empty string when it does not exist."""
    if not path.is_file():
        return ""
    return path.read_text()


def atomic_write(path: Path, content: str, mode: int = PRIVATE_FILE_MODE) -> None:
    """
    Replace ``path`` with ``content`` in one step.

    The data goes to a temporary file in the same directory which is then
    renamed over the target, so readers never see a half-written file.
    A symlinked ``path`` is written through to the file it points at.
    """
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as handle:
            handle.write(content)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def file_mode(path: Path) -> int:
    """Permission bits of ``path`` (e.g. ``0o600``)."""
    return path.stat().st_mode & 0o777
