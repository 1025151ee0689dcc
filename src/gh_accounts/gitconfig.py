"""Git identity switching through ``git config``."""

import logging
import subprocess
from typing import List, Optional

from .errors import ExternalToolError, ValidationError

logger = logging.getLogger(__name__)

SCOPES = ("local", "global")


class GitIdentity:
    """Set ``user.name`` and ``user.email`` for a repository or globally."""

    def __init__(self, cwd: Optional[str] = None):
        self.cwd = cwd

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(cmd, capture_output=True, text=True, cwd=self.cwd)
        except FileNotFoundError as e:
            raise ExternalToolError("git not found. Install git first.") from e

    def inside_work_tree(self) -> bool:
        result = self._run(["git", "rev-parse", "--is-inside-work-tree"])
        return result.returncode == 0 and result.stdout.strip() == "true"

    def set_identity(self, name: str, email: str, scope: str = "local") -> None:
        if scope not in SCOPES:
            raise ValidationError(f"Invalid scope '{scope}'. Use one of: {', '.join(SCOPES)}")
        if scope == "local" and not self.inside_work_tree():
            raise ValidationError(
                "Not inside a git repository. Use --global or navigate to a repo first."
            )

        for key, value in (("user.name", name), ("user.email", email)):
            result = self._run(["git", "config", f"--{scope}", key, value])
            if result.returncode != 0:
                raise ExternalToolError(f"git config {key} failed: {result.stderr.strip()}")
        logger.debug("Set git identity %s <%s> (%s)", name, email, scope)
