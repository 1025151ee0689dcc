"""
Thin wrappers around the OpenSSH command line tools.

Key generation is the only call the account workflow depends on; agent
handling and the authentication probe are best effort and never block a
config change.
"""

import logging
import os
import subprocess
from enum import Enum
from pathlib import Path
from typing import List, Tuple, Union

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import ExternalToolError
from .utils.files import PRIVATE_FILE_MODE, PUBLIC_KEY_MODE

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class AuthResult(str, Enum):
    """Outcome of ``ssh -T git@<alias>``."""
    SUCCESS = "success"
    DENIED = "denied"
    UNKNOWN = "unknown"


class AgentStatus(str, Enum):
    RUNNING = "running"
    NO_KEYS = "no_keys"
    NOT_RUNNING = "not_running"


def set_key_permissions(key_path: PathLike) -> None:
    """Private key ``0600``, public key ``0644``."""
    private_key = Path(key_path)
    public_key = Path(f"{key_path}.pub")
    if private_key.is_file():
        private_key.chmod(PRIVATE_FILE_MODE)
    if public_key.is_file():
        public_key.chmod(PUBLIC_KEY_MODE)


def classify_auth_output(output: str) -> AuthResult:
    """
    Classify the text GitHub prints on ``ssh -T``.

    GitHub greets and then closes the connection with a non-zero status
    even when the key is accepted, so only the output text is meaningful.
    """
    lowered = output.lower()
    if "successfully authenticated" in lowered:
        return AuthResult.SUCCESS
    if "permission denied" in lowered:
        return AuthResult.DENIED
    return AuthResult.UNKNOWN


class SSHKeyTool:
    """Run ``ssh-keygen``, ``ssh-add`` and ``ssh``."""

    def __init__(self, timeout: int = 30, probe_attempts: int = 3):
        self.timeout = timeout
        self.probe_attempts = probe_attempts

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        logger.debug("Running: %s", " ".join(cmd))
        return subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)

    def generate_key(self, key_path: PathLike, email: str, key_type: str = "ed25519") -> None:
        cmd = ["ssh-keygen", "-t", key_type, "-C", email, "-f", str(key_path), "-N", "", "-q"]
        try:
            result = self._run(cmd)
        except FileNotFoundError as e:
            raise ExternalToolError("ssh-keygen not found. Install OpenSSH first.") from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(f"ssh-keygen timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise ExternalToolError(
                f"ssh-keygen failed with exit code {result.returncode}: {result.stderr.strip()}"
            )
        set_key_permissions(key_path)
        logger.info("Key pair created: %s", key_path)

    def update_key_comment(self, key_path: PathLike, email: str) -> bool:
        if not Path(key_path).is_file():
            return False
        cmd = ["ssh-keygen", "-c", "-C", email, "-f", str(key_path), "-P", "", "-q"]
        try:
            result = self._run(cmd)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("Could not update key comment for %s: %s", key_path, e)
            return False
        if result.returncode != 0:
            logger.warning("Could not update key comment for %s: %s", key_path, result.stderr.strip())
            return False
        return True

    def add_to_agent(self, key_path: PathLike) -> bool:
        try:
            result = self._run(["ssh-add", str(key_path)])
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("Could not add key to ssh-agent: %s", e)
            return False
        if result.returncode != 0:
            logger.warning("Could not add key to ssh-agent.")
            return False
        return True

    def remove_from_agent(self, key_path: PathLike) -> bool:
        try:
            result = self._run(["ssh-add", "-d", str(key_path)])
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("Could not remove key from ssh-agent: %s", e)
            return False
        return result.returncode == 0

    def agent_status(self) -> AgentStatus:
        try:
            result = self._run(["ssh-add", "-l"])
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return AgentStatus.NOT_RUNNING
        if result.returncode == 0:
            return AgentStatus.RUNNING
        if os.environ.get("SSH_AUTH_SOCK"):
            return AgentStatus.NO_KEYS
        return AgentStatus.NOT_RUNNING

    def probe_authentication(self, alias: str) -> Tuple[AuthResult, str]:
        """
        Try ``ssh -T git@<alias>`` and classify the greeting.

        Timeouts are retried with exponential backoff up to
        ``probe_attempts`` times before giving up.
        """
        retryer = Retrying(
            stop=stop_after_attempt(self.probe_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(subprocess.TimeoutExpired),
            reraise=True,
        )
        try:
            result = retryer(self._run, ["ssh", "-T", f"git@{alias}"])
        except FileNotFoundError as e:
            raise ExternalToolError("ssh not found. Install OpenSSH first.") from e
        except subprocess.TimeoutExpired:
            return AuthResult.UNKNOWN, f"Connection timed out after {self.timeout}s"

        output = (result.stdout + result.stderr).strip()
        return classify_auth_output(output), output
