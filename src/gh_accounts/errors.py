"""Error types raised by gh-accounts."""

from dataclasses import dataclass


class GhAccountsError(RuntimeError):
    """Base class for every failure reported to the user."""


class ValidationError(GhAccountsError):
    """Raised when an account name or email is malformed."""


class NotFoundError(GhAccountsError):
    """Raised when an account is absent from the representation being changed."""


class UnmanagedAccountError(NotFoundError):
    """Raised when an account exists but carries no ownership comment."""


class ConflictError(GhAccountsError):
    """Raised on alias, key or split-file collisions."""


class SettingsError(GhAccountsError):
    """Raised when the settings file cannot be loaded."""


class ExternalToolError(GhAccountsError):
    """Raised when a required external tool is missing or fails."""


@dataclass(frozen=True)
class IntegrityWarning:
    """Non-fatal problem found by diagnostics. Reported, never raised."""

    kind: str
    subject: str
    message: str
