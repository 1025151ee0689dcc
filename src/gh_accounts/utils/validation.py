"""Input validation for account names and email addresses."""

import re

from ..errors import ValidationError

ACCOUNT_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")
EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_account_name(name: str) -> str:
    if not name:
        raise ValidationError("Account name is required.")
    if not ACCOUNT_NAME_RE.match(name):
        raise ValidationError(
            f"Invalid account name '{name}'. "
            "Use only alphanumerics, dots, hyphens, and underscores."
        )
    return name


def validate_email(email: str) -> str:
    if not email:
        raise ValidationError("Email address is required.")
    if not EMAIL_RE.match(email):
        raise ValidationError(f"Invalid email address '{email}'.")
    return email
