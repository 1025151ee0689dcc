"""
gh-accounts - GitHub SSH Account Manager

Keeps several GitHub identities side by side in an SSH client config: each
identity gets its own key pair and ``Host`` routing block, stored either in
the unified ``~/.ssh/config`` or in one split file per account.
"""

__version__ = "1.0.0"
__description__ = "GitHub SSH Account Manager"

__all__ = ["__version__"]
