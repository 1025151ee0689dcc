"""Shared helpers for gh-accounts."""
