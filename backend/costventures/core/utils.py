"""
Utility functions for the application.
"""
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

TOKEN_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_random_string(length: int) -> str:
    """Random upper-case alphanumeric string, e.g. for activation tokens."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def contains_empty_string(*values: Optional[str]) -> bool:
    """True if any value is None or blank."""
    return any(value is None or not str(value).strip() for value in values)


def first_non_empty(new: Optional[str], current: Optional[str]) -> Optional[str]:
    """Patch helper: only non-empty supplied values overwrite the current one."""
    if new is None:
        return current
    if isinstance(new, str) and not new.strip():
        return current
    return new
