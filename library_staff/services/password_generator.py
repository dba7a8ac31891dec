"""
Temporary password generation for account creation and admin reset.
"""

from __future__ import annotations

import secrets
import string

SYMBOLS = "!@#$%^&*"
_CLASSES = (string.ascii_lowercase, string.ascii_uppercase, string.digits, SYMBOLS)
_ALPHABET = "".join(_CLASSES)

DEFAULT_LENGTH = 16


def generate_temporary_password(length: int = DEFAULT_LENGTH) -> str:
    """Random password containing at least one character of every class."""
    if length < len(_CLASSES):
        raise ValueError(f"length must be at least {len(_CLASSES)}")
    chars = [secrets.choice(group) for group in _CLASSES]
    chars += [secrets.choice(_ALPHABET) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
