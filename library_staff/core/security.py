"""
Password hashing (bcrypt), session token minting and the signed session cookie.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from library_staff.core.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_ALGORITHM = settings.ALGORITHM
_SECRET = settings.SECRET_KEY


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


def dummy_verify() -> None:
    """Burn one hash verification so unknown accounts cost the same as known ones."""
    pwd_context.dummy_verify()


# ── Sessions ────────────────────────────────────────────────────────
def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_cookie(session_id: str, staff_id: str) -> str:
    """Sign the session reference stored in the browser cookie.

    The JWT carries no expiry of its own: the ``staff_sessions`` row is the
    source of truth and is re-validated on every request.
    """
    return jwt.encode(
        {
            "sid": session_id,
            "sub": staff_id,
            "iat": int(datetime.now(timezone.utc).timestamp()),
            "type": "session",
        },
        _SECRET,
        algorithm=_ALGORITHM,
    )


def decode_session_cookie(token: str) -> dict[str, Any] | None:
    """Return payload dict if the cookie is a valid session token, else ``None``."""
    try:
        payload = jwt.decode(token, _SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "session" or not payload.get("sid"):
        return None
    return payload
