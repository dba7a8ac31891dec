"""
Credential value objects.

Immutable, validated wrappers. Factories named ``create`` / ``from_plain_text``
validate their input; ``from_storage`` / ``from_hash`` rebuild values that
were validated before they were persisted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from email_validator import EmailNotValidError, validate_email
from ulid import ULID

from library_staff.core.security import get_password_hash, verify_password
from library_staff.domain.errors import InvalidEmail, InvalidPassword, InvalidStaffName

_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")


def new_ulid() -> str:
    """Generate a new ULID string (26 chars, Crockford base32)."""
    return str(ULID())


@dataclass(frozen=True)
class StaffId:
    value: str

    @classmethod
    def generate(cls) -> "StaffId":
        return cls(new_ulid())

    @classmethod
    def from_string(cls, value: str) -> "StaffId":
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Email:
    # RFC 5321 caps a forward path at 254 octets, which is also what email-validator enforces.
    MAX_LENGTH = 254

    value: str

    @classmethod
    def create(cls, raw: str) -> "Email":
        normalized = (raw or "").strip().lower()
        if not normalized:
            raise InvalidEmail.empty()
        if len(normalized) > cls.MAX_LENGTH:
            raise InvalidEmail.too_long(cls.MAX_LENGTH)
        try:
            validate_email(normalized, check_deliverability=False)
        except EmailNotValidError:
            raise InvalidEmail.bad_format() from None
        return cls(normalized)

    @classmethod
    def from_storage(cls, value: str) -> "Email":
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Password:
    """A bcrypt hash. The plain text never outlives ``from_plain_text``."""

    MIN_LENGTH = 8
    MAX_LENGTH = 72

    hashed_value: str = field(repr=False)

    @classmethod
    def from_plain_text(cls, plain_text: str) -> "Password":
        length = len(plain_text or "")
        if length == 0:
            raise InvalidPassword.empty()
        if length < cls.MIN_LENGTH:
            raise InvalidPassword.too_short(cls.MIN_LENGTH)
        if length > cls.MAX_LENGTH:
            raise InvalidPassword.too_long(cls.MAX_LENGTH)
        return cls(get_password_hash(plain_text))

    @classmethod
    def from_hash(cls, hashed_value: str) -> "Password":
        return cls(hashed_value)

    def verify(self, candidate: str) -> bool:
        return verify_password(candidate, self.hashed_value)


@dataclass(frozen=True)
class StaffName:
    MAX_LENGTH = 100

    value: str

    @classmethod
    def create(cls, raw: str) -> "StaffName":
        sanitized = _CONTROL_CHARS.sub("", raw or "").strip()
        if not sanitized:
            raise InvalidStaffName.empty()
        if len(sanitized) > cls.MAX_LENGTH:
            raise InvalidStaffName.too_long(cls.MAX_LENGTH)
        return cls(sanitized)

    @classmethod
    def from_storage(cls, value: str) -> "StaffName":
        return cls(value)

    def __str__(self) -> str:
        return self.value
