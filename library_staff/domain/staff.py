"""
Staff aggregate and password-history entity.

``Staff`` owns the account-lockout state machine::

    Active(failed_attempts 0..4) --5th failure--> Locked(locked_at)
    Locked --unlock()--> Active(0)

A locked account rejects every login regardless of the password. The lock
does not expire on its own; only an administrator's ``unlock()`` clears it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from library_staff.domain.value_objects import (
    Email,
    Password,
    StaffId,
    StaffName,
    new_ulid,
)

MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_RETRY_AFTER_SECONDS = 1800

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Staff:
    """Aggregate root for a library employee account."""

    def __init__(
        self,
        staff_id: StaffId,
        email: Email,
        password: Password,
        name: StaffName,
        is_admin: bool,
        is_locked: bool,
        failed_login_attempts: int,
        locked_at: Optional[datetime],
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self._id = staff_id
        self._email = email
        self._password = password
        self._name = name
        self._is_admin = is_admin
        self._is_locked = is_locked
        self._failed_login_attempts = failed_login_attempts
        self._locked_at = locked_at
        self._created_at = created_at
        self._updated_at = updated_at

    @classmethod
    def create(
        cls,
        staff_id: StaffId,
        email: Email,
        password: Password,
        name: StaffName,
        is_admin: bool = False,
    ) -> "Staff":
        """New accounts always start unlocked with a clean failure counter."""
        now = _utcnow()
        return cls(
            staff_id=staff_id,
            email=email,
            password=password,
            name=name,
            is_admin=is_admin,
            is_locked=False,
            failed_login_attempts=0,
            locked_at=None,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(
        cls,
        staff_id: StaffId,
        email: Email,
        password: Password,
        name: StaffName,
        is_admin: bool,
        is_locked: bool,
        failed_login_attempts: int,
        locked_at: Optional[datetime],
        created_at: Optional[datetime],
        updated_at: Optional[datetime],
    ) -> "Staff":
        return cls(
            staff_id=staff_id,
            email=email,
            password=password,
            name=name,
            is_admin=is_admin,
            is_locked=is_locked,
            failed_login_attempts=failed_login_attempts,
            locked_at=locked_at,
            created_at=created_at,
            updated_at=updated_at,
        )

    # ── Accessors ───────────────────────────────────────────────────
    @property
    def id(self) -> StaffId:
        return self._id

    @property
    def email(self) -> Email:
        return self._email

    @property
    def password(self) -> Password:
        return self._password

    @property
    def name(self) -> StaffName:
        return self._name

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    @property
    def role(self) -> str:
        return ROLE_ADMIN if self._is_admin else ROLE_STAFF

    @property
    def is_locked(self) -> bool:
        return self._is_locked

    @property
    def failed_login_attempts(self) -> int:
        return self._failed_login_attempts

    @property
    def locked_at(self) -> Optional[datetime]:
        return self._locked_at

    @property
    def created_at(self) -> Optional[datetime]:
        return self._created_at

    @property
    def updated_at(self) -> Optional[datetime]:
        return self._updated_at

    # ── Credentials ─────────────────────────────────────────────────
    def verify_password(self, plain_text: str) -> bool:
        return self._password.verify(plain_text)

    def change_password(self, password: Password) -> None:
        self._password = password

    # ── Lockout state machine ───────────────────────────────────────
    def lock(self, now: Optional[datetime] = None) -> None:
        self._is_locked = True
        self._locked_at = now or _utcnow()

    def unlock(self) -> None:
        self._is_locked = False
        self._locked_at = None
        self._failed_login_attempts = 0

    def increment_failed_login_attempts(self) -> None:
        self._failed_login_attempts += 1

    def reset_failed_login_attempts(self) -> None:
        self._failed_login_attempts = 0

    def register_failed_login(
        self, now: Optional[datetime] = None, attempts: Optional[int] = None
    ) -> bool:
        """Count a failed password check. Returns True when this failure locked the account.

        ``attempts`` is the counter after it was already incremented in storage;
        without it the in-memory counter is incremented.
        """
        if self._is_locked:
            return False
        if attempts is None:
            self.increment_failed_login_attempts()
        else:
            self._failed_login_attempts = attempts
        if self._failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS:
            self.lock(now)
            return True
        return False

    def register_successful_login(self) -> None:
        if self._failed_login_attempts:
            self.reset_failed_login_attempts()

    # ── Administrative edits ────────────────────────────────────────
    def update_profile(self, name: StaffName, email: Email, is_admin: bool) -> None:
        self._name = name
        self._email = email
        self._is_admin = is_admin

    def touch(self, now: Optional[datetime] = None) -> datetime:
        """Advance ``updated_at``, always into a later whole second.

        Clients echo ``updated_at`` back truncated to seconds for the optimistic
        lock, so two edits inside the same second must still differ.
        """
        now = now or _utcnow()
        if self._updated_at is not None:
            floor = self._updated_at.replace(microsecond=0) + timedelta(seconds=1)
            if now < floor:
                now = floor
        self._updated_at = now
        return now

    def __repr__(self) -> str:
        return f"<Staff id={self._id.value} email={self._email.value} role={self.role}>"


@dataclass(frozen=True)
class PasswordHistory:
    """One previously used password hash. Never mutated, only created and pruned."""

    id: str
    staff_id: StaffId
    password_hash: str
    created_at: datetime

    @classmethod
    def create(cls, staff_id: StaffId, password_hash: str) -> "PasswordHistory":
        return cls(
            id=new_ulid(),
            staff_id=staff_id,
            password_hash=password_hash,
            created_at=_utcnow(),
        )

    def matches(self, plain_text: str) -> bool:
        return Password.from_hash(self.password_hash).verify(plain_text)
