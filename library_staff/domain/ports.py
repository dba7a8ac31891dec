"""Interfaces the staff core depends on. SQLAlchemy implementations live in ``library_staff.repositories``."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from library_staff.domain.staff import PasswordHistory, Staff
from library_staff.domain.value_objects import Email, StaffId


@dataclass(frozen=True)
class SessionView:
    """A persisted login session as seen by the governance service."""

    id: str
    staff_id: str
    ip_address: Optional[str]
    user_agent: Optional[str]
    last_activity: datetime
    created_at: datetime
    is_current: bool = False


class Transaction(Protocol):
    """Unit-of-work boundary. ``AsyncSession`` satisfies it as-is."""

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


class StaffRepository(Protocol):
    async def get(self, staff_id: StaffId) -> Staff | None:
        ...

    async def get_for_update(self, staff_id: StaffId) -> Staff | None:
        ...

    async def get_by_email(self, email: Email) -> Staff | None:
        ...

    async def get_by_email_for_update(self, email: Email) -> Staff | None:
        ...

    async def exists_by_email(self, email: Email) -> bool:
        ...

    async def exists_by_email_excluding(self, email: Email, staff_id: StaffId) -> bool:
        ...

    async def add(self, staff: Staff) -> None:
        ...

    async def save(self, staff: Staff) -> None:
        ...

    async def delete(self, staff_id: StaffId) -> bool:
        ...

    async def increment_failed_login_attempts(self, staff_id: StaffId) -> int:
        ...

    async def lock_if_unlocked(self, staff_id: StaffId, now: datetime) -> bool:
        ...

    async def count_admins_for_update(self) -> int:
        ...

    async def list_page(self, page: int, per_page: int) -> tuple[Sequence[Staff], int]:
        ...


class PasswordHistoryRepository(Protocol):
    async def find_recent(self, staff_id: StaffId, limit: int) -> Sequence[PasswordHistory]:
        ...

    async def add(self, history: PasswordHistory) -> None:
        ...

    async def prune(self, staff_id: StaffId, keep: int) -> int:
        ...


class SessionRepository(Protocol):
    async def create(
        self,
        *,
        session_id: str,
        staff_id: StaffId,
        ip_address: Optional[str],
        user_agent: Optional[str],
        now: datetime,
    ) -> SessionView:
        ...

    async def get(self, session_id: str) -> SessionView | None:
        ...

    async def list_for_staff(self, staff_id: StaffId) -> Sequence[SessionView]:
        ...

    async def list_others_for_update(
        self, staff_id: StaffId, current_session_id: str
    ) -> Sequence[SessionView]:
        ...

    async def delete(self, session_id: str, staff_id: StaffId | None = None) -> int:
        ...

    async def delete_many(self, session_ids: Sequence[str]) -> int:
        ...

    async def delete_others(self, staff_id: StaffId, current_session_id: str) -> int:
        ...

    async def touch(self, session_id: str, now: datetime) -> None:
        ...


class AuditSink(Protocol):
    """Append-only record of sensitive operations. Must never raise."""

    def record(
        self,
        event: str,
        actor_id: Optional[str],
        target_id: Optional[str],
        timestamp: datetime,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        ...


class BreachChecker(Protocol):
    async def is_compromised(self, password: str) -> bool:
        ...
