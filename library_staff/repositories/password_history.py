"""SQLAlchemy implementation of the password-history repository."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_staff.core.clock import ensure_utc
from library_staff.domain.ports import PasswordHistoryRepository
from library_staff.domain.staff import PasswordHistory
from library_staff.domain.value_objects import StaffId
from library_staff.models.password_history import PasswordHistoryRecord


class SqlPasswordHistoryRepository(PasswordHistoryRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_recent(self, staff_id: StaffId, limit: int) -> Sequence[PasswordHistory]:
        stmt = (
            select(PasswordHistoryRecord)
            .where(PasswordHistoryRecord.staff_id == staff_id.value)
            .order_by(PasswordHistoryRecord.created_at.desc(), PasswordHistoryRecord.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()]

    async def add(self, history: PasswordHistory) -> None:
        self._session.add(
            PasswordHistoryRecord(
                id=history.id,
                staff_id=history.staff_id.value,
                password_hash=history.password_hash,
                created_at=history.created_at,
            )
        )
        await self._session.flush()

    async def prune(self, staff_id: StaffId, keep: int) -> int:
        """Delete every row for ``staff_id`` except the ``keep`` newest. Returns rows removed."""
        stale = await self._session.execute(
            select(PasswordHistoryRecord.id)
            .where(PasswordHistoryRecord.staff_id == staff_id.value)
            .order_by(PasswordHistoryRecord.created_at.desc(), PasswordHistoryRecord.id.desc())
            .offset(keep)
        )
        stale_ids = list(stale.scalars().all())
        if not stale_ids:
            return 0
        await self._session.execute(
            delete(PasswordHistoryRecord).where(PasswordHistoryRecord.id.in_(stale_ids))
        )
        return len(stale_ids)

    @staticmethod
    def _to_domain(record: PasswordHistoryRecord) -> PasswordHistory:
        return PasswordHistory(
            id=record.id,
            staff_id=StaffId.from_string(record.staff_id),
            password_hash=record.password_hash,
            created_at=ensure_utc(record.created_at),
        )
