"""SQLAlchemy implementation of the session repository."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_staff.core.clock import ensure_utc
from library_staff.domain.ports import SessionRepository, SessionView
from library_staff.domain.value_objects import StaffId
from library_staff.models.session import SessionRecord


class SqlSessionRepository(SessionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        session_id: str,
        staff_id: StaffId,
        ip_address: Optional[str],
        user_agent: Optional[str],
        now: datetime,
    ) -> SessionView:
        record = SessionRecord(
            id=session_id,
            staff_id=staff_id.value,
            ip_address=ip_address,
            user_agent=user_agent[:512] if user_agent else None,
            last_activity=now,
            created_at=now,
        )
        self._session.add(record)
        await self._session.flush()
        return self._to_view(record)

    async def get(self, session_id: str) -> SessionView | None:
        record = await self._session.get(SessionRecord, session_id)
        return self._to_view(record) if record else None

    async def list_for_staff(self, staff_id: StaffId) -> Sequence[SessionView]:
        stmt = (
            select(SessionRecord)
            .where(SessionRecord.staff_id == staff_id.value)
            .order_by(SessionRecord.last_activity.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_view(r) for r in result.scalars().all()]

    async def list_others_for_update(
        self, staff_id: StaffId, current_session_id: str
    ) -> Sequence[SessionView]:
        stmt = (
            select(SessionRecord)
            .where(
                SessionRecord.staff_id == staff_id.value,
                SessionRecord.id != current_session_id,
            )
            .order_by(SessionRecord.last_activity.asc())
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        return [self._to_view(r) for r in result.scalars().all()]

    async def delete(self, session_id: str, staff_id: StaffId | None = None) -> int:
        stmt = delete(SessionRecord).where(SessionRecord.id == session_id)
        if staff_id is not None:
            stmt = stmt.where(SessionRecord.staff_id == staff_id.value)
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def delete_many(self, session_ids: Sequence[str]) -> int:
        if not session_ids:
            return 0
        result = await self._session.execute(
            delete(SessionRecord).where(SessionRecord.id.in_(list(session_ids)))
        )
        return result.rowcount or 0

    async def delete_others(self, staff_id: StaffId, current_session_id: str) -> int:
        result = await self._session.execute(
            delete(SessionRecord).where(
                SessionRecord.staff_id == staff_id.value,
                SessionRecord.id != current_session_id,
            )
        )
        return result.rowcount or 0

    async def touch(self, session_id: str, now: datetime) -> None:
        await self._session.execute(
            update(SessionRecord)
            .where(SessionRecord.id == session_id)
            .values(last_activity=now)
        )

    @staticmethod
    def _to_view(record: SessionRecord) -> SessionView:
        return SessionView(
            id=record.id,
            staff_id=record.staff_id,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            last_activity=ensure_utc(record.last_activity),
            created_at=ensure_utc(record.created_at),
        )
