"""SQLAlchemy implementation of the staff repository."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from library_staff.core.clock import ensure_utc
from library_staff.domain.ports import StaffRepository
from library_staff.domain.staff import Staff
from library_staff.domain.value_objects import Email, Password, StaffId, StaffName
from library_staff.models.staff import StaffRecord


class SqlStaffRepository(StaffRepository):
    """Staff repository backed by ``StaffRecord``. Never commits; the caller owns the transaction."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, staff_id: StaffId) -> Staff | None:
        stmt = select(StaffRecord).where(StaffRecord.id == staff_id.value)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_for_update(self, staff_id: StaffId) -> Staff | None:
        stmt = (
            select(StaffRecord)
            .where(StaffRecord.id == staff_id.value)
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_by_email(self, email: Email) -> Staff | None:
        stmt = select(StaffRecord).where(StaffRecord.email == email.value)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_by_email_for_update(self, email: Email) -> Staff | None:
        stmt = (
            select(StaffRecord)
            .where(StaffRecord.email == email.value)
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def exists_by_email(self, email: Email) -> bool:
        stmt = select(StaffRecord.id).where(StaffRecord.email == email.value).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def exists_by_email_excluding(self, email: Email, staff_id: StaffId) -> bool:
        stmt = (
            select(StaffRecord.id)
            .where(StaffRecord.email == email.value, StaffRecord.id != staff_id.value)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def add(self, staff: Staff) -> None:
        record = StaffRecord(id=staff.id.value)
        self._apply(record, staff)
        self._session.add(record)
        await self._session.flush()

    async def save(self, staff: Staff) -> None:
        record = await self._session.get(StaffRecord, staff.id.value)
        if record is None:
            await self.add(staff)
            return
        self._apply(record, staff)
        await self._session.flush()

    async def delete(self, staff_id: StaffId) -> bool:
        """Idempotent: deleting an absent id is not an error."""
        result = await self._session.execute(
            delete(StaffRecord).where(StaffRecord.id == staff_id.value)
        )
        return (result.rowcount or 0) > 0

    async def increment_failed_login_attempts(self, staff_id: StaffId) -> int:
        """Increment in SQL and return the stored value, so concurrent failures all count."""
        stmt = (
            update(StaffRecord)
            .where(StaffRecord.id == staff_id.value)
            .values(failed_login_attempts=StaffRecord.failed_login_attempts + 1)
            .returning(StaffRecord.failed_login_attempts)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def lock_if_unlocked(self, staff_id: StaffId, now: datetime) -> bool:
        """True only for the caller that actually flipped the lock."""
        stmt = (
            update(StaffRecord)
            .where(StaffRecord.id == staff_id.value, StaffRecord.is_locked.is_(False))
            .values(is_locked=True, locked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def count_admins_for_update(self) -> int:
        # FOR UPDATE cannot be combined with an aggregate, so lock the rows and count them here.
        stmt = select(StaffRecord.id).where(StaffRecord.is_admin.is_(True)).with_for_update()
        result = await self._session.execute(stmt)
        return len(result.scalars().all())

    async def list_page(self, page: int, per_page: int) -> tuple[Sequence[Staff], int]:
        total = await self._session.scalar(select(func.count()).select_from(StaffRecord))
        stmt = (
            select(StaffRecord)
            .order_by(StaffRecord.created_at.desc(), StaffRecord.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(r) for r in result.scalars().all()], int(total or 0)

    @staticmethod
    def _apply(record: StaffRecord, staff: Staff) -> None:
        record.email = staff.email.value
        record.password_hash = staff.password.hashed_value
        record.name = staff.name.value
        record.is_admin = staff.is_admin
        record.is_locked = staff.is_locked
        record.failed_login_attempts = staff.failed_login_attempts
        record.locked_at = staff.locked_at
        if staff.created_at is not None:
            record.created_at = staff.created_at
        if staff.updated_at is not None:
            record.updated_at = staff.updated_at

    @staticmethod
    def _to_domain(record: StaffRecord | None) -> Staff | None:
        if record is None:
            return None
        return Staff.reconstruct(
            staff_id=StaffId.from_string(record.id),
            email=Email.from_storage(record.email),
            password=Password.from_hash(record.password_hash),
            name=StaffName.from_storage(record.name),
            is_admin=bool(record.is_admin),
            is_locked=bool(record.is_locked),
            failed_login_attempts=record.failed_login_attempts or 0,
            locked_at=ensure_utc(record.locked_at),
            created_at=ensure_utc(record.created_at),
            updated_at=ensure_utc(record.updated_at),
        )
