"""
Administrative staff-account handlers.

Mutations run in one transaction that the handler commits on success and
rolls back on any ``Err``. The staff row is read ``FOR UPDATE`` so that the
optimistic-lock comparison and the write cannot interleave with another
editor.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from library_staff.core.clock import ensure_utc, utcnow
from library_staff.core.config import settings
from library_staff.domain.errors import (
    DuplicateEmail,
    LastAdminProtected,
    OptimisticLockConflict,
    SelfRoleChangeForbidden,
    StaffDomainError,
    StaffNotFound,
)
from library_staff.domain.ports import AuditSink, StaffRepository, Transaction
from library_staff.domain.results import Err, Ok, Result
from library_staff.domain.staff import ROLE_ADMIN, ROLE_STAFF, Staff
from library_staff.domain.value_objects import Email, Password, StaffId, StaffName
from library_staff.services import audit as events
from library_staff.services.password_generator import generate_temporary_password
from library_staff.services.password_history import PasswordHistoryService
from library_staff.use_cases.dto import (
    CreateStaffOutput,
    ResetPasswordOutput,
    StaffDetail,
    StaffListItem,
    StaffPage,
    UpdateStaffOutput,
)

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 20


def _same_second(a: datetime | None, b: datetime | None) -> bool:
    if a is None or b is None:
        return False
    return int(ensure_utc(a).timestamp()) == int(ensure_utc(b).timestamp())


# ── Create ──────────────────────────────────────────────────────────
class CreateStaffHandler:
    def __init__(
        self,
        staff_repository: StaffRepository,
        password_history: PasswordHistoryService,
        transaction: Transaction,
        audit: AuditSink,
        password_length: int = settings.TEMPORARY_PASSWORD_LENGTH,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._staff = staff_repository
        self._history = password_history
        self._tx = transaction
        self._audit = audit
        self._password_length = password_length
        self._clock = clock

    async def handle(self, name: str, email: str, role: str, actor_id: str) -> Result[CreateStaffOutput]:
        try:
            name_vo = StaffName.create(name)
            email_vo = Email.create(email)
        except StaffDomainError as exc:
            return Err(exc)

        if await self._staff.exists_by_email(email_vo):
            await self._tx.rollback()
            return Err(DuplicateEmail(email_vo.value))

        temporary_password = generate_temporary_password(self._password_length)
        password = Password.from_plain_text(temporary_password)
        staff = Staff.create(
            StaffId.generate(), email_vo, password, name_vo, is_admin=(role == ROLE_ADMIN)
        )
        await self._staff.add(staff)
        await self._history.add_to_history(staff.id, password.hashed_value)
        await self._tx.commit()

        logger.info("Staff %s created by %s", staff.id.value, actor_id)
        self._audit.record(
            events.STAFF_CREATED,
            actor_id,
            staff.id.value,
            self._clock(),
            {"email": staff.email.value, "role": staff.role},
        )
        return Ok(
            CreateStaffOutput(
                staff=StaffListItem.from_entity(staff),
                temporary_password=temporary_password,
            )
        )


# ── Update ──────────────────────────────────────────────────────────
class UpdateStaffHandler:
    def __init__(
        self,
        staff_repository: StaffRepository,
        transaction: Transaction,
        audit: AuditSink,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._staff = staff_repository
        self._tx = transaction
        self._audit = audit
        self._clock = clock

    async def handle(
        self,
        staff_id: str,
        name: str,
        email: str,
        role: str,
        updated_at: datetime,
        actor_id: str,
    ) -> Result[UpdateStaffOutput]:
        try:
            name_vo = StaffName.create(name)
            email_vo = Email.create(email)
        except StaffDomainError as exc:
            return Err(exc)

        result = await self._apply(
            StaffId.from_string(staff_id), name_vo, email_vo, role == ROLE_ADMIN, updated_at, actor_id
        )
        if not result.is_ok:
            await self._tx.rollback()
            return result

        staff, changes = result.value
        await self._tx.commit()

        self._audit.record(
            events.STAFF_UPDATED,
            actor_id,
            staff.id.value,
            self._clock(),
            {"changes": changes},
        )
        return Ok(
            UpdateStaffOutput(
                id=staff.id.value,
                name=staff.name.value,
                email=staff.email.value,
                role=staff.role,
                updated_at=staff.updated_at,
            )
        )

    async def _apply(
        self,
        staff_id: StaffId,
        name: StaffName,
        email: Email,
        is_admin: bool,
        expected_updated_at: datetime,
        actor_id: str,
    ) -> Result[tuple[Staff, dict[str, Any]]]:
        staff = await self._staff.get_for_update(staff_id)
        if staff is None:
            return Err(StaffNotFound(staff_id.value))

        if not _same_second(staff.updated_at, expected_updated_at):
            return Err(OptimisticLockConflict())

        if is_admin != staff.is_admin:
            if staff.id.value == actor_id:
                return Err(SelfRoleChangeForbidden())
            if staff.is_admin and await self._staff.count_admins_for_update() <= 1:
                return Err(LastAdminProtected())

        if email != staff.email and await self._staff.exists_by_email_excluding(email, staff.id):
            return Err(DuplicateEmail(email.value))

        changes = self._diff(staff, name, email, is_admin)
        staff.update_profile(name, email, is_admin)
        staff.touch(self._clock())
        await self._staff.save(staff)
        return Ok((staff, changes))

    @staticmethod
    def _diff(staff: Staff, name: StaffName, email: Email, is_admin: bool) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if staff.name != name:
            changes["name"] = {"old": staff.name.value, "new": name.value}
        if staff.email != email:
            changes["email"] = {"old": staff.email.value, "new": email.value}
        if staff.is_admin != is_admin:
            changes["role"] = {"old": staff.role, "new": ROLE_ADMIN if is_admin else ROLE_STAFF}
        return changes


# ── Reset password / unlock ─────────────────────────────────────────
class ResetPasswordHandler:
    def __init__(
        self,
        staff_repository: StaffRepository,
        password_history: PasswordHistoryService,
        transaction: Transaction,
        audit: AuditSink,
        password_length: int = settings.TEMPORARY_PASSWORD_LENGTH,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._staff = staff_repository
        self._history = password_history
        self._tx = transaction
        self._audit = audit
        self._password_length = password_length
        self._clock = clock

    async def handle(self, staff_id: str, actor_id: str) -> Result[ResetPasswordOutput]:
        staff = await self._staff.get_for_update(StaffId.from_string(staff_id))
        if staff is None:
            await self._tx.rollback()
            return Err(StaffNotFound(staff_id))

        temporary_password = generate_temporary_password(self._password_length)
        password = Password.from_plain_text(temporary_password)
        await self._history.add_to_history(staff.id, password.hashed_value)
        staff.change_password(password)
        staff.touch(self._clock())
        await self._staff.save(staff)
        await self._tx.commit()

        self._audit.record(events.PASSWORD_RESET, actor_id, staff.id.value, self._clock())
        return Ok(ResetPasswordOutput(temporary_password=temporary_password))


class UnlockStaffHandler:
    def __init__(
        self,
        staff_repository: StaffRepository,
        transaction: Transaction,
        audit: AuditSink,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._staff = staff_repository
        self._tx = transaction
        self._audit = audit
        self._clock = clock

    async def handle(self, staff_id: str, actor_id: str) -> Result[StaffDetail]:
        staff = await self._staff.get_for_update(StaffId.from_string(staff_id))
        if staff is None:
            await self._tx.rollback()
            return Err(StaffNotFound(staff_id))

        was_locked = staff.is_locked
        staff.unlock()
        staff.touch(self._clock())
        await self._staff.save(staff)
        await self._tx.commit()

        self._audit.record(
            events.ACCOUNT_UNLOCKED,
            actor_id,
            staff.id.value,
            self._clock(),
            {"was_locked": was_locked},
        )
        return Ok(StaffDetail.from_entity(staff, actor_id))


# ── Queries ─────────────────────────────────────────────────────────
class GetStaffDetailHandler:
    def __init__(self, staff_repository: StaffRepository) -> None:
        self._staff = staff_repository

    async def handle(self, staff_id: str, current_staff_id: str) -> Result[StaffDetail]:
        staff = await self._staff.get(StaffId.from_string(staff_id))
        if staff is None:
            return Err(StaffNotFound(staff_id))
        return Ok(StaffDetail.from_entity(staff, current_staff_id))


class ListStaffHandler:
    def __init__(self, staff_repository: StaffRepository) -> None:
        self._staff = staff_repository

    async def handle(self, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Result[StaffPage]:
        page = max(page, 1)
        items, total = await self._staff.list_page(page, per_page)
        return Ok(
            StaffPage(
                items=[StaffListItem.from_entity(s) for s in items],
                page=page,
                per_page=per_page,
                total=total,
            )
        )
