"""
Self-service password change.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from library_staff.core.clock import utcnow
from library_staff.domain.errors import (
    CurrentPasswordIncorrect,
    PasswordCompromised,
    PasswordConfirmationMismatch,
    PasswordPolicyViolation,
    PasswordReused,
    StaffDomainError,
    StaffNotFound,
)
from library_staff.domain.ports import AuditSink, BreachChecker, StaffRepository, Transaction
from library_staff.domain.results import Err, Ok, Result
from library_staff.domain.value_objects import Password, StaffId
from library_staff.services import audit as events
from library_staff.services.password_history import PasswordHistoryService
from library_staff.services.password_policy import policy_violations


class ChangePasswordUseCase:
    """Checks run cheapest-first; the breach lookup is the only network call.

    current password -> confirmation -> policy -> history -> breach list
    """

    def __init__(
        self,
        staff_repository: StaffRepository,
        password_history: PasswordHistoryService,
        breach_checker: BreachChecker,
        transaction: Transaction,
        audit: AuditSink,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._staff = staff_repository
        self._history = password_history
        self._breach = breach_checker
        self._tx = transaction
        self._audit = audit
        self._clock = clock

    async def execute(
        self,
        staff_id: str,
        current_password: str,
        new_password: str,
        new_password_confirmation: str,
    ) -> Result[None]:
        result = await self._change(
            StaffId.from_string(staff_id), current_password, new_password, new_password_confirmation
        )
        if not result.is_ok:
            await self._tx.rollback()
            return result

        await self._tx.commit()
        self._audit.record(events.PASSWORD_CHANGED, staff_id, staff_id, self._clock())
        return Ok(None)

    async def _change(
        self,
        staff_id: StaffId,
        current_password: str,
        new_password: str,
        new_password_confirmation: str,
    ) -> Result[None]:
        staff = await self._staff.get_for_update(staff_id)
        if staff is None:
            return Err(StaffNotFound(staff_id.value))

        if not staff.verify_password(current_password):
            return Err(CurrentPasswordIncorrect())
        if new_password != new_password_confirmation:
            return Err(PasswordConfirmationMismatch())

        violations = policy_violations(new_password)
        if violations:
            return Err(PasswordPolicyViolation(violations))

        if staff.verify_password(new_password) or await self._history.is_reused(staff.id, new_password):
            return Err(PasswordReused())
        if await self._breach.is_compromised(new_password):
            return Err(PasswordCompromised())

        try:
            password = Password.from_plain_text(new_password)
        except StaffDomainError as exc:
            return Err(exc)

        await self._history.add_to_history(staff.id, password.hashed_value)
        staff.change_password(password)
        staff.touch(self._clock())
        await self._staff.save(staff)
        return Ok(None)
