"""
Authentication use cases: login (with lockout), logout, current staff lookup.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from library_staff.core.clock import utcnow
from library_staff.core.security import dummy_verify
from library_staff.domain.errors import (
    AccountLocked,
    AuthenticationFailed,
    InvalidEmail,
    SessionExpired,
)
from library_staff.domain.ports import AuditSink, StaffRepository, Transaction
from library_staff.domain.results import Err, Ok, Result
from library_staff.domain.staff import LOCKOUT_RETRY_AFTER_SECONDS
from library_staff.domain.value_objects import Email, StaffId
from library_staff.services import audit as events
from library_staff.services.audit import mask_session_id
from library_staff.services.sessions import SessionManager
from library_staff.use_cases.dto import LoginOutput, StaffView

logger = logging.getLogger(__name__)


class LoginUseCase:
    def __init__(
        self,
        staff_repository: StaffRepository,
        session_manager: SessionManager,
        transaction: Transaction,
        audit: AuditSink,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._staff = staff_repository
        self._sessions = session_manager
        self._tx = transaction
        self._audit = audit
        self._clock = clock

    async def execute(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        previous_session_id: Optional[str] = None,
    ) -> Result[LoginOutput]:
        now = self._clock()
        try:
            email_vo = Email.create(email)
        except InvalidEmail:
            email_vo = None

        # Row lock serialises concurrent attempts on one account.
        staff = await self._staff.get_by_email_for_update(email_vo) if email_vo else None
        if staff is None:
            dummy_verify()
            await self._tx.rollback()
            self._audit.record(
                events.LOGIN_FAILURE,
                None,
                None,
                now,
                {"email": (email or "").strip().lower(), "reason": "invalid_credentials", "ip": ip_address},
            )
            return Err(AuthenticationFailed())

        if staff.is_locked:
            await self._tx.rollback()
            self._audit.record(
                events.LOGIN_FAILURE,
                None,
                staff.id.value,
                now,
                {"email": staff.email.value, "reason": "account_locked", "ip": ip_address},
            )
            return Err(AccountLocked(LOCKOUT_RETRY_AFTER_SECONDS))

        if not staff.verify_password(password):
            attempts = await self._staff.increment_failed_login_attempts(staff.id)
            locked_now = staff.register_failed_login(now, attempts=attempts)
            if locked_now:
                locked_now = await self._staff.lock_if_unlocked(staff.id, now)
            # The failure counter must survive even though the request fails.
            await self._tx.commit()
            self._audit.record(
                events.LOGIN_FAILURE,
                None,
                staff.id.value,
                now,
                {
                    "email": staff.email.value,
                    "reason": "invalid_credentials",
                    "failed_attempts": staff.failed_login_attempts,
                    "ip": ip_address,
                },
            )
            if locked_now:
                logger.warning("Account %s locked after repeated failures", staff.id.value)
                self._audit.record(
                    events.ACCOUNT_LOCKED,
                    None,
                    staff.id.value,
                    now,
                    {"failed_attempts": staff.failed_login_attempts, "ip": ip_address},
                )
            return Err(AuthenticationFailed())

        staff.register_successful_login()
        await self._staff.save(staff)
        if previous_session_id:
            await self._sessions.end_session(previous_session_id)
        session = await self._sessions.create_session(staff.id, ip_address, user_agent)
        evicted = await self._sessions.enforce_session_limit(staff.id, staff.is_admin, session.id)
        await self._tx.commit()
        self._sessions.publish_audit_events()

        self._audit.record(
            events.LOGIN_SUCCESS,
            staff.id.value,
            staff.id.value,
            now,
            {"ip": ip_address, "session_id": mask_session_id(session.id)},
        )
        return Ok(LoginOutput(staff=StaffView.from_entity(staff), session=session, evicted_sessions=evicted))


class LogoutUseCase:
    def __init__(
        self,
        session_manager: SessionManager,
        transaction: Transaction,
        audit: AuditSink,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._sessions = session_manager
        self._tx = transaction
        self._audit = audit
        self._clock = clock

    async def execute(self, staff_id: str, session_id: str) -> Result[None]:
        await self._sessions.end_session(session_id)
        await self._tx.commit()
        self._audit.record(
            events.LOGOUT,
            staff_id,
            staff_id,
            self._clock(),
            {"session_id": mask_session_id(session_id)},
        )
        return Ok(None)


class GetCurrentStaffUseCase:
    def __init__(self, staff_repository: StaffRepository) -> None:
        self._staff = staff_repository

    async def execute(self, staff_id: str) -> Result[StaffView]:
        staff = await self._staff.get(StaffId.from_string(staff_id))
        if staff is None:
            return Err(SessionExpired())
        return Ok(StaffView.from_entity(staff))
