"""
Self-service session management: list, terminate one, terminate all others.
"""

from __future__ import annotations

from library_staff.domain.errors import CannotTerminateCurrentSession, SessionNotFound
from library_staff.domain.ports import SessionView, Transaction
from library_staff.domain.results import Err, Ok, Result
from library_staff.domain.value_objects import StaffId
from library_staff.services.sessions import SessionManager


class ListSessionsUseCase:
    def __init__(self, session_manager: SessionManager) -> None:
        self._sessions = session_manager

    async def execute(self, staff_id: str, current_session_id: str) -> Result[list[SessionView]]:
        views = await self._sessions.get_active_sessions(
            StaffId.from_string(staff_id), current_session_id
        )
        return Ok(views)


class TerminateSessionUseCase:
    def __init__(self, session_manager: SessionManager, transaction: Transaction) -> None:
        self._sessions = session_manager
        self._tx = transaction

    async def execute(self, staff_id: str, session_id: str, current_session_id: str) -> Result[None]:
        if session_id == current_session_id:
            return Err(CannotTerminateCurrentSession())

        # Someone else's session is reported as missing, never as forbidden.
        if not await self._sessions.terminate_session(StaffId.from_string(staff_id), session_id):
            await self._tx.rollback()
            return Err(SessionNotFound())

        await self._tx.commit()
        self._sessions.publish_audit_events()
        return Ok(None)


class TerminateOtherSessionsUseCase:
    def __init__(self, session_manager: SessionManager, transaction: Transaction) -> None:
        self._sessions = session_manager
        self._tx = transaction

    async def execute(self, staff_id: str, current_session_id: str) -> Result[int]:
        count = await self._sessions.terminate_other_sessions(
            StaffId.from_string(staff_id), current_session_id
        )
        await self._tx.commit()
        self._sessions.publish_audit_events()
        return Ok(count)
