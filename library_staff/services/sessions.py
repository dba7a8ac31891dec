"""
Session governance: concurrent-session limits per role, idle and absolute
timeouts, and self-service session termination.

Sessions are rows in ``staff_sessions``; nothing here commits. The caller's
transaction makes the limit check and the eviction atomic, and the
``FOR UPDATE`` lock on the other sessions keeps two concurrent logins from
both believing they are within the limit.

Audit events are held back until the caller has committed and calls
``publish_audit_events()``, so a rolled-back change never shows up in the log.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from library_staff.core.clock import utcnow
from library_staff.core.config import settings
from library_staff.core.security import new_session_id
from library_staff.domain.errors import SessionExpired
from library_staff.domain.ports import AuditSink, SessionRepository, SessionView
from library_staff.domain.results import Err, Ok, Result
from library_staff.domain.value_objects import StaffId
from library_staff.services import audit as events
from library_staff.services.audit import mask_session_id

logger = logging.getLogger(__name__)


class SessionManager:
    def __init__(
        self,
        sessions: SessionRepository,
        audit: AuditSink,
        *,
        admin_limit: int = settings.ADMIN_SESSION_LIMIT,
        staff_limit: int = settings.STAFF_SESSION_LIMIT,
        idle_timeout_seconds: int = settings.SESSION_IDLE_TIMEOUT_SECONDS,
        absolute_timeout_seconds: int = settings.SESSION_ABSOLUTE_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._sessions = sessions
        self._audit = audit
        self._admin_limit = admin_limit
        self._staff_limit = staff_limit
        self._idle_timeout = timedelta(seconds=idle_timeout_seconds)
        self._absolute_timeout = timedelta(seconds=absolute_timeout_seconds)
        self._clock = clock
        self._pending_audit: list[tuple[str, str, datetime, dict]] = []

    def limit_for(self, is_admin: bool) -> int:
        return self._admin_limit if is_admin else self._staff_limit

    # ── Lifecycle ───────────────────────────────────────────────────
    async def create_session(
        self,
        staff_id: StaffId,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> SessionView:
        return await self._sessions.create(
            session_id=new_session_id(),
            staff_id=staff_id,
            ip_address=ip_address,
            user_agent=user_agent,
            now=self._clock(),
        )

    async def enforce_session_limit(
        self, staff_id: StaffId, is_admin: bool, current_session_id: str
    ) -> int:
        """Evict the least recently active sessions beyond the role limit.

        The current session always survives. Returns the number evicted.
        """
        others = await self._sessions.list_others_for_update(staff_id, current_session_id)
        surplus = len(others) - (self.limit_for(is_admin) - 1)
        if surplus <= 0:
            return 0

        evicted = [s.id for s in others[:surplus]]
        await self._sessions.delete_many(evicted)
        logger.info("Evicted %d session(s) for staff %s", len(evicted), staff_id.value)
        self._defer_audit(
            events.SESSIONS_EVICTED,
            staff_id.value,
            {
                "count": len(evicted),
                "limit": self.limit_for(is_admin),
                "session_ids": [mask_session_id(sid) for sid in evicted],
            },
        )
        return len(evicted)

    async def validate_session(self, session_id: str) -> Result[SessionView]:
        """Request-time check: absolute lifetime first, then idle time.

        A live session has its ``last_activity`` refreshed; an expired one is
        deleted and audited.
        """
        view = await self._sessions.get(session_id)
        if view is None:
            return Err(SessionExpired())

        now = self._clock()
        reason = None
        if now - view.created_at >= self._absolute_timeout:
            reason = "absolute"
        elif now - view.last_activity >= self._idle_timeout:
            reason = "idle"

        if reason is not None:
            await self._sessions.delete(session_id)
            self._defer_audit(
                events.SESSION_TIMEOUT,
                view.staff_id,
                {"reason": reason, "session_id": mask_session_id(session_id)},
            )
            return Err(SessionExpired())

        await self._sessions.touch(session_id, now)
        return Ok(dataclasses.replace(view, last_activity=now, is_current=True))

    # ── Self-service ────────────────────────────────────────────────
    async def get_active_sessions(
        self, staff_id: StaffId, current_session_id: str
    ) -> list[SessionView]:
        sessions = await self._sessions.list_for_staff(staff_id)
        return [
            dataclasses.replace(s, is_current=(s.id == current_session_id))
            for s in sessions
        ]

    async def terminate_session(self, staff_id: StaffId, session_id: str) -> bool:
        """Delete one of the caller's own sessions. False when it is not theirs or absent."""
        deleted = await self._sessions.delete(session_id, staff_id)
        if deleted:
            self._defer_audit(
                events.SESSION_TERMINATED,
                staff_id.value,
                {"session_id": mask_session_id(session_id)},
            )
        return deleted > 0

    async def terminate_other_sessions(self, staff_id: StaffId, current_session_id: str) -> int:
        count = await self._sessions.delete_others(staff_id, current_session_id)
        self._defer_audit(
            events.SESSION_TERMINATED_OTHERS,
            staff_id.value,
            {"count": count},
        )
        return count

    async def end_session(self, session_id: str) -> None:
        await self._sessions.delete(session_id)

    # ── Audit ───────────────────────────────────────────────────────
    def _defer_audit(self, event: str, staff_id: str, details: dict) -> None:
        self._pending_audit.append((event, staff_id, self._clock(), details))

    def publish_audit_events(self) -> None:
        """Hand the held-back events to the audit sink. Call only after a successful commit."""
        pending, self._pending_audit = self._pending_audit, []
        for event, staff_id, timestamp, details in pending:
            self._audit.record(event, staff_id, staff_id, timestamp, details)
