"""
Audit trail for security-relevant operations.

``LoggingAuditSink`` writes one JSON object per event to the
``library_staff.audit`` logger so operators can route it to its own handler
(file, syslog, SIEM) without touching application logs.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from library_staff.domain.ports import AuditSink

AUDIT_LOGGER_NAME = "library_staff.audit"

logger = logging.getLogger(__name__)


# ── Event catalogue ─────────────────────────────────────────────────
LOGIN_SUCCESS = "login_success"
LOGIN_FAILURE = "login_failure"
ACCOUNT_LOCKED = "account_locked"
ACCOUNT_UNLOCKED = "account_unlocked"
LOGOUT = "logout"
PASSWORD_CHANGED = "password_changed"
PASSWORD_RESET = "password_reset"
STAFF_CREATED = "staff_created"
STAFF_UPDATED = "staff_updated"
SESSION_TIMEOUT = "session_timeout"
SESSION_TERMINATED = "session_terminated"
SESSION_TERMINATED_OTHERS = "session_terminated_others"
SESSIONS_EVICTED = "sessions_evicted"


def mask_session_id(session_id: str | None) -> str | None:
    """Keep only enough of a session id to correlate log lines."""
    if not session_id:
        return session_id
    return session_id[:8] + "..."


class LoggingAuditSink(AuditSink):
    def __init__(self, audit_logger: logging.Logger | None = None) -> None:
        self._logger = audit_logger or logging.getLogger(AUDIT_LOGGER_NAME)

    def record(
        self,
        event: str,
        actor_id: Optional[str],
        target_id: Optional[str],
        timestamp: datetime,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        try:
            payload = {
                "event": event,
                "actor_id": actor_id,
                "target_id": target_id,
                "timestamp": timestamp.isoformat(),
                "details": details or {},
            }
            self._logger.info(json.dumps(payload, default=str, ensure_ascii=False))
        except Exception:
            # The audited operation has already happened; never fail it here.
            logger.exception("Failed to write audit event %s", event)
