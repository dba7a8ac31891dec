"""
FastAPI dependencies: database session, session-cookie authentication,
admin guard and use-case wiring.

Use cases receive their collaborators through their constructors; this
module is the only place that decides which implementations they get.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from library_staff.core.config import settings
from library_staff.core.security import decode_session_cookie
from library_staff.db.session import async_session_factory
from library_staff.domain.errors import PermissionDenied
from library_staff.domain.ports import AuditSink, BreachChecker
from library_staff.repositories.password_history import SqlPasswordHistoryRepository
from library_staff.repositories.session import SqlSessionRepository
from library_staff.repositories.staff import SqlStaffRepository
from library_staff.services.audit import LoggingAuditSink
from library_staff.services.password_history import PasswordHistoryService
from library_staff.services.password_policy import build_breach_checker
from library_staff.services.sessions import SessionManager
from library_staff.use_cases.auth import GetCurrentStaffUseCase, LoginUseCase, LogoutUseCase
from library_staff.use_cases.dto import StaffView
from library_staff.use_cases.password import ChangePasswordUseCase
from library_staff.use_cases.sessions import (
    ListSessionsUseCase,
    TerminateOtherSessionsUseCase,
    TerminateSessionUseCase,
)
from library_staff.use_cases.staff_accounts import (
    CreateStaffHandler,
    GetStaffDetailHandler,
    ListStaffHandler,
    ResetPasswordHandler,
    UnlockStaffHandler,
    UpdateStaffHandler,
)

_audit_sink = LoggingAuditSink()


@dataclass(frozen=True)
class Principal:
    """The authenticated staff member behind the current request."""

    session_id: str
    staff: StaffView

    @property
    def staff_id(self) -> str:
        return self.staff.id

    @property
    def is_admin(self) -> bool:
        return self.staff.is_admin


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Collaborators ───────────────────────────────────────────────────
def get_audit_sink() -> AuditSink:
    return _audit_sink


def get_breach_checker() -> BreachChecker:
    return build_breach_checker()


def get_session_manager(
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
) -> SessionManager:
    return SessionManager(SqlSessionRepository(db), audit)


def get_password_history(db: AsyncSession = Depends(get_db)) -> PasswordHistoryService:
    return PasswordHistoryService(SqlPasswordHistoryRepository(db))


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_principal(
    request: Request,
    db: AsyncSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
) -> Principal:
    """Resolve the session cookie to a live session row and its staff member.

    Every authenticated request passes through here, so this is where idle
    and absolute timeouts are enforced.
    """
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
    )

    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    payload = decode_session_cookie(token) if token else None
    if payload is None:
        raise credentials_exc

    result = await manager.validate_session(payload["sid"])
    # Persist the touch, or the deletion of an expired session.
    await db.commit()
    manager.publish_audit_events()
    session = result.unwrap()
    if session.staff_id != payload.get("sub"):
        raise credentials_exc

    staff = (await GetCurrentStaffUseCase(SqlStaffRepository(db)).execute(session.staff_id)).unwrap()
    return Principal(session_id=session.id, staff=staff)


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Only allow administrators to proceed."""
    if not principal.is_admin:
        raise PermissionDenied()
    return principal


# ── Use cases ───────────────────────────────────────────────────────
def get_login_use_case(
    db: AsyncSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
    audit: AuditSink = Depends(get_audit_sink),
) -> LoginUseCase:
    return LoginUseCase(SqlStaffRepository(db), manager, db, audit)


def get_logout_use_case(
    db: AsyncSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
    audit: AuditSink = Depends(get_audit_sink),
) -> LogoutUseCase:
    return LogoutUseCase(manager, db, audit)


def get_change_password_use_case(
    db: AsyncSession = Depends(get_db),
    history: PasswordHistoryService = Depends(get_password_history),
    breach_checker: BreachChecker = Depends(get_breach_checker),
    audit: AuditSink = Depends(get_audit_sink),
) -> ChangePasswordUseCase:
    return ChangePasswordUseCase(SqlStaffRepository(db), history, breach_checker, db, audit)


def get_list_sessions_use_case(
    manager: SessionManager = Depends(get_session_manager),
) -> ListSessionsUseCase:
    return ListSessionsUseCase(manager)


def get_terminate_session_use_case(
    db: AsyncSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
) -> TerminateSessionUseCase:
    return TerminateSessionUseCase(manager, db)


def get_terminate_other_sessions_use_case(
    db: AsyncSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
) -> TerminateOtherSessionsUseCase:
    return TerminateOtherSessionsUseCase(manager, db)


def get_create_staff_handler(
    db: AsyncSession = Depends(get_db),
    history: PasswordHistoryService = Depends(get_password_history),
    audit: AuditSink = Depends(get_audit_sink),
) -> CreateStaffHandler:
    return CreateStaffHandler(SqlStaffRepository(db), history, db, audit)


def get_update_staff_handler(
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
) -> UpdateStaffHandler:
    return UpdateStaffHandler(SqlStaffRepository(db), db, audit)


def get_reset_password_handler(
    db: AsyncSession = Depends(get_db),
    history: PasswordHistoryService = Depends(get_password_history),
    audit: AuditSink = Depends(get_audit_sink),
) -> ResetPasswordHandler:
    return ResetPasswordHandler(SqlStaffRepository(db), history, db, audit)


def get_unlock_staff_handler(
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
) -> UnlockStaffHandler:
    return UnlockStaffHandler(SqlStaffRepository(db), db, audit)


def get_staff_detail_handler(db: AsyncSession = Depends(get_db)) -> GetStaffDetailHandler:
    return GetStaffDetailHandler(SqlStaffRepository(db))


def get_list_staff_handler(db: AsyncSession = Depends(get_db)) -> ListStaffHandler:
    return ListStaffHandler(SqlStaffRepository(db))
