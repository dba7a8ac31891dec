"""
Self-service session endpoints and password change for the signed-in staff member.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from library_staff.api.v1.deps import (
    Principal,
    get_change_password_use_case,
    get_current_principal,
    get_list_sessions_use_case,
    get_terminate_other_sessions_use_case,
    get_terminate_session_use_case,
)
from library_staff.schemas.auth import MessageResponse
from library_staff.schemas.session import (
    SessionListResponse,
    SessionRead,
    TerminatedSessionsResponse,
)
from library_staff.schemas.staff import ChangePasswordRequest
from library_staff.use_cases.password import ChangePasswordUseCase
from library_staff.use_cases.sessions import (
    ListSessionsUseCase,
    TerminateOtherSessionsUseCase,
    TerminateSessionUseCase,
)

router = APIRouter(prefix="/staff", tags=["sessions"])


@router.put("/password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
    use_case: ChangePasswordUseCase = Depends(get_change_password_use_case),
) -> MessageResponse:
    result = await use_case.execute(
        principal.staff_id,
        body.current_password,
        body.new_password,
        body.new_password_confirmation,
    )
    result.unwrap()
    return MessageResponse(message="Password changed")


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    principal: Principal = Depends(get_current_principal),
    use_case: ListSessionsUseCase = Depends(get_list_sessions_use_case),
) -> SessionListResponse:
    views = (await use_case.execute(principal.staff_id, principal.session_id)).unwrap()
    return SessionListResponse(data=[SessionRead.model_validate(v) for v in views])


# Registered before "/sessions/{session_id}" so "others" is not taken for an id.
@router.delete("/sessions/others", response_model=TerminatedSessionsResponse)
async def terminate_other_sessions(
    principal: Principal = Depends(get_current_principal),
    use_case: TerminateOtherSessionsUseCase = Depends(get_terminate_other_sessions_use_case),
) -> TerminatedSessionsResponse:
    count = (await use_case.execute(principal.staff_id, principal.session_id)).unwrap()
    return TerminatedSessionsResponse(count=count)


@router.delete("/sessions/{session_id}", response_model=MessageResponse)
async def terminate_session(
    session_id: str,
    principal: Principal = Depends(get_current_principal),
    use_case: TerminateSessionUseCase = Depends(get_terminate_session_use_case),
) -> MessageResponse:
    (await use_case.execute(principal.staff_id, session_id, principal.session_id)).unwrap()
    return MessageResponse(message="Session terminated")
