"""
Auth endpoints: cookie-session login, logout and current staff.
"""

from fastapi import APIRouter, Depends, Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from library_staff.api.v1.deps import (
    Principal,
    get_current_principal,
    get_login_use_case,
    get_logout_use_case,
)
from library_staff.core.config import settings
from library_staff.core.security import create_session_cookie, decode_session_cookie
from library_staff.schemas.auth import LoginRequest, MessageResponse, StaffEnvelope, StaffRead
from library_staff.use_cases.auth import LoginUseCase, LogoutUseCase

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=StaffEnvelope)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    use_case: LoginUseCase = Depends(get_login_use_case),
) -> StaffEnvelope:
    """Authenticate with email/password. Sets the HttpOnly session cookie."""
    previous = request.cookies.get(settings.SESSION_COOKIE_NAME)
    previous_payload = decode_session_cookie(previous) if previous else None

    result = await use_case.execute(
        body.email,
        body.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        previous_session_id=previous_payload["sid"] if previous_payload else None,
    )
    output = result.unwrap()

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_cookie(output.session.id, output.staff.id),
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.SESSION_ABSOLUTE_TIMEOUT_SECONDS,
    )
    return StaffEnvelope(data=StaffRead.model_validate(output.staff))


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    principal: Principal = Depends(get_current_principal),
    use_case: LogoutUseCase = Depends(get_logout_use_case),
) -> MessageResponse:
    """Delete the session row and clear the cookie."""
    (await use_case.execute(principal.staff_id, principal.session_id)).unwrap()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=StaffEnvelope)
async def read_current_staff(
    principal: Principal = Depends(get_current_principal),
) -> StaffEnvelope:
    """Return the profile of the currently authenticated staff member."""
    return StaffEnvelope(data=StaffRead.model_validate(principal.staff))
