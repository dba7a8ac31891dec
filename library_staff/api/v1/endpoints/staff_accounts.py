"""
Staff account administration (admin only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from library_staff.api.v1.deps import (
    Principal,
    get_create_staff_handler,
    get_list_staff_handler,
    get_reset_password_handler,
    get_staff_detail_handler,
    get_unlock_staff_handler,
    get_update_staff_handler,
    require_admin,
)
from library_staff.schemas.staff import (
    CreateStaffResponse,
    PageMeta,
    ResetPasswordResponse,
    StaffCreate,
    StaffDetailEnvelope,
    StaffDetailRead,
    StaffListItemRead,
    StaffListResponse,
    StaffUpdate,
    UpdatedStaffRead,
    UpdateStaffResponse,
)
from library_staff.use_cases.staff_accounts import (
    DEFAULT_PER_PAGE,
    CreateStaffHandler,
    GetStaffDetailHandler,
    ListStaffHandler,
    ResetPasswordHandler,
    UnlockStaffHandler,
    UpdateStaffHandler,
)

router = APIRouter(prefix="/staff/accounts", tags=["staff accounts"])


@router.get("", response_model=StaffListResponse)
async def list_staff(
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=100),
    _admin: Principal = Depends(require_admin),
    handler: ListStaffHandler = Depends(get_list_staff_handler),
) -> StaffListResponse:
    result = (await handler.handle(page, per_page)).unwrap()
    return StaffListResponse(
        data=[StaffListItemRead.model_validate(item) for item in result.items],
        meta=PageMeta(
            current_page=result.page,
            last_page=result.last_page,
            per_page=result.per_page,
            total=result.total,
        ),
    )


@router.post("", response_model=CreateStaffResponse, status_code=201)
async def create_staff(
    body: StaffCreate,
    admin: Principal = Depends(require_admin),
    handler: CreateStaffHandler = Depends(get_create_staff_handler),
) -> CreateStaffResponse:
    """Create an account. The temporary password is shown this once only."""
    output = (await handler.handle(body.name, body.email, body.role, admin.staff_id)).unwrap()
    return CreateStaffResponse(
        staff=StaffListItemRead.model_validate(output.staff),
        temporary_password=output.temporary_password,
    )


@router.get("/{staff_id}", response_model=StaffDetailEnvelope)
async def read_staff(
    staff_id: str,
    admin: Principal = Depends(require_admin),
    handler: GetStaffDetailHandler = Depends(get_staff_detail_handler),
) -> StaffDetailEnvelope:
    detail = (await handler.handle(staff_id, admin.staff_id)).unwrap()
    return StaffDetailEnvelope(data=StaffDetailRead.model_validate(detail))


@router.put("/{staff_id}", response_model=UpdateStaffResponse)
async def update_staff(
    staff_id: str,
    body: StaffUpdate,
    admin: Principal = Depends(require_admin),
    handler: UpdateStaffHandler = Depends(get_update_staff_handler),
) -> UpdateStaffResponse:
    output = (
        await handler.handle(
            staff_id, body.name, body.email, body.role, body.updated_at, admin.staff_id
        )
    ).unwrap()
    return UpdateStaffResponse(staff=UpdatedStaffRead.model_validate(output))


@router.post("/{staff_id}/reset-password", response_model=ResetPasswordResponse)
async def reset_password(
    staff_id: str,
    admin: Principal = Depends(require_admin),
    handler: ResetPasswordHandler = Depends(get_reset_password_handler),
) -> ResetPasswordResponse:
    output = (await handler.handle(staff_id, admin.staff_id)).unwrap()
    return ResetPasswordResponse(temporary_password=output.temporary_password)


@router.post("/{staff_id}/unlock", response_model=StaffDetailEnvelope)
async def unlock_staff(
    staff_id: str,
    admin: Principal = Depends(require_admin),
    handler: UnlockStaffHandler = Depends(get_unlock_staff_handler),
) -> StaffDetailEnvelope:
    detail = (await handler.handle(staff_id, admin.staff_id)).unwrap()
    return StaffDetailEnvelope(data=StaffDetailRead.model_validate(detail))
