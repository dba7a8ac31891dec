"""Pydantic schemas for staff account administration and password change."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["admin", "staff"]


class StaffCreate(BaseModel):
    name: str
    email: str
    role: Role = "staff"


class StaffUpdate(BaseModel):
    name: str
    email: str
    role: Role
    updated_at: datetime = Field(
        ..., description="Value from the last read; the update is rejected if the record changed since"
    )


class StaffListItemRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    is_locked: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class PageMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int


class StaffListResponse(BaseModel):
    data: list[StaffListItemRead]
    meta: PageMeta


class StaffDetailRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    is_locked: bool
    is_current_user: bool
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class StaffDetailEnvelope(BaseModel):
    data: StaffDetailRead


class CreateStaffResponse(BaseModel):
    message: str = "Staff account created"
    staff: StaffListItemRead
    temporary_password: str


class UpdatedStaffRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class UpdateStaffResponse(BaseModel):
    message: str = "Staff account updated"
    staff: UpdatedStaffRead


class ResetPasswordResponse(BaseModel):
    message: str = "Password has been reset"
    temporary_password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    new_password_confirmation: str
