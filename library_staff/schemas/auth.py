"""Pydantic schemas for login, logout and the current-staff lookup."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class StaffRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    is_admin: bool

    model_config = {"from_attributes": True}


class StaffEnvelope(BaseModel):
    data: StaffRead


class MessageResponse(BaseModel):
    message: str
