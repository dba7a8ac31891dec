"""Pydantic schemas for the self-service session list."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SessionRead(BaseModel):
    id: str
    ip_address: str | None
    user_agent: str | None
    last_activity: datetime
    created_at: datetime
    is_current: bool

    model_config = {"from_attributes": True}


class SessionListResponse(BaseModel):
    data: list[SessionRead]


class TerminatedSessionsResponse(BaseModel):
    message: str = "Other sessions terminated"
    count: int
