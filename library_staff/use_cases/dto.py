"""
Output records returned by the use cases.

They are plain frozen dataclasses built from the ``Staff`` entity so that the
HTTP layer never touches the aggregate (or its password hash).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from library_staff.domain.ports import SessionView
from library_staff.domain.staff import Staff


@dataclass(frozen=True)
class StaffView:
    id: str
    name: str
    email: str
    role: str
    is_admin: bool

    @classmethod
    def from_entity(cls, staff: Staff) -> "StaffView":
        return cls(
            id=staff.id.value,
            name=staff.name.value,
            email=staff.email.value,
            role=staff.role,
            is_admin=staff.is_admin,
        )


@dataclass(frozen=True)
class LoginOutput:
    staff: StaffView
    session: SessionView
    evicted_sessions: int = 0


@dataclass(frozen=True)
class StaffDetail:
    id: str
    name: str
    email: str
    role: str
    is_locked: bool
    is_current_user: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, staff: Staff, current_staff_id: str) -> "StaffDetail":
        return cls(
            id=staff.id.value,
            name=staff.name.value,
            email=staff.email.value,
            role=staff.role,
            is_locked=staff.is_locked,
            is_current_user=staff.id.value == current_staff_id,
            created_at=staff.created_at,
            updated_at=staff.updated_at,
        )


@dataclass(frozen=True)
class StaffListItem:
    id: str
    name: str
    email: str
    role: str
    is_locked: bool
    created_at: Optional[datetime]

    @classmethod
    def from_entity(cls, staff: Staff) -> "StaffListItem":
        return cls(
            id=staff.id.value,
            name=staff.name.value,
            email=staff.email.value,
            role=staff.role,
            is_locked=staff.is_locked,
            created_at=staff.created_at,
        )


@dataclass(frozen=True)
class StaffPage:
    items: Sequence[StaffListItem]
    page: int
    per_page: int
    total: int

    @property
    def last_page(self) -> int:
        return max(1, -(-self.total // self.per_page))


@dataclass(frozen=True)
class CreateStaffOutput:
    staff: StaffListItem
    temporary_password: str


@dataclass(frozen=True)
class UpdateStaffOutput:
    id: str
    name: str
    email: str
    role: str
    updated_at: datetime


@dataclass(frozen=True)
class ResetPasswordOutput:
    temporary_password: str
