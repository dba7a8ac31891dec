"""
Result types returned at use-case boundaries.

Expected business outcomes (wrong password, stale edit, duplicate email, ...)
come back as ``Err`` values instead of propagating as exceptions. Storage
failures and programming errors still raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from library_staff.domain.errors import StaffDomainError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: StaffDomainError

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        """Surface the error at the transport boundary."""
        raise self.error


Result = Union[Ok[T], Err]
