"""Importing this package registers every table on ``Base.metadata``."""

from library_staff.models.password_history import PasswordHistoryRecord
from library_staff.models.session import SessionRecord
from library_staff.models.staff import StaffRecord

__all__ = ["PasswordHistoryRecord", "SessionRecord", "StaffRecord"]
