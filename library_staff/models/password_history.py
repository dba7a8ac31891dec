"""
Previously used password hashes, newest five kept per staff member.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from library_staff.db.base import Base


class PasswordHistoryRecord(Base):
    __tablename__ = "password_histories"
    __table_args__ = (Index("ix_password_histories_staff_created", "staff_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    staff_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
