"""
Declarative base shared by every storage record.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
