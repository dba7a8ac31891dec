"""
Async SQLAlchemy engine & session factory (asyncpg driver).

Requests get their session from ``api.v1.deps.get_db``; startup code opens
one directly from ``async_session_factory``.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from library_staff.core.config import settings

engine_args = {
    "echo": False,
    "pool_pre_ping": True,
}

# Pool sizing only applies to server databases; SQLite uses its own pool classes.
if "postgresql" in settings.DATABASE_URL:
    engine_args.update(
        {
            "pool_size": 20,
            "max_overflow": 10,
            "pool_recycle": 300,
        }
    )

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_args,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
