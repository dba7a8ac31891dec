"""
Library Staff Console: application entry point.

This is the **only** file that assembles the app. Business rules live in
``domain/``, ``services/`` and ``use_cases/``; ``api/`` only translates HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

# Ensure all models are imported so metadata.create_all can see them
import library_staff.models  # noqa: F401
from library_staff.api.v1.api import api_router
from library_staff.api.v1.endpoints.auth import limiter
from library_staff.core.config import settings
from library_staff.core.exceptions import register_exception_handlers
from library_staff.db.base import Base
from library_staff.db.session import async_session_factory, engine
from library_staff.domain.staff import Staff
from library_staff.domain.value_objects import Email, Password, StaffId, StaffName
from library_staff.models.staff import StaffRecord
from library_staff.repositories.password_history import SqlPasswordHistoryRepository
from library_staff.repositories.staff import SqlStaffRepository
from library_staff.services.password_history import PasswordHistoryService

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_first_admin(session: AsyncSession) -> bool:
    """Create the configured administrator when the staff table is empty."""
    count = await session.scalar(select(func.count()).select_from(StaffRecord))
    if count:
        return False

    password = Password.from_plain_text(settings.FIRST_ADMIN_PASSWORD)
    admin = Staff.create(
        StaffId.generate(),
        Email.create(settings.FIRST_ADMIN_EMAIL),
        password,
        StaffName.create(settings.FIRST_ADMIN_NAME),
        is_admin=True,
    )
    await SqlStaffRepository(session).add(admin)
    await PasswordHistoryService(SqlPasswordHistoryRepository(session)).add_to_history(
        admin.id, password.hashed_value
    )
    await session.commit()
    logger.info(
        "Default admin created: %s (password: <redacted>)",
        settings.FIRST_ADMIN_EMAIL,
    )
    return True


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as session:
        await seed_first_admin(session)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Staff authentication and session governance for the library console",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS (cookies need credentials, so origins must be explicit)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # slowapi looks the limiter up on app.state
    application.state.limiter = limiter

    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    return application


app = create_app()
