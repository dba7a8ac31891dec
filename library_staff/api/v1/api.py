"""
API router aggregator. Wires all endpoint modules together.
"""

from fastapi import APIRouter

from library_staff.api.v1.endpoints import auth, health, sessions, staff_accounts

api_router = APIRouter()

# Login, logout, current staff
api_router.include_router(auth.router)

# Own sessions and password
api_router.include_router(sessions.router)

# Account administration (admin only)
api_router.include_router(staff_accounts.router)

api_router.include_router(health.router)
