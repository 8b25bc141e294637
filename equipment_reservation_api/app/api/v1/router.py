"""
Top-level router for version 1 of the API.

Aggregates the domain routers (users, equipment, reservations,
dashboard) under a unified prefix.
"""

from fastapi import APIRouter

from .endpoints import dashboard, equipment, reservations, users


router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
