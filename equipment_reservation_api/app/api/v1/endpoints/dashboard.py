"""
Dashboard endpoint for API v1.

Returns the three headline figures of the dashboard: how many items are
free to reserve, how many reservations are active and the earliest
upcoming return date.  Administrators see system-wide figures, other
users their own.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from equipment_reservation_api.app.core.security import get_current_user
from equipment_reservation_api.app.schemas.reservation import DashboardSummary
from equipment_reservation_api.app.services.reservation_service import ReservationService


router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(current_user: Dict[str, Any] = Depends(get_current_user)) -> DashboardSummary:
    scope = None if current_user.get("role") == "admin" else current_user.get("user_id")
    return await ReservationService.dashboard_summary(user_id=scope)
