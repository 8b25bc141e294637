"""
Reservation endpoints for API v1.

Users reserve equipment for themselves and see only their own
reservations; administrators see every reservation, may reserve on
behalf of another user and drive the status lifecycle (return, cancel,
reactivate).  The ``ReservationService`` keeps equipment availability in
step with each change.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from equipment_reservation_api.app.core.security import get_current_user, require_roles
from equipment_reservation_api.app.schemas.reservation import (
    ReservationCreate,
    ReservationDetail,
    ReservationRead,
    ReservationRequest,
    ReservationStatus,
    ReservationUpdate,
    StatusUpdate,
)
from equipment_reservation_api.app.services.reservation_service import ReservationService


router = APIRouter()


def _is_admin(current_user: Dict[str, Any]) -> bool:
    return current_user.get("role") == "admin"


async def _get_visible(reservation_id: str, current_user: Dict[str, Any]) -> ReservationRead:
    """Fetch a reservation the current user is allowed to see (404/403 otherwise)."""
    reservation = await ReservationService.get_reservation(reservation_id)
    if reservation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    if not _is_admin(current_user) and reservation.user_id != current_user.get("user_id"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return reservation


@router.post("/", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> ReservationRead:
    """Reserve equipment.

    The reservation is created ``active`` and the equipment becomes
    unavailable.  Returns 400 when ``endDate`` precedes ``startDate``,
    404 for unknown equipment and 409 when the equipment is taken.
    """
    user_id = current_user["user_id"]
    if payload.user_id and payload.user_id != user_id:
        if not _is_admin(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only administrators can reserve for another user",
            )
        user_id = payload.user_id
    data = ReservationCreate(**payload.model_dump(exclude={"user_id"}), user_id=user_id)
    return await ReservationService.create_reservation(data)


@router.get("/", response_model=List[ReservationDetail])
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    equipment_id: Optional[str] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> List[ReservationDetail]:
    """List reservations with equipment and user names resolved.

    Non-administrators only ever see their own reservations; the
    ``user_id`` filter is ignored for them.
    """
    if not _is_admin(current_user):
        user_id = current_user["user_id"]
    return await ReservationService.list_details(
        user_id=user_id,
        equipment_id=equipment_id,
        status=status_filter,
        search=search,
    )


@router.post("/rebuild-availability")
async def rebuild_availability(
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> Dict[str, List[str]]:
    """Recompute every equipment availability flag from active reservations."""
    changed = await ReservationService.rebuild_availability()
    return {"corrected": changed}


@router.get("/{reservation_id}", response_model=ReservationDetail)
async def get_reservation(
    reservation_id: str = Path(..., description="ID of the reservation"),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> ReservationDetail:
    reservation = await _get_visible(reservation_id, current_user)
    equipment_name, user_name = await ReservationService.resolve_names(reservation)
    return ReservationDetail(**reservation.model_dump(), equipment_name=equipment_name, user_name=user_name)


@router.put("/{reservation_id}", response_model=ReservationRead)
async def update_reservation(
    update: ReservationUpdate,
    reservation_id: str = Path(..., description="ID of the reservation"),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> ReservationRead:
    """Change the dates or purpose of a reservation (owner or administrator)."""
    await _get_visible(reservation_id, current_user)
    updated = await ReservationService.update_reservation(reservation_id, update)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return updated


@router.patch("/{reservation_id}/status", response_model=ReservationRead)
async def change_status(
    body: StatusUpdate,
    reservation_id: str = Path(..., description="ID of the reservation"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> ReservationRead:
    """Return, cancel or reactivate a reservation.

    Invalid transitions yield 400; reactivating a reservation whose
    equipment is held by another active reservation yields 409.
    """
    updated = await ReservationService.set_status(reservation_id, body.status)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Reservation not found")
    return updated


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reservation(
    reservation_id: str = Path(..., description="ID of the reservation"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> None:
    await ReservationService.delete_reservation(reservation_id)
