"""
Equipment endpoints for API v1.

Any authenticated user may browse the catalog; creating, editing and
deleting equipment or overriding its availability is reserved for
administrators.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, status

from equipment_reservation_api.app.core.security import get_current_user, require_roles
from equipment_reservation_api.app.schemas.equipment import (
    AvailabilityUpdate,
    EquipmentCreate,
    EquipmentRead,
    EquipmentUpdate,
)
from equipment_reservation_api.app.services.equipment_service import EquipmentService


router = APIRouter()


@router.get("/", response_model=List[EquipmentRead])
async def list_equipment(
    search: Optional[str] = None,
    available: Optional[bool] = None,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> List[EquipmentRead]:
    """List equipment.

    ``search`` matches name, type or location (case-insensitive);
    ``available`` restricts the list to free or held items.
    """
    items = await EquipmentService.search_equipment(search) if search else await EquipmentService.list_equipment()
    if available is not None:
        items = [item for item in items if item.available == available]
    return items


@router.get("/{equipment_id}", response_model=EquipmentRead)
async def get_equipment(
    equipment_id: str = Path(..., description="ID of the equipment"),
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> EquipmentRead:
    item = await EquipmentService.get_equipment(equipment_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return item


@router.post("/", response_model=EquipmentRead, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    item: EquipmentCreate,
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> EquipmentRead:
    return await EquipmentService.create_equipment(item)


@router.put("/{equipment_id}", response_model=EquipmentRead)
async def update_equipment(
    item: EquipmentUpdate,
    equipment_id: str = Path(..., description="ID of the equipment"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> EquipmentRead:
    updated = await EquipmentService.update_equipment(equipment_id, item)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return updated


@router.patch("/{equipment_id}/availability", response_model=EquipmentRead)
async def set_availability(
    body: AvailabilityUpdate,
    equipment_id: str = Path(..., description="ID of the equipment"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> EquipmentRead:
    """Override the availability flag.

    Reservation status changes maintain the flag automatically; use
    ``POST /reservations/rebuild-availability`` to undo manual drift.
    """
    updated = await EquipmentService.set_availability(equipment_id, body.available)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return updated


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: str = Path(..., description="ID of the equipment"),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
) -> None:
    await EquipmentService.delete_equipment(equipment_id)
