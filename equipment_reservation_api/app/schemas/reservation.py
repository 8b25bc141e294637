"""
Pydantic models for equipment reservations.

Date ordering (``endDate >= startDate``) is checked by the reservation
service rather than here, so the rule holds for every caller of the
service and not only for API payloads.
"""

from datetime import date
from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel


ReservationStatus = Literal["active", "returned", "canceled"]


class ReservationRequest(CamelModel):
    """Payload submitted by a user reserving equipment.

    ``user_id`` is filled in from the authenticated user unless an
    administrator reserves on someone else's behalf.
    """

    equipment_id: str
    start_date: date = Field(..., examples=["2025-01-10"])
    end_date: date = Field(..., examples=["2025-01-12"])
    purpose: str = Field(..., min_length=5, examples=["Aula de demonstração"])
    user_id: Optional[str] = None


class ReservationCreate(ReservationRequest):
    """Schema accepted by ``ReservationService.create_reservation``."""

    user_id: str


class ReservationUpdate(CamelModel):
    """Change the dates or purpose of a reservation.

    Omitted fields keep their stored value.  Status is changed through
    ``StatusUpdate`` only.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    purpose: Optional[str] = Field(None, min_length=5)


class StatusUpdate(CamelModel):
    status: ReservationStatus


class ReservationRead(CamelModel):
    id: str
    user_id: str
    equipment_id: str
    start_date: date
    end_date: date
    purpose: str
    status: ReservationStatus


class ReservationDetail(ReservationRead):
    """Reservation with the names of its equipment and user resolved."""

    equipment_name: str
    user_name: str


class DashboardSummary(CamelModel):
    available_equipment: int
    active_reservations: int
    next_return_date: Optional[date] = None
