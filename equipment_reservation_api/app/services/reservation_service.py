"""
Business logic for the reservation ledger.

A reservation moves through the statuses ``active``, ``returned`` and
``canceled``::

    (none)   --create-->     active
    active   --return-->     returned
    active   --cancel-->     canceled
    returned --reactivate--> active
    canceled --reactivate--> active

There is no terminal status: returning or canceling can be undone by
reactivating the reservation.

Each equipment record caches whether it is free (``available``).  The
ledger owns that flag: creating or reactivating a reservation clears it
and returning or canceling sets it, in the same store transaction as the
reservation write, so either both records change or neither does.  At
most one active reservation may hold a given piece of equipment.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from equipment_reservation_api.app.core.db import UnitOfWork, get_store
from equipment_reservation_api.app.core.exceptions import (
    EquipmentUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from equipment_reservation_api.app.schemas.equipment import EquipmentRead
from equipment_reservation_api.app.schemas.reservation import (
    DashboardSummary,
    ReservationCreate,
    ReservationDetail,
    ReservationRead,
    ReservationUpdate,
)
from equipment_reservation_api.app.services.equipment_service import EQUIPMENT_COLLECTION, EquipmentService
from equipment_reservation_api.app.services.user_service import USERS_COLLECTION, UserService


logger = logging.getLogger(__name__)

RESERVATIONS_COLLECTION = "reservations"

STATUS_ACTIVE = "active"
STATUS_RETURNED = "returned"
STATUS_CANCELED = "canceled"

TRANSITIONS: Dict[str, frozenset] = {
    STATUS_ACTIVE: frozenset({STATUS_RETURNED, STATUS_CANCELED}),
    STATUS_RETURNED: frozenset({STATUS_ACTIVE}),
    STATUS_CANCELED: frozenset({STATUS_ACTIVE}),
}

EQUIPMENT_NOT_FOUND = "Equipment not found"
USER_NOT_FOUND = "User not found"


def _check_dates(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )


def _active_holder(records: List[Dict[str, Any]], equipment_id: str, exclude_id: Optional[str] = None) -> Optional[str]:
    """Id of the active reservation holding ``equipment_id``, if any."""
    for record in records:
        if (
            record.get("equipmentId") == equipment_id
            and record.get("status") == STATUS_ACTIVE
            and record.get("id") != exclude_id
        ):
            return record.get("id")
    return None


def _ensure_available(equipment: EquipmentRead, records: List[Dict[str, Any]], exclude_id: Optional[str] = None) -> None:
    holder = _active_holder(records, equipment.id, exclude_id)
    if holder is not None or not equipment.available:
        logger.warning("Equipment %s is not available (holder: %s)", equipment.id, holder)
        raise EquipmentUnavailableError(equipment.id, holder)


class ReservationService:
    """Service for creating reservations and driving their status."""

    @classmethod
    def load_in(cls, uow: UnitOfWork) -> List[Dict[str, Any]]:
        return uow.load(RESERVATIONS_COLLECTION, [])

    @classmethod
    def _names_in(cls, uow: UnitOfWork) -> Tuple[Dict[str, str], Dict[str, str]]:
        equipment_names = {r.get("id"): r.get("name", "") for r in EquipmentService.load_in(uow)}
        user_names = {r.get("id"): r.get("name", "") for r in UserService.load_in(uow)}
        return equipment_names, user_names

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def create_reservation(cls, data: ReservationCreate) -> ReservationRead:
        """Reserve a piece of equipment.

        Validates the date range and both references, checks that the
        equipment is free, then stores the reservation as ``active`` and
        marks the equipment unavailable in one transaction.

        Raises ``ValidationError`` for ``endDate < startDate``,
        ``NotFoundError`` for an unknown user or equipment and
        ``EquipmentUnavailableError`` if the equipment is already held.
        """
        _check_dates(data.start_date, data.end_date)
        reservation = ReservationRead(
            id=str(uuid.uuid4()),
            user_id=data.user_id,
            equipment_id=data.equipment_id,
            start_date=data.start_date,
            end_date=data.end_date,
            purpose=data.purpose,
            status=STATUS_ACTIVE,
        )
        with get_store().transaction() as uow:
            if UserService.find_in(uow, data.user_id) is None:
                raise NotFoundError(USERS_COLLECTION, data.user_id)
            equipment = EquipmentService.find_in(uow, data.equipment_id)
            if equipment is None:
                raise NotFoundError(EQUIPMENT_COLLECTION, data.equipment_id)
            records = cls.load_in(uow)
            _ensure_available(equipment, records)
            records.append(reservation.to_record())
            uow.save(RESERVATIONS_COLLECTION, records)
            EquipmentService.set_availability_in(uow, data.equipment_id, False)
        logger.info(
            "Reservation %s created: user %s holds equipment %s from %s to %s",
            reservation.id,
            reservation.user_id,
            reservation.equipment_id,
            reservation.start_date,
            reservation.end_date,
        )
        return reservation

    @classmethod
    async def set_status(cls, reservation_id: str, new_status: str) -> Optional[ReservationRead]:
        """Move a reservation to ``new_status`` and update its equipment.

        Returns ``None`` if the reservation does not exist.  Raises
        ``InvalidTransitionError`` for a change outside the lifecycle and
        ``EquipmentUnavailableError`` when reactivating a reservation whose
        equipment has meanwhile been reserved by someone else.
        """
        if new_status not in TRANSITIONS:
            raise ValidationError(f"Unknown reservation status: {new_status}")
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            record = next((r for r in records if r.get("id") == reservation_id), None)
            if record is None:
                logger.warning("Status change of unknown reservation %s ignored", reservation_id)
                return None
            current = record.get("status")
            if new_status not in TRANSITIONS.get(current, frozenset()):
                logger.warning("Rejected transition %s -> %s for reservation %s", current, new_status, reservation_id)
                raise InvalidTransitionError(current, new_status)

            equipment_id = record.get("equipmentId")
            equipment = EquipmentService.find_in(uow, equipment_id)
            reactivating = new_status == STATUS_ACTIVE
            if reactivating and equipment is not None:
                _ensure_available(equipment, records, exclude_id=reservation_id)

            record["status"] = new_status
            uow.save(RESERVATIONS_COLLECTION, records)
            if equipment is None:
                logger.warning(
                    "Reservation %s references missing equipment %s; availability not updated",
                    reservation_id,
                    equipment_id,
                )
            else:
                EquipmentService.set_availability_in(uow, equipment_id, not reactivating)
        logger.info("Reservation %s: %s -> %s", reservation_id, current, new_status)
        return ReservationRead.model_validate(record)

    @classmethod
    async def return_reservation(cls, reservation_id: str) -> Optional[ReservationRead]:
        return await cls.set_status(reservation_id, STATUS_RETURNED)

    @classmethod
    async def cancel_reservation(cls, reservation_id: str) -> Optional[ReservationRead]:
        return await cls.set_status(reservation_id, STATUS_CANCELED)

    @classmethod
    async def reactivate_reservation(cls, reservation_id: str) -> Optional[ReservationRead]:
        return await cls.set_status(reservation_id, STATUS_ACTIVE)

    @classmethod
    async def update_reservation(cls, reservation_id: str, data: ReservationUpdate) -> Optional[ReservationRead]:
        """Change dates and/or purpose; returns ``None`` for an unknown id."""
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            index = next((i for i, r in enumerate(records) if r.get("id") == reservation_id), None)
            if index is None:
                return None
            current = ReservationRead.model_validate(records[index])
            changes = data.model_dump(exclude_none=True)
            updated = current.model_copy(update=changes)
            _check_dates(updated.start_date, updated.end_date)
            records[index] = updated.to_record()
            uow.save(RESERVATIONS_COLLECTION, records)
        logger.info("Updated reservation %s (%s)", reservation_id, ", ".join(sorted(changes)) or "no changes")
        return updated

    @classmethod
    async def delete_reservation(cls, reservation_id: str) -> None:
        """Remove a reservation, releasing its equipment if it was active."""
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            record = next((r for r in records if r.get("id") == reservation_id), None)
            if record is None:
                return
            uow.save(RESERVATIONS_COLLECTION, [r for r in records if r is not record])
            if record.get("status") == STATUS_ACTIVE:
                EquipmentService.set_availability_in(uow, record.get("equipmentId"), True)
        logger.info("Deleted reservation %s", reservation_id)

    @classmethod
    async def rebuild_availability(cls) -> List[str]:
        """Recompute every equipment ``available`` flag from the reservations.

        An item is available exactly when no active reservation holds it.
        Returns the ids of the equipment whose flag was corrected.
        """
        with get_store().transaction() as uow:
            held = {r.get("equipmentId") for r in cls.load_in(uow) if r.get("status") == STATUS_ACTIVE}
            equipment = EquipmentService.load_in(uow)
            changed: List[str] = []
            for item in equipment:
                expected = item.get("id") not in held
                if item.get("available") != expected:
                    item["available"] = expected
                    changed.append(item.get("id"))
            if changed:
                uow.save(EQUIPMENT_COLLECTION, equipment)
        if changed:
            logger.warning("Corrected availability of %d equipment record(s): %s", len(changed), ", ".join(changed))
        return changed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @classmethod
    async def get_reservation(cls, reservation_id: str) -> Optional[ReservationRead]:
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
        for record in records:
            if record.get("id") == reservation_id:
                return ReservationRead.model_validate(record)
        return None

    @classmethod
    async def list_reservations(
        cls,
        user_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[ReservationRead]:
        """List reservations matching every given filter.

        ``search`` is a case-insensitive substring matched against the
        equipment name, the user name and the purpose.
        """
        details = await cls.list_details(user_id=user_id, equipment_id=equipment_id, status=status, search=search)
        return [ReservationRead.model_validate(d.model_dump()) for d in details]

    @classmethod
    async def list_details(
        cls,
        user_id: Optional[str] = None,
        equipment_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[ReservationDetail]:
        """Same filters as ``list_reservations``, with names resolved."""
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            equipment_names, user_names = cls._names_in(uow)
        needle = (search or "").strip().lower()
        results: List[ReservationDetail] = []
        for record in records:
            if user_id is not None and record.get("userId") != user_id:
                continue
            if equipment_id is not None and record.get("equipmentId") != equipment_id:
                continue
            if status is not None and record.get("status") != status:
                continue
            detail = ReservationDetail(
                **ReservationRead.model_validate(record).model_dump(),
                equipment_name=equipment_names.get(record.get("equipmentId"), EQUIPMENT_NOT_FOUND),
                user_name=user_names.get(record.get("userId"), USER_NOT_FOUND),
            )
            if needle and not (
                needle in detail.equipment_name.lower()
                or needle in detail.user_name.lower()
                or needle in detail.purpose.lower()
            ):
                continue
            results.append(detail)
        return results

    @classmethod
    async def list_by_user(cls, user_id: str) -> List[ReservationRead]:
        return await cls.list_reservations(user_id=user_id)

    @classmethod
    async def list_by_equipment(cls, equipment_id: str) -> List[ReservationRead]:
        return await cls.list_reservations(equipment_id=equipment_id)

    @classmethod
    async def resolve_names(cls, reservation: ReservationRead) -> Tuple[str, str]:
        """Return ``(equipment name, user name)`` with not-found placeholders."""
        with get_store().transaction() as uow:
            equipment_names, user_names = cls._names_in(uow)
        return (
            equipment_names.get(reservation.equipment_id, EQUIPMENT_NOT_FOUND),
            user_names.get(reservation.user_id, USER_NOT_FOUND),
        )

    @classmethod
    async def dashboard_summary(cls, user_id: Optional[str] = None) -> DashboardSummary:
        """Counts shown on the dashboard.

        Active reservations and the next return date are limited to
        ``user_id`` when given; the available equipment count is global.
        """
        with get_store().transaction() as uow:
            equipment = EquipmentService.load_in(uow)
            records = cls.load_in(uow)
        active = [
            ReservationRead.model_validate(r)
            for r in records
            if r.get("status") == STATUS_ACTIVE and (user_id is None or r.get("userId") == user_id)
        ]
        return DashboardSummary(
            available_equipment=sum(1 for item in equipment if item.get("available")),
            active_reservations=len(active),
            next_return_date=min((r.end_date for r in active), default=None),
        )
