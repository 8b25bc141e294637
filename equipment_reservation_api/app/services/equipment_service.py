"""
Business logic for the equipment catalog.

Every operation reads the whole ``equipment`` collection, mutates it in
memory and writes it back.  The ``*_in`` helpers run inside a unit of
work opened by another service, so the reservation ledger can change
availability in the same transaction as the reservation itself.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from equipment_reservation_api.app.core.config import settings
from equipment_reservation_api.app.core.db import UnitOfWork, get_store
from equipment_reservation_api.app.schemas.equipment import (
    EquipmentCreate,
    EquipmentRead,
    EquipmentUpdate,
)


logger = logging.getLogger(__name__)

EQUIPMENT_COLLECTION = "equipment"


def default_equipment() -> List[Dict[str, Any]]:
    """Items seeded into an empty installation."""
    if not settings.seed_defaults:
        return []
    items = [
        EquipmentCreate(
            name="Projetor Epson X41",
            type="Projetor",
            description="Projetor com 3600 lumens, resolução XGA e conectividade HDMI/VGA.",
            location="Almoxarifado - Bloco A",
        ),
        EquipmentCreate(
            name="Notebook Dell Inspiron",
            type="Notebook",
            description="Notebook com processador i5, 8GB RAM, 256GB SSD e Windows 10.",
            location="Almoxarifado - Bloco A",
        ),
        EquipmentCreate(
            name='Smart TV Samsung 50"',
            type="TV",
            description="Smart TV 4K com conectividade Wi-Fi e Bluetooth.",
            location="Almoxarifado - Bloco B",
        ),
        EquipmentCreate(
            name="Microfone sem fio Shure",
            type="Microfone",
            description="Microfone sem fio com receptor e bateria recarregável.",
            location="Almoxarifado - Bloco B",
        ),
    ]
    return [EquipmentRead(id=str(uuid.uuid4()), **item.model_dump()).to_record() for item in items]


class EquipmentService:
    """Service for managing equipment records."""

    @classmethod
    def load_in(cls, uow: UnitOfWork) -> List[Dict[str, Any]]:
        return uow.load(EQUIPMENT_COLLECTION, default_equipment)

    @classmethod
    def find_in(cls, uow: UnitOfWork, equipment_id: str) -> Optional[EquipmentRead]:
        for record in cls.load_in(uow):
            if record.get("id") == equipment_id:
                return EquipmentRead.model_validate(record)
        return None

    @classmethod
    def set_availability_in(cls, uow: UnitOfWork, equipment_id: str, available: bool) -> Optional[EquipmentRead]:
        """Flip ``available`` inside an open unit of work.

        Returns ``None`` (and writes nothing) if the equipment does not exist.
        """
        records = cls.load_in(uow)
        for record in records:
            if record.get("id") == equipment_id:
                record["available"] = available
                uow.save(EQUIPMENT_COLLECTION, records)
                return EquipmentRead.model_validate(record)
        return None

    @classmethod
    async def list_equipment(cls) -> List[EquipmentRead]:
        """Return every equipment record in stored order."""
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
        return [EquipmentRead.model_validate(r) for r in records]

    @classmethod
    async def list_available(cls) -> List[EquipmentRead]:
        return [item for item in await cls.list_equipment() if item.available]

    @classmethod
    async def search_equipment(cls, term: str) -> List[EquipmentRead]:
        """Case-insensitive substring match on name, type or location."""
        needle = (term or "").strip().lower()
        items = await cls.list_equipment()
        if not needle:
            return items
        return [
            item
            for item in items
            if needle in item.name.lower() or needle in item.type.lower() or needle in item.location.lower()
        ]

    @classmethod
    async def get_equipment(cls, equipment_id: str) -> Optional[EquipmentRead]:
        with get_store().transaction() as uow:
            return cls.find_in(uow, equipment_id)

    @classmethod
    async def create_equipment(cls, data: EquipmentCreate) -> EquipmentRead:
        """Store a new equipment record under a fresh id."""
        item = EquipmentRead(id=str(uuid.uuid4()), **data.model_dump())
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            records.append(item.to_record())
            uow.save(EQUIPMENT_COLLECTION, records)
        logger.info("Created equipment %s (%s)", item.id, item.name)
        return item

    @classmethod
    async def update_equipment(cls, equipment_id: str, data: EquipmentUpdate) -> Optional[EquipmentRead]:
        """Replace the record with id ``equipment_id``.

        Returns ``None`` without writing anything if the id is unknown.
        When ``data.available`` is ``None`` the stored flag is kept.
        """
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            for index, record in enumerate(records):
                if record.get("id") == equipment_id:
                    fields = data.model_dump()
                    if fields["available"] is None:
                        fields["available"] = record.get("available", True)
                    item = EquipmentRead(id=equipment_id, **fields)
                    records[index] = item.to_record()
                    uow.save(EQUIPMENT_COLLECTION, records)
                    break
            else:
                logger.warning("Update of unknown equipment %s ignored", equipment_id)
                return None
        logger.info("Updated equipment %s", equipment_id)
        return item

    @classmethod
    async def delete_equipment(cls, equipment_id: str) -> None:
        """Remove the record; unknown ids are a no-op."""
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            remaining = [r for r in records if r.get("id") != equipment_id]
            if len(remaining) == len(records):
                return
            uow.save(EQUIPMENT_COLLECTION, remaining)
        logger.info("Deleted equipment %s", equipment_id)

    @classmethod
    async def set_availability(cls, equipment_id: str, available: bool) -> Optional[EquipmentRead]:
        """Set the ``available`` flag directly (administrative override)."""
        with get_store().transaction() as uow:
            item = cls.set_availability_in(uow, equipment_id, available)
        if item is not None:
            logger.info("Equipment %s availability set to %s", equipment_id, available)
        return item
