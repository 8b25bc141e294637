from __future__ import annotations

import pytest
from pydantic import ValidationError as SchemaValidationError

from equipment_reservation_api.app.schemas.equipment import EquipmentCreate, EquipmentUpdate
from equipment_reservation_api.app.services.equipment_service import EquipmentService


def _projector(**overrides):
    data = {
        "name": "Projector A",
        "type": "Projector",
        "description": "Portable projector with HDMI",
        "location": "Room 12",
        "available": True,
    }
    data.update(overrides)
    return data


def test_default_catalog_is_seeded(store_path, run):
    items = run(EquipmentService.list_equipment())
    assert [i.type for i in items] == ["Projetor", "Notebook", "TV", "Microfone"]
    assert all(i.available for i in items)
    assert len({i.id for i in items}) == 4


def test_create_get_update_delete(empty_store, run):
    created = run(EquipmentService.create_equipment(EquipmentCreate(**_projector())))
    assert created.id
    assert run(EquipmentService.get_equipment(created.id)) == created

    updated = run(EquipmentService.update_equipment(created.id, EquipmentUpdate(**_projector(location="Room 14"))))
    assert updated.location == "Room 14"
    assert run(EquipmentService.get_equipment(created.id)).location == "Room 14"

    run(EquipmentService.delete_equipment(created.id))
    assert run(EquipmentService.get_equipment(created.id)) is None
    assert run(EquipmentService.list_equipment()) == []


def test_unknown_ids_are_no_ops(empty_store, run):
    run(EquipmentService.create_equipment(EquipmentCreate(**_projector())))

    assert run(EquipmentService.update_equipment("missing", EquipmentUpdate(**_projector()))) is None
    assert run(EquipmentService.set_availability("missing", False)) is None
    run(EquipmentService.delete_equipment("missing"))
    assert len(run(EquipmentService.list_equipment())) == 1


def test_set_availability(empty_store, run):
    created = run(EquipmentService.create_equipment(EquipmentCreate(**_projector())))
    result = run(EquipmentService.set_availability(created.id, False))
    assert result.available is False
    assert run(EquipmentService.list_available()) == []


def test_search_matches_name_type_and_location(store_path, run):
    assert [i.name for i in run(EquipmentService.search_equipment("shure"))] == ["Microfone sem fio Shure"]
    assert len(run(EquipmentService.search_equipment("bloco a"))) == 2
    assert len(run(EquipmentService.search_equipment("  "))) == 4


def test_field_constraints():
    with pytest.raises(SchemaValidationError):
        EquipmentCreate(**_projector(name="TV"))
    with pytest.raises(SchemaValidationError):
        EquipmentCreate(**_projector(description="tiny"))
