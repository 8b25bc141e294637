from __future__ import annotations

from datetime import date

import pytest

from equipment_reservation_api.app.core.exceptions import (
    EquipmentUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from equipment_reservation_api.app.schemas.equipment import EquipmentCreate, EquipmentUpdate
from equipment_reservation_api.app.schemas.reservation import ReservationCreate, ReservationUpdate
from equipment_reservation_api.app.schemas.user import UserCreate
from equipment_reservation_api.app.services.equipment_service import EquipmentService
from equipment_reservation_api.app.services.reservation_service import (
    EQUIPMENT_NOT_FOUND,
    USER_NOT_FOUND,
    ReservationService,
)
from equipment_reservation_api.app.services.user_service import UserService


@pytest.fixture()
def world(empty_store, run):
    """One teacher and two free pieces of equipment in an otherwise empty store."""
    teacher = run(UserService.create_user(UserCreate(
        name="Ana Souza", email="ana@escola.edu.br", password="segredo1", role="teacher",
    )))
    projector = run(EquipmentService.create_equipment(EquipmentCreate(
        name="Projector A", type="Projector", description="Portable projector", location="Room 12",
    )))
    laptop = run(EquipmentService.create_equipment(EquipmentCreate(
        name="Laptop B", type="Notebook", description="Laptop for presentations", location="Room 3",
    )))
    return {"teacher": teacher, "projector": projector, "laptop": laptop}


def _request(world, equipment="projector", start="2025-01-10", end="2025-01-12", purpose="demo session"):
    return ReservationCreate(
        user_id=world["teacher"].id,
        equipment_id=world[equipment].id,
        start_date=start,
        end_date=end,
        purpose=purpose,
    )


def _available(run, equipment_id):
    return run(EquipmentService.get_equipment(equipment_id)).available


def test_return_and_reactivate_keep_availability_in_step(world, run):
    projector_id = world["projector"].id
    reservation = run(ReservationService.create_reservation(_request(world)))
    assert reservation.status == "active"
    assert _available(run, projector_id) is False

    returned = run(ReservationService.set_status(reservation.id, "returned"))
    assert returned.status == "returned"
    assert _available(run, projector_id) is True

    reactivated = run(ReservationService.set_status(reservation.id, "active"))
    assert reactivated.status == "active"
    assert _available(run, projector_id) is False
    assert run(ReservationService.get_reservation(reservation.id)) == reactivated


def test_cancel_releases_equipment(world, run):
    reservation = run(ReservationService.create_reservation(_request(world)))
    canceled = run(ReservationService.cancel_reservation(reservation.id))
    assert canceled.status == "canceled"
    assert _available(run, world["projector"].id) is True


def test_end_before_start_is_rejected_and_not_stored(world, run):
    with pytest.raises(ValidationError):
        run(ReservationService.create_reservation(_request(world, start="2025-01-12", end="2025-01-10")))
    assert run(ReservationService.list_reservations()) == []
    assert _available(run, world["projector"].id) is True


def test_same_day_reservation_is_allowed(world, run):
    reservation = run(ReservationService.create_reservation(_request(world, start="2025-01-10", end="2025-01-10")))
    assert reservation.start_date == reservation.end_date == date(2025, 1, 10)


def test_unknown_references_are_rejected(world, run):
    bad_equipment = _request(world).model_copy(update={"equipment_id": "missing"})
    with pytest.raises(NotFoundError):
        run(ReservationService.create_reservation(bad_equipment))

    bad_user = _request(world).model_copy(update={"user_id": "missing"})
    with pytest.raises(NotFoundError):
        run(ReservationService.create_reservation(bad_user))
    assert run(ReservationService.list_reservations()) == []


def test_equipment_cannot_be_double_booked(world, run):
    first = run(ReservationService.create_reservation(_request(world)))
    with pytest.raises(EquipmentUnavailableError) as excinfo:
        run(ReservationService.create_reservation(_request(world, start="2025-02-01", end="2025-02-02")))
    assert excinfo.value.holder_id == first.id
    assert len(run(ReservationService.list_reservations())) == 1


def test_reactivation_is_blocked_when_equipment_was_lent_again(world, run):
    first = run(ReservationService.create_reservation(_request(world)))
    run(ReservationService.return_reservation(first.id))
    second = run(ReservationService.create_reservation(_request(world, start="2025-01-13", end="2025-01-14")))

    with pytest.raises(EquipmentUnavailableError):
        run(ReservationService.reactivate_reservation(first.id))
    assert run(ReservationService.get_reservation(first.id)).status == "returned"
    assert run(ReservationService.get_reservation(second.id)).status == "active"
    assert _available(run, world["projector"].id) is False


@pytest.mark.parametrize(
    "path",
    [
        ["returned", "canceled"],
        ["canceled", "returned"],
        ["active"],
        ["returned", "returned"],
    ],
)
def test_transitions_outside_the_lifecycle_are_rejected(world, run, path):
    reservation = run(ReservationService.create_reservation(_request(world)))
    *allowed, rejected = path
    for step in allowed:
        run(ReservationService.set_status(reservation.id, step))
    before = run(ReservationService.get_reservation(reservation.id))
    availability = _available(run, world["projector"].id)

    with pytest.raises(InvalidTransitionError):
        run(ReservationService.set_status(reservation.id, rejected))
    assert run(ReservationService.get_reservation(reservation.id)) == before
    assert _available(run, world["projector"].id) is availability


def test_unknown_status_value_is_rejected(world, run):
    reservation = run(ReservationService.create_reservation(_request(world)))
    with pytest.raises(ValidationError):
        run(ReservationService.set_status(reservation.id, "lost"))


def test_status_change_of_unknown_reservation_returns_none(world, run):
    assert run(ReservationService.set_status("missing", "returned")) is None


def test_failed_equipment_write_rolls_back_reservation(world, run, monkeypatch):
    def fail(*args, **kwargs):
        raise RuntimeError("equipment store unavailable")

    with monkeypatch.context() as m:
        m.setattr(EquipmentService, "set_availability_in", fail)
        with pytest.raises(RuntimeError):
            run(ReservationService.create_reservation(_request(world)))

    assert run(ReservationService.list_reservations()) == []
    assert _available(run, world["projector"].id) is True


@pytest.mark.parametrize("new_status", ["returned", "canceled"])
def test_failed_equipment_write_rolls_back_status_change(world, run, monkeypatch, new_status):
    reservation = run(ReservationService.create_reservation(_request(world)))

    def fail(*args, **kwargs):
        raise RuntimeError("equipment store unavailable")

    with monkeypatch.context() as m:
        m.setattr(EquipmentService, "set_availability_in", fail)
        with pytest.raises(RuntimeError):
            run(ReservationService.set_status(reservation.id, new_status))

    assert run(ReservationService.get_reservation(reservation.id)).status == "active"
    assert _available(run, world["projector"].id) is False


def test_editing_reserved_equipment_keeps_it_unavailable(world, run):
    projector = world["projector"]
    run(ReservationService.create_reservation(_request(world)))

    edit = EquipmentUpdate(
        name=projector.name, type=projector.type, description=projector.description, location="Room 20",
    )
    updated = run(EquipmentService.update_equipment(projector.id, edit))
    assert updated.location == "Room 20"
    assert updated.available is False
    assert _available(run, projector.id) is False
    assert run(ReservationService.dashboard_summary()).available_equipment == 1

    # an explicit flag is still an override
    forced = run(EquipmentService.update_equipment(projector.id, edit.model_copy(update={"available": True})))
    assert forced.available is True


def test_deleted_references_resolve_to_placeholders(world, run):
    reservation = run(ReservationService.create_reservation(_request(world)))
    run(EquipmentService.delete_equipment(world["projector"].id))
    run(UserService.delete_user(world["teacher"].id))

    assert run(ReservationService.resolve_names(reservation)) == (EQUIPMENT_NOT_FOUND, USER_NOT_FOUND)
    details = run(ReservationService.list_details())
    assert details[0].equipment_name == EQUIPMENT_NOT_FOUND
    assert details[0].user_name == USER_NOT_FOUND

    # status changes still work once the equipment is gone
    assert run(ReservationService.return_reservation(reservation.id)).status == "returned"


def test_filters_and_search(world, run):
    projector_res = run(ReservationService.create_reservation(_request(world, purpose="Física experimental")))
    laptop_res = run(ReservationService.create_reservation(_request(world, equipment="laptop", purpose="Reunião de pais")))
    run(ReservationService.return_reservation(laptop_res.id))

    assert [r.id for r in run(ReservationService.list_by_equipment(world["laptop"].id))] == [laptop_res.id]
    assert len(run(ReservationService.list_by_user(world["teacher"].id))) == 2
    assert [r.id for r in run(ReservationService.list_reservations(status="active"))] == [projector_res.id]
    assert [r.id for r in run(ReservationService.list_reservations(search="LAPTOP"))] == [laptop_res.id]
    assert [r.id for r in run(ReservationService.list_reservations(search="física"))] == [projector_res.id]
    assert len(run(ReservationService.list_reservations(search="ana souza"))) == 2
    assert run(ReservationService.list_reservations(status="active", search="laptop")) == []


def test_update_reservation_validates_dates(world, run):
    reservation = run(ReservationService.create_reservation(_request(world)))
    updated = run(ReservationService.update_reservation(reservation.id, ReservationUpdate(end_date="2025-01-20")))
    assert updated.end_date == date(2025, 1, 20)
    assert updated.status == "active"

    with pytest.raises(ValidationError):
        run(ReservationService.update_reservation(reservation.id, ReservationUpdate(start_date="2025-02-01")))
    assert run(ReservationService.get_reservation(reservation.id)).start_date == date(2025, 1, 10)
    assert run(ReservationService.update_reservation("missing", ReservationUpdate(purpose="outra coisa"))) is None


def test_deleting_active_reservation_releases_equipment(world, run):
    reservation = run(ReservationService.create_reservation(_request(world)))
    run(ReservationService.delete_reservation(reservation.id))
    assert run(ReservationService.get_reservation(reservation.id)) is None
    assert _available(run, world["projector"].id) is True


def test_rebuild_availability_repairs_manual_overrides(world, run):
    run(ReservationService.create_reservation(_request(world)))
    run(EquipmentService.set_availability(world["projector"].id, True))
    run(EquipmentService.set_availability(world["laptop"].id, False))

    changed = run(ReservationService.rebuild_availability())
    assert sorted(changed) == sorted([world["projector"].id, world["laptop"].id])
    assert _available(run, world["projector"].id) is False
    assert _available(run, world["laptop"].id) is True
    assert run(ReservationService.rebuild_availability()) == []


def test_dashboard_summary(world, run):
    run(ReservationService.create_reservation(_request(world, end="2025-01-15")))
    run(ReservationService.create_reservation(_request(world, equipment="laptop", end="2025-01-11")))

    summary = run(ReservationService.dashboard_summary())
    assert summary.available_equipment == 0
    assert summary.active_reservations == 2
    assert summary.next_return_date == date(2025, 1, 11)

    nobody = run(ReservationService.dashboard_summary(user_id="someone-else"))
    assert nobody.active_reservations == 0
    assert nobody.next_return_date is None
