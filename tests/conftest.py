from __future__ import annotations

import asyncio

import pytest

from equipment_reservation_api.app.core.config import settings
from equipment_reservation_api.app.core.db import reset_store


@pytest.fixture()
def store_path(tmp_path, monkeypatch):
    """Point the entity store at a fresh file seeded with the default records."""
    db_file = tmp_path / "store.db"
    monkeypatch.setattr(settings, "database_url", str(db_file))
    monkeypatch.setattr(settings, "seed_defaults", True)
    monkeypatch.setattr(settings, "reset_on_corruption", False)
    reset_store()
    yield db_file
    reset_store()


@pytest.fixture()
def empty_store(store_path, monkeypatch):
    """Same as ``store_path`` but every collection starts empty."""
    monkeypatch.setattr(settings, "seed_defaults", False)
    return store_path


@pytest.fixture()
def run():
    """Drive a service coroutine to completion from a synchronous test."""
    return asyncio.run
