"""
Pydantic models for equipment.

``available`` is a cached flag meaning "no active reservation holds this
item"; the reservation service keeps it in sync.  Administrators may still
set it directly through ``EquipmentUpdate`` or ``AvailabilityUpdate``.
"""

from typing import Optional

from pydantic import Field

from .base import CamelModel


class EquipmentBase(CamelModel):
    name: str = Field(..., min_length=3, examples=["Projetor Epson X41"])
    type: str = Field(..., min_length=1, examples=["Projetor"])
    description: str = Field(..., min_length=5, examples=["Projetor com 3600 lumens e HDMI/VGA."])
    location: str = Field(..., min_length=1, examples=["Almoxarifado - Bloco A"])
    available: bool = Field(True, examples=[True])


class EquipmentCreate(EquipmentBase):
    """Schema for registering a new piece of equipment."""
    pass


class EquipmentUpdate(EquipmentBase):
    """Full replacement of an equipment record.

    Omitting ``available`` keeps the stored flag, so editing the description
    of a reserved item does not free it.
    """

    available: Optional[bool] = Field(None, examples=[False])


class AvailabilityUpdate(CamelModel):
    available: bool


class EquipmentRead(EquipmentBase):
    id: str
