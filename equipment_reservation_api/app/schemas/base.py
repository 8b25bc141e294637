"""
Shared pydantic base class.

Python attributes are snake_case while the stored JSON records and the
API payloads use the camelCase keys of the record shapes (``userId``,
``equipmentId``, ``startDate``...).  Both spellings are accepted on input.
"""

from typing import Any, Dict

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }

    def to_record(self) -> Dict[str, Any]:
        """Return the JSON-ready dict stored in the entity store."""
        return self.model_dump(by_alias=True, mode="json")
