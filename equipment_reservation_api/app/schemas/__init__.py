"""
Pydantic schema definitions for API payloads and stored records.

Each domain (equipment, users, reservations) defines its own models.
The same models describe the JSON records kept in the entity store.
"""
