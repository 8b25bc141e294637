"""
Endpoint subpackage for API v1.

Each module defines an APIRouter for one domain (users, equipment,
reservations, dashboard); ``router.py`` aggregates them.
"""
