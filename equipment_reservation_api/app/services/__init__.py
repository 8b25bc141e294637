"""
Service layer.

Each service encapsulates the business logic of one collection
(equipment, users, reservations) on top of the entity store, so API
handlers never touch persistence directly.
"""
