"""
Error taxonomy shared by the store, the services and the API layer.

All errors derive from ``ReservationSystemError``, itself a ``ValueError``,
so callers that only care about "the operation was rejected" can keep
catching ``ValueError``.  Endpoints map each concrete class to its own
HTTP status code.
"""

from typing import Optional


class ReservationSystemError(ValueError):
    """Base class for all domain failures."""


class NotFoundError(ReservationSystemError):
    """A referenced record does not exist."""

    def __init__(self, collection: str, record_id: str, message: Optional[str] = None) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(message or f"{collection} record {record_id} not found")


class DuplicateEmailError(ReservationSystemError):
    """Another user already owns the email address."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email {email} is already in use")


class StorageCorruptionError(ReservationSystemError):
    """The persisted value of a collection cannot be parsed."""

    def __init__(self, collection: str, reason: str) -> None:
        self.collection = collection
        super().__init__(f"Stored collection '{collection}' is corrupted: {reason}")


class StaleWriteError(ReservationSystemError):
    """A write was based on an outdated version of a collection."""

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection '{collection}' changed concurrently (expected version {expected}, found {actual}); reload and retry"
        )


class ValidationError(ReservationSystemError):
    """Field-level or cross-field constraint violated."""


class InvalidTransitionError(ValidationError):
    """Requested reservation status change is not part of the lifecycle."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change reservation status from {current} to {requested}")


class EquipmentUnavailableError(ValidationError):
    """The equipment is already held by another active reservation."""

    def __init__(self, equipment_id: str, holder_id: Optional[str] = None) -> None:
        self.equipment_id = equipment_id
        self.holder_id = holder_id
        detail = f" (held by reservation {holder_id})" if holder_id else ""
        super().__init__(f"Equipment {equipment_id} is not available{detail}")
