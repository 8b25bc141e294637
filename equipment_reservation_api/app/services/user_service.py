"""
Business logic for users.

The ``UserService`` keeps the ``users`` collection and enforces that
e-mail addresses are unique (case-sensitive exact match).  Passwords are
stored as PBKDF2 hashes; ``authenticate`` verifies a plain password
against the stored hash.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from equipment_reservation_api.app.core.config import settings
from equipment_reservation_api.app.core.db import UnitOfWork, get_store
from equipment_reservation_api.app.core.exceptions import DuplicateEmailError
from equipment_reservation_api.app.core.security import hash_password, verify_password
from equipment_reservation_api.app.schemas.user import UserCreate, UserRead, UserUpdate


logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


def default_users() -> List[Dict[str, Any]]:
    """Accounts seeded into an empty installation."""
    if not settings.seed_defaults:
        return []
    seeds = [
        ("Administrador", "admin@escola.edu.br", "admin123", "admin"),
        ("Professor", "professor@escola.edu.br", "professor123", "teacher"),
    ]
    return [
        {
            "id": str(uuid.uuid4()),
            "name": name,
            "email": email,
            "password": hash_password(password),
            "role": role,
        }
        for name, email, password, role in seeds
    ]


def _email_taken(records: List[Dict[str, Any]], email: str, exclude_id: Optional[str] = None) -> bool:
    return any(r.get("email") == email and r.get("id") != exclude_id for r in records)


class UserService:
    """Service for managing user accounts."""

    @classmethod
    def load_in(cls, uow: UnitOfWork) -> List[Dict[str, Any]]:
        return uow.load(USERS_COLLECTION, default_users)

    @classmethod
    def find_in(cls, uow: UnitOfWork, user_id: str) -> Optional[UserRead]:
        for record in cls.load_in(uow):
            if record.get("id") == user_id:
                return UserRead.model_validate(record)
        return None

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Create a new user.

        Raises ``DuplicateEmailError`` if the email is already registered;
        nothing is written in that case.
        """
        user = UserRead(id=str(uuid.uuid4()), name=data.name, email=data.email, role=data.role)
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            if _email_taken(records, data.email):
                logger.warning("Rejected registration with duplicate email %s", data.email)
                raise DuplicateEmailError(data.email)
            record = user.to_record()
            record["password"] = hash_password(data.password)
            records.append(record)
            uow.save(USERS_COLLECTION, records)
        logger.info("Registered user %s (%s)", user.email, user.role)
        return user

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
        return [UserRead.model_validate(r) for r in records]

    @classmethod
    async def search_users(cls, term: str) -> List[UserRead]:
        """Case-insensitive substring match on name or email."""
        needle = (term or "").strip().lower()
        users = await cls.list_users()
        if not needle:
            return users
        return [u for u in users if needle in u.name.lower() or needle in u.email.lower()]

    @classmethod
    async def get_user(cls, user_id: str) -> Optional[UserRead]:
        with get_store().transaction() as uow:
            return cls.find_in(uow, user_id)

    @classmethod
    async def get_user_by_email(cls, email: str) -> Optional[UserRead]:
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
        for record in records:
            if record.get("email") == email:
                return UserRead.model_validate(record)
        return None

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user whose email and password match, otherwise ``None``."""
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
        for record in records:
            if record.get("email") == email:
                if verify_password(password, record.get("password", "")):
                    return UserRead.model_validate(record)
                break
        logger.info("Failed login attempt for %s", email)
        return None

    @classmethod
    async def update_user(cls, user_id: str, data: UserUpdate) -> Optional[UserRead]:
        """Replace a user's profile.

        Returns ``None`` if the user does not exist.  Raises
        ``DuplicateEmailError`` when another user already has the new
        email.  The stored password hash is kept unless ``password`` is
        supplied.
        """
        user = UserRead(id=user_id, name=data.name, email=data.email, role=data.role)
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            index = next((i for i, r in enumerate(records) if r.get("id") == user_id), None)
            if index is None:
                logger.warning("Update of unknown user %s ignored", user_id)
                return None
            if _email_taken(records, data.email, exclude_id=user_id):
                logger.warning("Rejected update of user %s with duplicate email %s", user_id, data.email)
                raise DuplicateEmailError(data.email)
            record = user.to_record()
            if data.password:
                record["password"] = hash_password(data.password)
            else:
                record["password"] = records[index].get("password", "")
            records[index] = record
            uow.save(USERS_COLLECTION, records)
        logger.info("Updated user %s", user_id)
        return user

    @classmethod
    async def set_password(cls, email: str, password: str) -> bool:
        """Replace the password hash of the user with ``email``.

        Returns ``False`` if no such user exists.
        """
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            for record in records:
                if record.get("email") == email:
                    record["password"] = hash_password(password)
                    uow.save(USERS_COLLECTION, records)
                    break
            else:
                return False
        logger.info("Password reset for %s", email)
        return True

    @classmethod
    async def delete_user(cls, user_id: str) -> None:
        """Remove the user; unknown ids are a no-op.

        Reservations referencing the user are kept; their user name
        resolves to a placeholder afterwards.
        """
        with get_store().transaction() as uow:
            records = cls.load_in(uow)
            remaining = [r for r in records if r.get("id") != user_id]
            if len(remaining) == len(records):
                return
            uow.save(USERS_COLLECTION, remaining)
        logger.info("Deleted user %s", user_id)
