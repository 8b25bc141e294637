"""
Pydantic models for user data.

Passwords are accepted on create/update and login, stored hashed by the
service, and never included in ``UserRead``.
"""

from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel


UserRole = Literal["admin", "teacher"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserBase(CamelModel):
    name: str = Field(..., min_length=3, examples=["Professor"])
    email: str = Field(..., pattern=EMAIL_PATTERN, examples=["professor@escola.edu.br"])
    role: UserRole = Field("teacher", examples=["teacher"])


class UserCreate(UserBase):
    """Schema for registering a user."""

    password: str = Field(..., min_length=6, examples=["professor123"])


class UserUpdate(UserBase):
    """Full replacement of a user's profile.

    ``password`` may be omitted to keep the stored password.
    """

    password: Optional[str] = Field(None, min_length=6)


class UserLogin(CamelModel):
    email: str
    password: str


class UserRead(UserBase):
    """Schema for reading a user; the password hash is never exposed."""

    id: str
