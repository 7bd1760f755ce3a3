"""Pydantic schemas for registration, login and user output.

UserRead is the only outward shape of a user: no password hash,
no session tokens.
"""

import re
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field, StringConstraints

from tasktrack.schemas.common import CamelModel

EMAIL_RE = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[A-Za-z]{2,}$")


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Please enter a valid email")
    return value


Email = Annotated[str, AfterValidator(_normalize_email)]


class RegisterRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
    email: Email
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)


class UserRead(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    created_at: datetime


class AuthResponse(BaseModel):
    """Register/login result: the user plus a fresh session token."""
    message: str
    user: UserRead
    token: str


class UserEnvelope(BaseModel):
    user: UserRead
