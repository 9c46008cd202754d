"""Pydantic schemas for signup, login, password and profile flows."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import field_validator

from app.schemas.common import CamelModel

_HAS_DIGIT = re.compile(r"[0-9]")


def _check_password(v: str) -> str:
    if len(v) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not _HAS_DIGIT.search(v):
        raise ValueError("Password must contain at least one number")
    return v


def _check_email(v: str) -> str:
    v = v.strip()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


class SignupRequest(CamelModel):
    name: str
    email: str
    password: str
    role: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("name", "role")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip()


class ChangePasswordRequest(CamelModel):
    old_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class ForgotPasswordRequest(CamelModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return v.strip()


class ResetPasswordRequest(CamelModel):
    new_password: str
    reset_token: str

    @field_validator("new_password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class UserRead(CamelModel):
    id: int
    name: str
    email: str
    role: str
    role_id: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserUpdate(CamelModel):
    name: str | None = None
    email: str | None = None
    role: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return None if v is None else _check_email(v)


class UserEnvelope(CamelModel):
    success: bool
    message: str
    user: UserRead
