"""Pydantic schemas for access / refresh tokens."""

from __future__ import annotations

from app.schemas.common import CamelModel


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class LoginResponse(TokenPair):
    user_id: int
    role: str


class TokenPayload(CamelModel):
    """Identity decoded from an access token and attached to the request."""

    user_id: int
    role: str


class RefreshRequest(CamelModel):
    refresh_token: str
