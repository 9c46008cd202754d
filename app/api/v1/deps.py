"""
FastAPI dependencies — database session, authentication and authorization gates.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.permissions import (
    Permission,
    has_permissions,
    parse_permissions,
    required_permissions,
)
from app.core.security import decode_access_token
from app.db.session import async_session_factory
from app.schemas.token import TokenPayload
from app.services.auth import get_user_permissions
from app.services.mail import MailService

logger = logging.getLogger(__name__)

# auto_error=False so a missing header raises our own 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Mail ────────────────────────────────────────────────────────────
def get_mail_service() -> MailService:
    return MailService.from_settings()


# ── Authentication gate ─────────────────────────────────────────────
async def authenticate(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> TokenPayload:
    """Verify the bearer access token and attach the identity to ``request.state``."""
    if not token:
        raise UnauthorizedError("Missing bearer token")

    payload = decode_access_token(token)
    if payload is None:
        raise UnauthorizedError("Invalid or expired token")

    try:
        identity = TokenPayload.model_validate(payload)
    except ValidationError:
        raise UnauthorizedError("Invalid or expired token")

    request.state.identity = identity
    return identity


# ── Authorization gate ──────────────────────────────────────────────
async def authorize(request: Request, db: AsyncSession = Depends(get_db)) -> None:
    """Compare the endpoint's declared permissions with the caller's role.

    Must run after :func:`authenticate`.  Endpoints without a declaration
    are open to any authenticated caller.  Anything that goes wrong while
    evaluating permissions is a 403, never a 500 and never an allow.
    """
    await _check_permissions(request, db, None)


async def _check_permissions(
    request: Request, db: AsyncSession, default: list[Permission] | None
) -> None:
    identity: TokenPayload | None = getattr(request.state, "identity", None)
    if identity is None:
        raise UnauthorizedError("User Id not found")

    required = required_permissions(request.scope.get("endpoint"), default)
    if required is None:
        return

    try:
        granted = await get_user_permissions(db, identity.user_id)
        allowed = has_permissions(granted, required)
    except Exception as e:
        logger.error("Authorization failed for user %s: %s", identity.user_id, e)
        raise ForbiddenError()

    if not allowed:
        logger.warning(
            "User %s denied; requires %s",
            identity.user_id,
            ", ".join(str(p) for p in required),
        )
        raise ForbiddenError()


# Route-level guard: ``dependencies=gated``
gated = [Depends(authenticate), Depends(authorize)]


def gated_by(*required: Permission | dict) -> list:
    """Router-level guard with a default requirement.

    ``APIRouter(dependencies=gated_by(...))`` applies ``required`` to every
    route on the router that declares no :func:`permissions` of its own.
    """
    default = parse_permissions(required)

    async def authorize_with_default(
        request: Request, db: AsyncSession = Depends(get_db)
    ) -> None:
        await _check_permissions(request, db, default)

    return [Depends(authenticate), Depends(authorize_with_default)]
