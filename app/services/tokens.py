"""
Token issuer — access/refresh pair creation and refresh-token rotation.

Each user has at most one stored refresh token.  Issuing a new pair
overwrites it (last writer wins), so a rotated token stops working.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError, UnauthorizedError
from app.core.security import create_access_token, generate_refresh_token
from app.models.token import RefreshToken
from app.schemas.token import TokenPair
from app.services.users import get_user_by_id

logger = logging.getLogger(__name__)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def store_refresh_token(db: AsyncSession, user_id: int, token: str) -> None:
    """Upsert the user's refresh token with a fresh expiry."""
    expiry_date = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    insert = _INSERT_BY_DIALECT[db.get_bind().dialect.name]
    stmt = insert(RefreshToken).values(user_id=user_id, token=token, expiry_date=expiry_date)
    stmt = stmt.on_conflict_do_update(
        index_elements=[RefreshToken.user_id],
        set_={"token": token, "expiry_date": expiry_date},
    )
    await db.execute(stmt)
    await db.commit()


async def issue_tokens(db: AsyncSession, user_id: int) -> TokenPair:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")

    access_token = create_access_token(user.id, user.role)
    refresh_token = generate_refresh_token()
    await store_refresh_token(db, user.id, refresh_token)
    logger.debug("Issued token pair for user %s", user.id)
    return TokenPair(access_token=access_token, refresh_token=refresh_token)


async def refresh_tokens(db: AsyncSession, refresh_token: str) -> TokenPair:
    """Exchange a live refresh token for a brand-new pair (full rotation)."""
    result = await db.execute(
        select(RefreshToken.user_id).where(
            RefreshToken.token == refresh_token,
            RefreshToken.expiry_date >= datetime.now(timezone.utc),
        )
    )
    user_id = result.scalar_one_or_none()
    if user_id is None:
        raise UnauthorizedError("Refresh Token is invalid")

    logger.info("Rotating refresh token for user %s", user_id)
    return await issue_tokens(db, user_id)
