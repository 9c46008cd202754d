"""
Credential store: persistence of User rows.

Lookups return ``None`` on a miss; callers decide which error that means.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models.user import User

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email_excluding(
    db: AsyncSession, email: str, exclude_id: int
) -> User | None:
    """Another user holding ``email``, if any."""
    result = await db.execute(
        select(User).where(User.email == email, User.id != exclude_id)
    )
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    hashed_password: str,
    role_id: int,
    role: str,
) -> User:
    """Insert a user; a concurrent signup losing the unique-email race gets ConflictError."""
    user = User(
        name=name,
        email=email,
        hashed_password=hashed_password,
        role_id=role_id,
        role=role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning("Signup lost unique-email race")
        raise ConflictError("Email already in use")
    await db.refresh(user)
    return user


async def save_user(db: AsyncSession, user: User) -> User:
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already in use")
    await db.refresh(user)
    return user
