"""
Role / permission store and the one-time default-role seed.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import DEFAULT_ROLES
from app.models.role import Role

logger = logging.getLogger(__name__)


async def get_role_by_name(db: AsyncSession, name: str) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalar_one_or_none()


async def get_role_by_id(db: AsyncSession, role_id: int) -> Role | None:
    return await db.get(Role, role_id)


async def seed_default_roles(db: AsyncSession) -> bool:
    """Insert the buyer and seller roles if the roles table is empty.

    Returns ``True`` when roles were inserted, ``False`` when skipped.
    """
    count = await db.scalar(select(func.count(Role.id)))
    if count:
        logger.info("Roles already exist, skipping seed")
        return False

    for name, perms in DEFAULT_ROLES.items():
        db.add(
            Role(
                name=name,
                permissions=[p.model_dump(mode="json") for p in perms],
            )
        )
    await db.commit()
    logger.info("Default roles seeded: %s", ", ".join(DEFAULT_ROLES))
    return True
