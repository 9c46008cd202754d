"""
Async SQLAlchemy engine & session factory (asyncpg driver in production,
aiosqlite for local runs and tests).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession, async_sessionmaker,
                                    create_async_engine)

from app.core.config import settings
from app.db.base import Base

engine_args: dict = {
    "echo": False,
    "pool_pre_ping": True,
}

if "postgresql" in settings.DATABASE_URL:
    engine_args.update(
        {
            "pool_size": 20,
            "max_overflow": 10,
            "pool_recycle": 300,
        }
    )
elif "sqlite" in settings.DATABASE_URL:
    engine_args["connect_args"] = {"check_same_thread": False}

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_args,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create every table registered on ``Base.metadata`` (no-op if present)."""
    # Import models so their tables are registered on the metadata
    from app.models import role, token, user  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
