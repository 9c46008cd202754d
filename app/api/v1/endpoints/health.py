"""
Public health check.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    db: bool


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """DB connectivity."""
    try:
        await db.execute(select(1))
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        return HealthResponse(db=False)
    return HealthResponse(db=True)
