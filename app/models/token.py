"""
Refresh & password-reset token models.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.db.base import Base


class RefreshToken(Base):
    """At most one live refresh token per user; each issuance overwrites it."""

    __tablename__ = "refresh_tokens"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    token: str = Column(String(64), nullable=False, index=True)  # type: ignore[assignment]
    expiry_date: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]


class ResetToken(Base):
    """Single-use password reset credential."""

    __tablename__ = "reset_tokens"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    token: str = Column(String(128), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expiry_date: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
