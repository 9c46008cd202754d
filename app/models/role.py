"""
Role model — a named bundle of ``{resource, actions}`` permissions.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, Integer, String

from app.core.permissions import Permission
from app.db.base import Base


class Role(Base):
    __tablename__ = "roles"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(50), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    # [{"resource": "products", "actions": ["read"]}, ...]
    permissions: list[dict] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]

    def permission_list(self) -> list[Permission]:
        return [Permission.model_validate(p) for p in self.permissions or []]
