"""
Role-based permission model.

A permission is a ``{resource, actions}`` pair.  A route declares the
permissions it requires with :func:`permissions`; the authorization gate
compares them against the caller's role with :func:`has_permissions`.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from pydantic import BaseModel

PERMISSIONS_ATTR = "__required_permissions__"

_F = TypeVar("_F", bound=Callable[..., Any])


class Resource(str, enum.Enum):
    products = "products"
    listings = "listings"
    orders = "orders"
    profiles = "profiles"
    users = "users"


class Action(str, enum.Enum):
    create = "create"
    read = "read"
    update = "update"
    delete = "delete"


class Permission(BaseModel):
    resource: Resource
    actions: list[Action]

    def __str__(self) -> str:
        return f"{self.resource.value}:{','.join(a.value for a in self.actions)}"


def has_permissions(granted: Iterable[Permission], required: Iterable[Permission]) -> bool:
    """True when every required action on every required resource is granted.

    Actions are compared as sets; the first granted entry for a resource wins.
    """
    granted_by_resource: dict[Resource, set[Action]] = {}
    for perm in granted:
        granted_by_resource.setdefault(perm.resource, set(perm.actions))

    for req in required:
        actions = granted_by_resource.get(req.resource)
        if actions is None:
            return False
        if not set(req.actions) <= actions:
            return False
    return True


def parse_permissions(required: Iterable[Permission | dict]) -> list[Permission]:
    return [p if isinstance(p, Permission) else Permission.model_validate(p) for p in required]


def permissions(*required: Permission | dict) -> Callable[[_F], _F]:
    """Attach required permissions to an endpoint function.

    The router decorators return the function they register, so this may
    sit above or below ``@router.get``::

        @router.get("/products")
        @permissions(Permission(resource=Resource.products, actions=[Action.read]))
        async def list_products(): ...
    """
    parsed = parse_permissions(required)

    def decorator(func: _F) -> _F:
        setattr(func, PERMISSIONS_ATTR, parsed)
        return func

    return decorator


def required_permissions(
    endpoint: Any, default: list[Permission] | None = None
) -> list[Permission] | None:
    """Permissions declared on ``endpoint``, else ``default``.

    A declaration on the endpoint replaces the router default entirely.
    """
    declared = getattr(endpoint, PERMISSIONS_ATTR, None) if endpoint is not None else None
    return declared if declared is not None else default


# ── Default role bundles (seeded on first startup) ──────────────────
_CRUD = [Action.create, Action.read, Action.update, Action.delete]

DEFAULT_ROLES: dict[str, list[Permission]] = {
    "buyer": [
        Permission(resource=Resource.products, actions=[Action.read]),
        Permission(resource=Resource.orders, actions=[Action.create, Action.read]),
        Permission(resource=Resource.profiles, actions=[Action.read, Action.update]),
    ],
    "seller": [
        Permission(resource=Resource.products, actions=_CRUD),
        Permission(resource=Resource.listings, actions=_CRUD),
        Permission(resource=Resource.orders, actions=[Action.read]),
        Permission(resource=Resource.profiles, actions=[Action.read, Action.update]),
        Permission(resource=Resource.users, actions=[Action.read]),
    ],
}
