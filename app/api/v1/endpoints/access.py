"""
Permission check endpoints.

Each route requires a single ``{resource, actions}`` permission so
clients (and tests) can check what the caller's role allows.
"""

from __future__ import annotations

from fastapi import APIRouter

from app.api.v1.deps import gated, gated_by
from app.core.permissions import Action, Permission, Resource, permissions

router = APIRouter(prefix="/access", tags=["access"], dependencies=gated)

# Listings declare their requirement once, on the router
listings_router = APIRouter(
    prefix="/access/listings",
    tags=["access"],
    dependencies=gated_by(Permission(resource=Resource.listings, actions=[Action.read])),
)


def _granted(message: str, permission: str) -> dict[str, str]:
    return {"message": message, "permission": permission}


@router.get("/products")
@permissions(Permission(resource=Resource.products, actions=[Action.read]))
async def read_products() -> dict[str, str]:
    return _granted("Products retrieved successfully", "products:read")


@router.post("/products")
@permissions(Permission(resource=Resource.products, actions=[Action.create]))
async def create_product() -> dict[str, str]:
    return _granted("Product created successfully", "products:create")


@router.get("/orders")
@permissions(Permission(resource=Resource.orders, actions=[Action.read]))
async def read_orders() -> dict[str, str]:
    return _granted("Orders retrieved successfully", "orders:read")


@router.post("/orders")
@permissions(Permission(resource=Resource.orders, actions=[Action.create]))
async def create_order() -> dict[str, str]:
    return _granted("Order created successfully", "orders:create")


@router.get("/users")
@permissions(Permission(resource=Resource.users, actions=[Action.read]))
async def read_users() -> dict[str, str]:
    return _granted("Users retrieved successfully", "users:read")


@listings_router.get("")
async def read_listings() -> dict[str, str]:
    return _granted("Listings retrieved successfully", "listings:read")


@listings_router.post("")
@permissions(Permission(resource=Resource.listings, actions=[Action.create]))
async def create_listing() -> dict[str, str]:
    return _granted("Listing created successfully", "listings:create")
