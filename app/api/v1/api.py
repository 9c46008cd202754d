"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import access, auth, health

api_router = APIRouter()

# Signup, login, refresh, password flows, own profile
api_router.include_router(auth.router)

# Permission checks (authenticated + authorized)
api_router.include_router(access.router)
api_router.include_router(access.listings_router)

# Health
api_router.include_router(health.router)
