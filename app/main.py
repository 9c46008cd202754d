"""
Marketplace Auth — Application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `services/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.api import api_router
from app.api.v1.endpoints.auth import limiter
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.db.session import async_session_factory, create_tables, engine
from app.services.roles import seed_default_roles

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    await create_tables()
    logger.info("Database tables initialised")

    # Seed buyer / seller roles once, before serving requests
    async with async_session_factory() as session:
        await seed_default_roles(session)

    logger.info("🚀 %s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Marketplace authentication, token lifecycle and role-based authorization",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting (slowapi reads the limiter from app.state)
    application.state.limiter = limiter

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"message": f"{settings.PROJECT_NAME} API is running"}

    return application


app = create_app()
