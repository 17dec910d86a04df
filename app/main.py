"""
FastAPI application factory.

Assembles the app, builds the permission catalog, registers all
routers and wires up lifecycle events.  Database schema is managed by
Alembic, NOT create_all.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.controllers.auth_controller import router as auth_router
from app.controllers.post_controller import router as post_router
from app.controllers.role_controller import router as role_router
from app.controllers.user_controller import router as user_router
from app.core.config import settings
from app.core.database import SessionLocal, engine
from app.core.exceptions import ServiceUnavailable
from app.models import Base  # noqa: F401 (ensures all models are registered)
from app.rbac.permissions import build_catalog

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Built once, read-only for the life of the process.
    app.state.catalog = build_catalog()

    # ── Register routers ─────────────────────────────────────────────
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(role_router)
    app.include_router(post_router)

    # ── Errors ───────────────────────────────────────────────────────
    # Raw driver errors (OSError) are not wrapped by SQLAlchemy.
    @app.exception_handler(SQLAlchemyError)
    @app.exception_handler(OSError)
    async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
        error = ServiceUnavailable()
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    # ── Startup / Shutdown ───────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        """Seed the system roles (idempotent).

        NOTE: Run `alembic upgrade head` before starting the app.
        """
        if not settings.SEED_ON_STARTUP:
            return
        from app.rbac.permission_seed import seed

        async with SessionLocal() as session:
            await seed(session, app.state.catalog)
        logger.info("Role seed complete.")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await engine.dispose()
        logger.info("Database engine disposed.")

    # ── Health check ─────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
