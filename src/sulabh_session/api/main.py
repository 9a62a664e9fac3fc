"""
FastAPI Main Application for the Sulabh session service
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sulabh_session import __version__
from sulabh_session.api.auth_context import set_auth_context
from sulabh_session.api.error_handling import register_exception_handlers
from sulabh_session.api.models import HealthResponse
from sulabh_session.api.routers import auth
from sulabh_session.auth.clock import Clock, utcnow
from sulabh_session.auth.lifecycle import SessionLifecycleManager
from sulabh_session.config import Settings, load_settings
from sulabh_session.infrastructure.connection_pool import ConnectionPool
from sulabh_session.repositories.account_repository import AccountRepository, InMemoryAccountRepository
from sulabh_session.repositories.mysql_account_repository import MySQLAccountRepository


logger = logging.getLogger("uvicorn.error")


def build_repository(settings: Settings) -> tuple[AccountRepository, Optional[ConnectionPool]]:
    """Account repository for the configured backend (plus its pool, if any)."""
    if settings.database.backend == "mysql":
        pool = ConnectionPool(settings.database)
        return MySQLAccountRepository(pool), pool
    return InMemoryAccountRepository(), None


async def _sweep_periodically(lifecycle: SessionLifecycleManager, interval_seconds: int) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await lifecycle.sweep()
        except Exception:
            # keep the loop alive; the next run retries
            logger.exception("Periodic session sweep failed")


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[AccountRepository] = None,
    clock: Clock = utcnow,
) -> FastAPI:
    """
    Builds the API application.

    Args:
        settings: Typed settings; loaded from cfg/config.yaml and the environment if omitted
        repository: Account repository; derived from settings.database if omitted
        clock: Time source shared by all session components

    Returns:
        Configured FastAPI app (uvicorn: "sulabh_session.api.main:create_app", factory=True)
    """
    settings = settings or load_settings()
    pool = None
    if repository is None:
        repository, pool = build_repository(settings)

    lifecycle = SessionLifecycleManager.from_settings(settings.auth, repository, clock=clock)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(
            _sweep_periodically(lifecycle, settings.auth.cleanup_interval_seconds)
        )
        logger.info("✓ Session service started (%s backend)", settings.database.backend)
        try:
            yield
        finally:
            sweeper.cancel()
            try:
                await sweeper
            except asyncio.CancelledError:
                pass
            if pool is not None:
                pool.close()
            logger.info("✓ Session service stopped")

    app = FastAPI(
        title="Sulabh Session API",
        description="Account registration, login and session lifecycle for the Sulabh grievance portal",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for frontend access (cookies need credentials)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.auth.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    set_auth_context(app, lifecycle, settings.auth)
    app.state.connection_pool = pool
    register_exception_handlers(app)

    app.include_router(auth.router)

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "Sulabh Session API",
            "version": __version__,
        }

    return app
