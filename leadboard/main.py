"""
Leadboard CRM - FastAPI Application
Lead tracking, notes, follow-ups and a status kanban over a hosted Supabase project
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from datetime import datetime, timezone
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from leadboard.config import Settings, get_settings
from leadboard.core.logger import configure_logging
from leadboard.backend.client import BackendClient
from leadboard.pages.sessions import PageSessionManager

from leadboard.api.routes import health, auth
from leadboard.api.v1 import leads, pages, stream

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, backend: BackendClient | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events."""
        logger.info("Starting %s...", settings.app_name)
        client = backend or BackendClient.from_settings(settings)
        app.state.backend = client
        manager = PageSessionManager(
            client,
            sync_strategy=settings.sync_strategy,
            idle_timeout_seconds=settings.page_session_idle_seconds,
            sweep_seconds=settings.page_session_sweep_seconds,
        )
        manager.start()
        app.state.page_manager = manager
        logger.info("API running on %s environment (sync strategy: %s)", settings.app_env, settings.sync_strategy)
        yield
        await manager.stop()
        await manager.close_all()
        if backend is None:
            await client.aclose()
        logger.info("Shutting down %s...", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Backend API for Leadboard CRM",
        version="1.0.0",
        debug=settings.app_debug,
        lifespan=lifespan,
    )

    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root() -> dict:
        return {
            "name": settings.app_name,
            "environment": settings.app_env,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    prefix = settings.api_v1_prefix
    app.include_router(health.router, prefix=prefix, tags=["Health"])
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
    app.include_router(leads.router, prefix=f"{prefix}/leads", tags=["Leads"])
    app.include_router(pages.router, prefix=f"{prefix}/pages", tags=["Pages"])
    app.include_router(stream.router, prefix=f"{prefix}/stream", tags=["Stream"])
    return app


def _build_default_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    return create_app(settings)


app = _build_default_app()
