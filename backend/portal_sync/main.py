"""
Project Portal Sync - FastAPI Application Entry Point

Imports HubSpot service records into the portal's clients/projects tables.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal_sync import __version__
from portal_sync.api.endpoints import health, sync
from portal_sync.core.config import get_settings
from portal_sync.db.base import Base
from portal_sync.db.session import dispose_engine, get_engine

settings = get_settings()
logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Root logging setup, applied once at startup."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def init_database():
    """Initialize database tables."""
    # Import all models to ensure they're registered with Base
    from portal_sync import models  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs startup and shutdown logic.
    """
    configure_logging()

    # Startup
    logger.info("🚀 Starting Project Portal Sync...")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"HubSpot API: {settings.hubspot_api_base_url}")
    if not settings.hubspot_private_app_token:
        logger.warning("⚠️ HUBSPOT_PRIVATE_APP_TOKEN not set - sync runs will be refused")

    await init_database()
    logger.info("✅ Database tables initialized")
    logger.info("✅ Startup complete! Ready to accept requests.")

    yield

    # Shutdown
    logger.info("👋 Shutting down Project Portal Sync...")
    await dispose_engine()
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="Project Portal Sync",
    description="HubSpot to client portal synchronization service",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(sync.router, prefix="/api/v1", tags=["Sync"])


@app.get("/", tags=["Health"])
async def root():
    """Liveness endpoint."""
    return {
        "status": "healthy",
        "service": "Project Portal Sync",
        "version": __version__,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "portal_sync.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
    )
