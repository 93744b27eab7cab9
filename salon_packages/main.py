"""
==============================================================================
Salon Service Package Engine - Application Entry Point
==============================================================================

FastAPI application with:
- RESTful package, booking and analytics endpoints
- Category catalog loading
- Background expiry sweep task

Usage:
------
    # Development
    uvicorn salon_packages.main:app --reload

    # Production
    uvicorn salon_packages.main:app --host 0.0.0.0 --port 8000

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from salon_packages.config import get_settings
from salon_packages.core.exceptions import register_exception_handlers
from salon_packages.db import DatabaseManager, init_db
from salon_packages.api.router import api_router
from salon_packages.catalog.catalog import init_catalog
from salon_packages.services.expiry_service import ExpirySweepTaskManager


# ============================================================================
# LOGGING SETUP
# ============================================================================

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    FastAPI application factory and manager.

    Handles application lifecycle including:
    - Startup and shutdown events
    - Middleware configuration
    - Router registration
    - Exception handler setup
    """

    def __init__(self):
        """Initialize the application."""
        self._settings = get_settings()
        self._sweep_manager = ExpirySweepTaskManager()
        self._app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self._settings.app_name,
            version="1.0.0",
            description="Service package definition, pricing, availability and booking",
            lifespan=self._lifespan,
            docs_url="/docs",
            redoc_url="/redoc",
        )

        # Configure middleware
        self._configure_middleware(app)

        # Register exception handlers
        register_exception_handlers(app)

        # Register routers
        app.include_router(api_router)

        # Register root endpoint
        self._register_root(app)

        return app

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Application lifespan manager."""
        # Startup
        self._startup()
        yield
        # Shutdown
        self._shutdown()

    def _startup(self) -> None:
        """Application startup tasks."""
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name}")
        logger.info("=" * 60)

        # Initialize database
        init_db()

        # Load package categories
        self._load_catalog()

        # Start expiry sweep task
        if self._settings.expiry_sweep_enabled:
            self._sweep_manager.start()

        logger.info("=" * 60)
        logger.info(f"✅ {self._settings.app_name} ready")
        logger.info(f"🕒 Operational timezone: {self._settings.operational_timezone}")
        logger.info(f"📍 Running on http://{self._settings.host}:{self._settings.port}")
        logger.info(f"📖 API Docs: http://{self._settings.host}:{self._settings.port}/docs")
        logger.info("=" * 60)

    def _shutdown(self) -> None:
        """Application shutdown tasks."""
        logger.info("🛑 Shutting down...")
        self._sweep_manager.stop()
        DatabaseManager().dispose()
        logger.info("✅ Shutdown complete")

    def _load_catalog(self) -> None:
        """Load package categories."""
        categories_path = self._settings.categories_path
        if categories_path is not None and not categories_path.exists():
            logger.warning(f"⚠️ Categories file not found: {categories_path}, using defaults")
            categories_path = None

        catalog = init_catalog(categories_path)
        logger.info(f"✅ Loaded {len(catalog)} package categories ({catalog.source})")

    def _configure_middleware(self, app: FastAPI) -> None:
        """Configure application middleware."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _register_root(self, app: FastAPI) -> None:
        """Register root endpoint."""

        @app.get("/", include_in_schema=False)
        async def root():
            """Redirect to the API docs."""
            return RedirectResponse(url="/docs")

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

# Create application instance
application = Application()
app = application.app


# ============================================================================
# ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "salon_packages.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
