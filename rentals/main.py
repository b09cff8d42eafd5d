from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rentals import __version__
from rentals.api.v1.router import router as api_v1_router
from rentals.config.logging import setup_logging
from rentals.config.settings import settings
from rentals.core.middleware import register_middlewares
from rentals.db.init_db import init_db
from rentals.db.session import SessionLocal
from rentals.services.container import ServiceContainer


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.
    - Stores the service container on app.state; one is built from the
      default session factory when none is given.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # request ID, timing, exception handlers
    register_middlewares(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    app.state.container = container or ServiceContainer.build(SessionLocal)

    @app.get("/health", tags=["Health"])
    def health() -> dict:
        return {"status": "ok", "version": __version__, "environment": settings.ENVIRONMENT}

    @app.on_event("startup")
    async def on_startup() -> None:
        setup_logging()
        if not settings.is_production():
            # schema in production is managed out of band
            init_db()

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        app.state.container.shutdown()

    return app


app = create_app()
