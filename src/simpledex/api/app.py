"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from simpledex import __version__
from simpledex.client import DexClient
from simpledex.config import get_settings
from simpledex.gateway.factory import create_gateway


def create_app(client: Optional[DexClient] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        client: Pre-built client (tests); built from settings when omitted
    """
    settings = client.settings if client else get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        if getattr(app.state, "client", None) is None:
            app.state.client = DexClient(settings, wallet=create_gateway(settings))
        yield
        # Shutdown
        await app.state.client.aclose()

    app = FastAPI(
        title="simpledex API",
        description="Swap client for a constant-product AMM pair",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.client = client

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from simpledex.api import routes

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        """Basic health check."""
        return {"status": "healthy", "service": "simpledex", "dry_run": settings.dry_run}

    app.include_router(routes.router)

    return app
