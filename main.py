"""
Media Hub Ratings Server - Main Entry Point

This is the main application file that initializes the rating store,
the catalog and the API, and starts the server.

Usage:
    python main.py

Or with uvicorn directly:
    uvicorn main:app --host 127.0.0.1 --port 8000 --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
import uvicorn

# Configure logging first
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("mediahub")

# Import our modules
from config.settings import Settings, get_settings
from services.rating_store import RatingStore, create_rating_store
from services.rating_service import RatingService
from services.catalog_service import CatalogService
from api.routes import create_router


# =============================================================================
# Application State
# =============================================================================

class AppState:
    """Holds all application services and state."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.store: RatingStore = create_rating_store(settings)
        self.ratings = RatingService(self.store)
        self.catalog = CatalogService(settings.media_dir)


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
    """
    settings = settings or get_settings()
    state = AppState(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info("=" * 60)
        logger.info("Starting Media Hub ratings server...")
        logger.info("=" * 60)

        await state.store.initialize()
        logger.info(f"Rating store ready ({state.store.name})")

        logger.info(f"Server running at http://{settings.server_host}:{settings.server_port}")

        yield

        logger.info("Shutting down...")
        await state.store.close()

    app = FastAPI(
        title="Media Hub Ratings",
        description="Shared like/dislike counters and song catalog for the media hub",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.hub = state

    app.include_router(create_router(
        rating_service=state.ratings,
        catalog_service=state.catalog,
    ))

    # Serve audio and cover files referenced by the catalog
    media_dir = Path(settings.media_dir)
    if media_dir.is_dir():
        app.mount("/media", StaticFiles(directory=media_dir), name="media")
    else:
        logger.warning(f"Media directory {media_dir} not found; /media not mounted")

    return app


app = create_app()


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """Main entry point."""
    settings = get_settings()

    uvicorn.run(
        "main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug",
    )


if __name__ == "__main__":
    main()
