"""API module for the Media Hub ratings service."""

from .routes import create_router

__all__ = [
    "create_router",
]
