"""Configuration module for the Media Hub ratings service."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
