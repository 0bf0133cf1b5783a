"""Core app configuration, errors, security primitives and the store connection."""

from authcore.core.config import get_settings, settings

__all__ = ["get_settings", "settings"]
