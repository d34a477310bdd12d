"""
promrdf configuration.

Pydantic-based settings read from PROMRDF_* environment variables and
an optional .env file. CLI flags override individual fields.
"""

from promrdf.config.settings import Settings, default_store_path, get_settings

__all__ = [
    "Settings",
    "default_store_path",
    "get_settings",
]
