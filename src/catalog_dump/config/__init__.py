"""Configuration: TOML loading and config models.

Usage:
    >>> from catalog_dump.config import load_config, CatalogDumpConfig, DatabaseProfile
"""

from catalog_dump.config.loader import ProfileNotFoundError, get_profile, load_config
from catalog_dump.config.models import CatalogDumpConfig, DatabaseProfile

__all__ = [
    "load_config",
    "get_profile",
    "ProfileNotFoundError",
    "CatalogDumpConfig",
    "DatabaseProfile",
]
