"""TOML configuration loading."""

import tomllib
from pathlib import Path

from catalog_dump.config.models import CatalogDumpConfig, DatabaseProfile
from catalog_dump.errors import CatalogDumpError

DEFAULT_CONFIG_FILE = "catalog-dump.toml"


class ProfileNotFoundError(CatalogDumpError, LookupError):
    """Raised when a named profile is not defined in the config file."""

    pass


def load_config(config_path: str | Path | None = None) -> CatalogDumpConfig:
    """Load catalog-dump configuration from a TOML file.

    Args:
        config_path: Path to the config file (default: ./catalog-dump.toml)

    Returns:
        CatalogDumpConfig with all profiles

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If a section has the wrong shape
    """
    path = Path(config_path) if config_path is not None else Path.cwd() / DEFAULT_CONFIG_FILE

    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, "rb") as f:
        data = tomllib.load(f)

    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    render_settings = data.get("render", {})
    logging_settings = data.get("logging", {})

    return CatalogDumpConfig(
        profiles=profiles,
        output_file=render_settings.get("output", "predata.sql"),
        log_level=str(logging_settings.get("level", "INFO")).upper(),
    )


def get_profile(config: CatalogDumpConfig, name: str) -> DatabaseProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If *name* is not configured.
    """
    try:
        return config.profiles[name]
    except KeyError:
        available = ", ".join(sorted(config.profiles)) or "none"
        raise ProfileNotFoundError(
            f"Profile '{name}' not found. Available profiles: {available}"
        ) from None
