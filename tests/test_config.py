"""Tests for TOML configuration loading."""

import pytest
from pydantic import ValidationError

from catalog_dump.config import (
    CatalogDumpConfig,
    DatabaseProfile,
    ProfileNotFoundError,
    get_profile,
    load_config,
)

CONFIG_TOML = """
[profiles.dev]
url = "postgresql://localhost/postgres"
description = "Local cluster"

[profiles.prod]
url = "postgresql://prod/warehouse"
connect_timeout = 30

[render]
output = "out/predata.sql"

[logging]
level = "DEBUG"
"""


class TestLoadConfig:
    """load_config() parses profiles and settings."""

    def test_full_config(self, tmp_path) -> None:
        """Profiles, render and logging sections are read."""
        path = tmp_path / "catalog-dump.toml"
        path.write_text(CONFIG_TOML)
        config = load_config(path)
        assert config.profiles["dev"] == DatabaseProfile(
            url="postgresql://localhost/postgres", description="Local cluster"
        )
        assert config.profiles["prod"].connect_timeout == 30
        assert config.output_file == "out/predata.sql"
        assert config.log_level == "DEBUG"

    def test_defaults(self, tmp_path) -> None:
        """Missing sections fall back to defaults."""
        path = tmp_path / "catalog-dump.toml"
        path.write_text("")
        assert load_config(path) == CatalogDumpConfig()

    def test_missing_file(self, tmp_path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Config not found"):
            load_config(tmp_path / "missing.toml")

    def test_default_path_is_cwd(self, tmp_path, monkeypatch) -> None:
        """Without a path, catalog-dump.toml in the working directory is used."""
        (tmp_path / "catalog-dump.toml").write_text(CONFIG_TOML)
        monkeypatch.chdir(tmp_path)
        assert "dev" in load_config().profiles

    def test_level_is_case_insensitive(self, tmp_path) -> None:
        """A lower-case logging level is accepted."""
        path = tmp_path / "catalog-dump.toml"
        path.write_text('[logging]\nlevel = "warning"\n')
        assert load_config(path).log_level == "WARNING"

    def test_invalid_level(self, tmp_path) -> None:
        """An unknown logging level fails validation."""
        path = tmp_path / "catalog-dump.toml"
        path.write_text('[logging]\nlevel = "LOUD"\n')
        with pytest.raises(ValidationError):
            load_config(path)


class TestGetProfile:
    """get_profile() looks profiles up by name."""

    def test_found(self) -> None:
        """A configured profile is returned."""
        profile = DatabaseProfile(url="postgresql://localhost/postgres")
        config = CatalogDumpConfig(profiles={"dev": profile})
        assert get_profile(config, "dev") is profile

    def test_not_found(self) -> None:
        """An unknown profile lists the available ones."""
        config = CatalogDumpConfig(profiles={"dev": DatabaseProfile(url="x")})
        with pytest.raises(ProfileNotFoundError, match="Available profiles: dev"):
            get_profile(config, "prod")
