"""Pydantic models for catalog-dump configuration."""

from typing import Literal

from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class DatabaseProfile(BaseModel):
    """Database connection profile from catalog-dump.toml."""

    url: str
    description: str = ""
    connect_timeout: int = 10


class CatalogDumpConfig(BaseModel):
    """Complete configuration from catalog-dump.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    output_file: str = "predata.sql"
    log_level: LogLevel = "INFO"
