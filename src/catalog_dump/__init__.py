"""catalog-dump: render database catalog state as restorable DDL.

Takes collected catalog facts (columns, constraints, privileges,
partitioning, dependency order) and writes the ordered, quoted SQL
statements that recreate them.

Usage:
    from catalog_dump import load_snapshot, render_predata, StatementWriter
    from catalog_dump import PostgresCatalogSource, construct_definitions_for_tables
"""

__version__ = "0.1.0"

# Catalog sources
from catalog_dump.catalog.postgres import PostgresCatalogSource
from catalog_dump.catalog.snapshot import CatalogSnapshot, load_snapshot

# Config
from catalog_dump.config.loader import load_config
from catalog_dump.config.models import CatalogDumpConfig, DatabaseProfile

# Rendering
from catalog_dump.ddl.predata import render_predata
from catalog_dump.ddl.writer import StatementWriter

# Errors
from catalog_dump.errors import (
    CatalogDumpError,
    DependencyOrderError,
    InvalidACLError,
    InvalidIdentifierError,
    MissingReferencedObjectError,
    UnsupportedVariantError,
)

# Assembly
from catalog_dump.schema.assembler import construct_definitions_for_tables

__all__ = [
    # Catalog sources
    "PostgresCatalogSource",
    "CatalogSnapshot",
    "load_snapshot",
    # Config
    "load_config",
    "CatalogDumpConfig",
    "DatabaseProfile",
    # Rendering
    "render_predata",
    "StatementWriter",
    # Errors
    "CatalogDumpError",
    "DependencyOrderError",
    "InvalidACLError",
    "InvalidIdentifierError",
    "MissingReferencedObjectError",
    "UnsupportedVariantError",
    # Assembly
    "construct_definitions_for_tables",
]
