"""Catalog sources: a live Postgres catalog and in-memory snapshots."""

from catalog_dump.catalog.postgres import PostgresCatalogSource
from catalog_dump.catalog.snapshot import CatalogSnapshot, load_snapshot, save_snapshot

__all__ = ["PostgresCatalogSource", "CatalogSnapshot", "load_snapshot", "save_snapshot"]
