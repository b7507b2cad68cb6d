"""Catalog snapshot: a complete set of collected facts held in memory.

A snapshot is what a fact-collection run produces and what the renderers
consume.  It serializes to JSON (OID keys become strings and are coerced
back on load) and implements the ``CatalogSource`` protocol, so the table
fact assembler can run against it exactly as against a live catalog.

Usage:
    from catalog_dump.catalog.snapshot import load_snapshot

    snapshot = load_snapshot("catalog.json")
    tables = construct_definitions_for_tables(snapshot, snapshot.relations)
"""

from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field

from catalog_dump.schema.models import (
    AlteredPartitionRelation,
    ColumnDefinition,
    Constraint,
    ExternalTableDefinition,
    ForeignTableDefinition,
    ObjectMetadata,
    PartitionLevelInfo,
    Relation,
    Schema,
    Sortable,
)


class CatalogSnapshot(BaseModel):
    """Collected catalog facts for one database.

    ``objects`` must already be in dependency order.  Every ``dict`` field
    is keyed by OID.
    """

    schemas: list[Schema] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)
    objects: list[Sortable] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    metadata: dict[int, ObjectMetadata] = Field(default_factory=dict)

    column_defs: dict[int, list[ColumnDefinition]] = Field(default_factory=dict)
    distribution_policies: dict[int, str] = Field(default_factory=dict)
    partition_defs: dict[int, str] = Field(default_factory=dict)
    partition_templates: dict[int, str] = Field(default_factory=dict)
    tablespaces: dict[int, str] = Field(default_factory=dict)
    storage_options: dict[int, str] = Field(default_factory=dict)
    external_table_defs: dict[int, ExternalTableDefinition] = Field(default_factory=dict)
    partition_levels: dict[int, PartitionLevelInfo] = Field(default_factory=dict)
    table_types: dict[int, str] = Field(default_factory=dict)
    unlogged_tables: dict[int, bool] = Field(default_factory=dict)
    foreign_table_defs: dict[int, ForeignTableDefinition] = Field(default_factory=dict)
    inheritance: dict[int, list[str]] = Field(default_factory=dict)
    replica_identities: dict[int, str] = Field(default_factory=dict)
    partition_altered_schemas: dict[int, list[AlteredPartitionRelation]] = Field(
        default_factory=dict
    )

    # CatalogSource protocol

    def get_column_definitions(self) -> dict[int, list[ColumnDefinition]]:
        return self.column_defs

    def get_distribution_policies(self) -> dict[int, str]:
        return self.distribution_policies

    def get_partition_details(self) -> tuple[dict[int, str], dict[int, str]]:
        return self.partition_defs, self.partition_templates

    def get_table_storage(self) -> tuple[dict[int, str], dict[int, str]]:
        return self.tablespaces, self.storage_options

    def get_external_table_definitions(self) -> dict[int, ExternalTableDefinition]:
        return self.external_table_defs

    def get_partition_table_map(self) -> dict[int, PartitionLevelInfo]:
        return self.partition_levels

    def get_table_type(self) -> dict[int, str]:
        return self.table_types

    def get_unlogged_tables(self) -> dict[int, bool]:
        return self.unlogged_tables

    def get_foreign_table_definitions(self) -> dict[int, ForeignTableDefinition]:
        return self.foreign_table_defs

    def get_table_inheritance(self, relations: Sequence[Relation]) -> dict[int, list[str]]:
        oids = {relation.oid for relation in relations}
        return {oid: parents for oid, parents in self.inheritance.items() if oid in oids}

    def get_table_replica_identity(self) -> dict[int, str]:
        return self.replica_identities

    def get_partition_altered_schema(self) -> dict[int, list[AlteredPartitionRelation]]:
        return self.partition_altered_schemas


def load_snapshot(snapshot_path: str | Path) -> CatalogSnapshot:
    """Load a snapshot from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the content does not match the model.
    """
    path = Path(snapshot_path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog snapshot not found: {path}")
    return CatalogSnapshot.model_validate_json(path.read_text())


def save_snapshot(snapshot: CatalogSnapshot, snapshot_path: str | Path) -> Path:
    """Write a snapshot as indented JSON and return the path."""
    path = Path(snapshot_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(snapshot.model_dump_json(indent=2))
    return path
