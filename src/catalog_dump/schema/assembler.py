"""Table fact assembly.

Joins the independently collected, OID-keyed fact maps of a
``CatalogSource`` into one ``Table`` per relation.  Every fact getter is
called exactly once; the join itself is a plain keyed lookup, so a
relation missing from a fact map simply gets that field's zero value.

Usage:
    from catalog_dump.schema.assembler import construct_definitions_for_tables

    with PostgresCatalogSource(database_url) as source:
        relations = source.get_relations()
        tables = construct_definitions_for_tables(source, relations)
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from catalog_dump.schema.models import (
    AlteredPartitionRelation,
    ColumnDefinition,
    ExternalTableDefinition,
    ForeignTableDefinition,
    PartitionLevelInfo,
    Relation,
    Table,
    TableDefinition,
)

logger = logging.getLogger(__name__)


class CatalogSource(Protocol):
    """Supplier of per-OID table facts.

    Every getter returns a read-only mapping keyed by relation OID.
    Implementations: ``PostgresCatalogSource`` (live catalog queries) and
    ``CatalogSnapshot`` (facts loaded from JSON).
    """

    def get_column_definitions(self) -> Mapping[int, list[ColumnDefinition]]:
        """Columns per relation, ordered by attribute number."""
        ...

    def get_distribution_policies(self) -> Mapping[int, str]:
        """Distribution clause text, e.g. ``DISTRIBUTED BY (i)``."""
        ...

    def get_partition_details(self) -> tuple[Mapping[int, str], Mapping[int, str]]:
        """Partition definitions and partition template definitions."""
        ...

    def get_table_storage(self) -> tuple[Mapping[int, str], Mapping[int, str]]:
        """Tablespace names and storage options."""
        ...

    def get_external_table_definitions(self) -> Mapping[int, ExternalTableDefinition]:
        ...

    def get_partition_table_map(self) -> Mapping[int, PartitionLevelInfo]:
        ...

    def get_table_type(self) -> Mapping[int, str]:
        ...

    def get_unlogged_tables(self) -> Mapping[int, bool]:
        ...

    def get_foreign_table_definitions(self) -> Mapping[int, ForeignTableDefinition]:
        ...

    def get_table_inheritance(self, relations: Sequence[Relation]) -> Mapping[int, list[str]]:
        """Parent tables per relation, in inheritance sequence order."""
        ...

    def get_table_replica_identity(self) -> Mapping[int, str]:
        ...

    def get_partition_altered_schema(self) -> Mapping[int, list[AlteredPartitionRelation]]:
        ...


def construct_definitions_for_tables(
    source: CatalogSource, relations: Sequence[Relation]
) -> list[Table]:
    """Assemble one ``Table`` per relation from the source's fact maps.

    Args:
        source: Supplier of the per-OID fact maps.
        relations: Relations to build tables for; output follows this order.

    Returns:
        List of ``Table`` records, one per relation.
    """
    logger.info("Gathering additional table metadata")
    column_defs = source.get_column_definitions()
    distribution_policies = source.get_distribution_policies()
    partition_defs, part_template_defs = source.get_partition_details()
    tablespace_names, storage_options = source.get_table_storage()
    ext_table_defs = source.get_external_table_definitions()
    part_table_map = source.get_partition_table_map()
    table_type_map = source.get_table_type()
    unlogged_table_map = source.get_unlogged_tables()
    foreign_table_defs = source.get_foreign_table_definitions()
    inheritance_map = source.get_table_inheritance(relations)
    replica_identity_map = source.get_table_replica_identity()
    partition_altered_schema_map = source.get_partition_altered_schema()

    logger.debug("Constructing table definition map")
    tables: list[Table] = []
    for relation in relations:
        oid = relation.oid
        ext_table_def = ext_table_defs.get(oid)
        definition = TableDefinition(
            dist_policy=distribution_policies.get(oid, ""),
            part_def=partition_defs.get(oid, ""),
            part_template_def=part_template_defs.get(oid, ""),
            storage_opts=storage_options.get(oid, ""),
            tablespace_name=tablespace_names.get(oid, ""),
            column_defs=sorted(column_defs.get(oid, []), key=lambda column: column.num),
            is_external=ext_table_def is not None,
            ext_table_def=ext_table_def,
            partition_level_info=part_table_map.get(oid, PartitionLevelInfo()),
            table_type=table_type_map.get(oid, ""),
            is_unlogged=unlogged_table_map.get(oid, False),
            foreign_def=foreign_table_defs.get(oid),
            inherits=list(inheritance_map.get(oid) or []),
            replica_identity=replica_identity_map.get(oid, ""),
            partition_altered_schemas=list(partition_altered_schema_map.get(oid) or []),
        )
        tables.append(Table(relation=relation, definition=definition))
    return tables


def table_definition_map(tables: Iterable[Table]) -> dict[int, TableDefinition]:
    """Index table definitions by relation OID."""
    return {table.oid: table.definition for table in tables}


def create_altered_partition_schema_set(tables: Iterable[Table]) -> set[str]:
    """Schemas holding child partitions whose root lives elsewhere."""
    return {
        altered.new_schema
        for table in tables
        for altered in table.definition.partition_altered_schemas
    }
