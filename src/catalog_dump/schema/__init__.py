"""Catalog records, identifier handling and table fact assembly.

Usage:
    from catalog_dump.schema import Relation, Table, quote_ident
    from catalog_dump.schema import construct_definitions_for_tables
"""

from catalog_dump.schema.assembler import (
    CatalogSource,
    construct_definitions_for_tables,
    create_altered_partition_schema_set,
    table_definition_map,
)
from catalog_dump.schema.identifiers import get_unique_schemas, quote_ident, unquote_ident
from catalog_dump.schema.models import (
    ACL,
    AlteredPartitionRelation,
    ColumnDefinition,
    CompositeTypeAttribute,
    Constraint,
    ExternalTableDefinition,
    ForeignTableDefinition,
    Function,
    MetadataMap,
    ObjectMetadata,
    PartitionLevelInfo,
    Relation,
    Schema,
    Sortable,
    Table,
    TableDefinition,
    Type,
)

__all__ = [
    "CatalogSource",
    "construct_definitions_for_tables",
    "create_altered_partition_schema_set",
    "table_definition_map",
    "get_unique_schemas",
    "quote_ident",
    "unquote_ident",
    "ACL",
    "AlteredPartitionRelation",
    "ColumnDefinition",
    "CompositeTypeAttribute",
    "Constraint",
    "ExternalTableDefinition",
    "ForeignTableDefinition",
    "Function",
    "MetadataMap",
    "ObjectMetadata",
    "PartitionLevelInfo",
    "Relation",
    "Schema",
    "Sortable",
    "Table",
    "TableDefinition",
    "Type",
]
