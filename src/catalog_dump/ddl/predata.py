"""Predata rendering: everything a restore needs before table data is loaded.

Runs the whole synthesis pipeline over a catalog snapshot: table facts
are assembled, then schemas, dependency-ordered objects and finally
constraints are written to the same writer.

Usage:
    snapshot = load_snapshot("catalog.json")
    writer = StatementWriter(open("predata.sql", "w"))
    render_predata(snapshot, writer)
    writer.close()
"""

import logging
from collections.abc import Sequence

from catalog_dump.catalog.snapshot import CatalogSnapshot
from catalog_dump.ddl.constraints import print_constraint_statements
from catalog_dump.ddl.objects import (
    check_dependency_order,
    print_create_dependent_statements,
    print_create_schema_statements,
)
from catalog_dump.ddl.writer import StatementWriter
from catalog_dump.schema.assembler import (
    construct_definitions_for_tables,
    create_altered_partition_schema_set,
    table_definition_map,
)
from catalog_dump.schema.identifiers import get_unique_schemas
from catalog_dump.schema.models import Constraint, Function, Schema, Sortable, Table, Type

logger = logging.getLogger(__name__)


def schemas_to_create(snapshot: CatalogSnapshot, tables: list[Table]) -> list[Schema]:
    """Schemas owning a relation, function, type or moved partition, sorted by name."""
    selected = {schema.oid: schema for schema in get_unique_schemas(snapshot.schemas, snapshot.relations)}

    referenced_names = {
        obj.schema_name for obj in snapshot.objects if isinstance(obj, (Function, Type))
    }
    referenced_names |= create_altered_partition_schema_set(tables)
    for schema in snapshot.schemas:
        if schema.to_string() in referenced_names:
            selected.setdefault(schema.oid, schema)

    return sorted(selected.values(), key=lambda schema: schema.name)


def table_constraints(objects: Sequence[Sortable], constraints: Sequence[Constraint]) -> list[Constraint]:
    """Constraints left once those inlined into a CREATE DOMAIN are removed."""
    domains = {obj.fqn for obj in objects if isinstance(obj, Type) and obj.type == "d"}
    return [constraint for constraint in constraints if constraint.owning_object not in domains]


def render_predata(snapshot: CatalogSnapshot, writer: StatementWriter) -> list[Table]:
    """Write schemas, dependent objects and constraints for *snapshot*.

    Args:
        snapshot: Collected catalog facts; ``objects`` in dependency order.
        writer: Destination.

    Returns:
        The assembled tables, in relation order.

    Raises:
        MissingReferencedObjectError, UnsupportedVariantError,
        DependencyOrderError: Raised before anything is written.
    """
    tables = construct_definitions_for_tables(snapshot, snapshot.relations)
    table_defs = table_definition_map(tables)
    check_dependency_order(snapshot.objects, table_defs)

    schemas = schemas_to_create(snapshot, tables)
    logger.info("Writing CREATE SCHEMA statements for %d schema(s)", len(schemas))
    print_create_schema_statements(writer, schemas, snapshot.metadata)

    print_create_dependent_statements(
        writer, snapshot.objects, snapshot.metadata, table_defs, snapshot.constraints
    )

    logger.info("Writing constraint statements")
    print_constraint_statements(
        writer, table_constraints(snapshot.objects, snapshot.constraints), snapshot.metadata
    )
    return tables
