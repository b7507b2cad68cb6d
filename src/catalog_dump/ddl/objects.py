"""CREATE statements for schemas, functions, types and tables.

``print_create_dependent_statements`` walks a sequence that an external
dependency resolver has already put in order (types and functions before
anything that uses them) and writes each object's definition followed by
its metadata.  The sequence is validated up front, so a structural problem
aborts the render before anything is written.

Usage:
    writer = StatementWriter()
    print_create_dependent_statements(
        writer, objects, metadata_map, table_defs, constraints
    )
"""

import logging
import re
from collections.abc import Mapping, Sequence

from catalog_dump.ddl.metadata import escape_string, print_object_metadata
from catalog_dump.ddl.privileges import column_privileges_statement
from catalog_dump.ddl.writer import NO_BLANK_LINE, StatementWriter
from catalog_dump.errors import (
    DependencyOrderError,
    MissingReferencedObjectError,
    UnsupportedVariantError,
)
from catalog_dump.schema.models import (
    ColumnDefinition,
    Constraint,
    Function,
    MetadataMap,
    ObjectMetadata,
    Relation,
    Schema,
    Table,
    TableDefinition,
    Type,
)

logger = logging.getLogger(__name__)

TYPE_KINDS = {"b": "base", "c": "composite", "d": "domain", "e": "enum"}

_VOLATILITY = {"i": " IMMUTABLE", "s": " STABLE", "v": ""}
_ALIGNMENT = {"c": "char", "s": "int2", "i": "int4", "d": "double"}
_STORAGE = {"p": "plain", "e": "external", "m": "main", "x": "extended"}
_EXTERNAL_FORMATS = {"t": "text", "c": "csv", "b": "custom", "a": "avro", "p": "parquet"}
_REPLICA_IDENTITY = {"n": "NOTHING", "f": "FULL"}

_TYPE_MODIFIER = re.compile(r"\(.*\)$")


# ============================================================================
# Schemas
# ============================================================================


def print_create_schema_statements(
    writer: StatementWriter, schemas: Sequence[Schema], metadata_map: MetadataMap
) -> None:
    """Write CREATE SCHEMA plus metadata for each schema.

    ``public`` always exists, so only its metadata is written.  The first
    metadata block follows CREATE SCHEMA after a single blank line.
    """
    for schema in schemas:
        name = schema.to_string()
        if schema.name != "public":
            writer.write_open_statement(f"CREATE SCHEMA {name};")
        print_object_metadata(writer, metadata_map.get(schema.oid, ObjectMetadata()), name, "SCHEMA")


# ============================================================================
# Functions
# ============================================================================


def _dollar_quote(body: str) -> str:
    tag = "$_$"
    while tag in body:
        tag = f"${'_' * (len(tag) - 1)}$"
    return f"{tag}{body}{tag}"


def function_statement(function: Function) -> str:
    """CREATE FUNCTION with the body dollar-quoted on its own line."""
    attributes = _VOLATILITY.get(function.volatility, "")
    if function.is_strict:
        attributes += " STRICT"
    if function.is_security_definer:
        attributes += " SECURITY DEFINER"
    return (
        f"CREATE FUNCTION {function.fqn}({function.arguments}) RETURNS {function.result_type} AS\n"
        f"{_dollar_quote(function.body)}\n"
        f"LANGUAGE {function.language}{attributes}\n"
        f"COST {function.cost:g};"
    )


# ============================================================================
# Types
# ============================================================================


def base_type_statement(type_: Type) -> str:
    attributes = [f"\tINPUT = {type_.input}", f"\tOUTPUT = {type_.output}"]
    if type_.receive:
        attributes.append(f"\tRECEIVE = {type_.receive}")
    if type_.send:
        attributes.append(f"\tSEND = {type_.send}")
    if type_.internal_length > 0:
        attributes.append(f"\tINTERNALLENGTH = {type_.internal_length}")
    if type_.is_passed_by_value:
        attributes.append("\tPASSEDBYVALUE")
    if type_.alignment:
        attributes.append(f"\tALIGNMENT = {_ALIGNMENT.get(type_.alignment, type_.alignment)}")
    if type_.storage:
        attributes.append(f"\tSTORAGE = {_STORAGE.get(type_.storage, type_.storage)}")
    if type_.default_val:
        attributes.append(f"\tDEFAULT = '{escape_string(type_.default_val)}'")
    if type_.element:
        attributes.append(f"\tELEMENT = {type_.element}")
    if type_.delimiter:
        attributes.append(f"\tDELIMITER = '{escape_string(type_.delimiter)}'")
    body = ",\n".join(attributes)
    return f"CREATE TYPE {type_.fqn} (\n{body}\n);"


def composite_type_statement(type_: Type) -> str:
    body = ",\n".join(f"\t{attribute.name} {attribute.type}" for attribute in type_.attributes)
    return f"CREATE TYPE {type_.fqn} AS (\n{body}\n);"


def enum_type_statement(type_: Type) -> str:
    body = ",\n".join(f"\t'{escape_string(label)}'" for label in type_.enum_labels)
    return f"CREATE TYPE {type_.fqn} AS ENUM (\n{body}\n);"


def domain_constraints(type_: Type, constraints: Sequence[Constraint]) -> list[Constraint]:
    """Constraints owned by the domain, in list order."""
    return [constraint for constraint in constraints if constraint.owning_object == type_.fqn]


def domain_statement(type_: Type, constraints: Sequence[Constraint]) -> str:
    """CREATE DOMAIN with its check constraints inlined."""
    statement = f"CREATE DOMAIN {type_.fqn} AS {type_.base_type}"
    if type_.collation:
        statement += f" COLLATE {type_.collation}"
    if type_.default_val:
        statement += f" DEFAULT {type_.default_val}"
    if type_.not_null:
        statement += " NOT NULL"
    for constraint in domain_constraints(type_, constraints):
        statement += f"\n\tCONSTRAINT {constraint.name} {constraint.con_def}"
    return statement + ";"


# ============================================================================
# Tables
# ============================================================================


def column_line(column: ColumnDefinition, foreign: bool = False) -> str:
    line = f"\t{column.name} {column.type}"
    if foreign and column.fdw_options:
        line += f" OPTIONS ({column.fdw_options})"
    if column.collation:
        line += f" COLLATE {column.collation}"
    if column.has_default:
        line += f" DEFAULT {column.default_val}"
    if column.not_null:
        line += " NOT NULL"
    if column.encoding:
        line += f" ENCODING ({column.encoding})"
    return line


def _column_list(definition: TableDefinition) -> str:
    """Parenthesized column list; an empty list renders as ``(\\n)``."""
    lines = [column_line(column, definition.is_foreign) for column in definition.column_defs]
    if not lines:
        return "(\n)"
    return "(\n" + ",\n".join(lines) + "\n)"


def _external_table_statement(relation: Relation, definition: TableDefinition) -> str:
    external = definition.ext_table_def
    direction = "WRITABLE" if external.writable else "READABLE"
    web = "WEB " if external.is_web else ""
    statement = f"CREATE {direction} EXTERNAL {web}TABLE {relation.fqn} {_column_list(definition)}"
    if external.execute_command:
        statement += f" EXECUTE '{escape_string(external.execute_command)}'"
        if external.execute_location:
            statement += f" ON {external.execute_location}"
    elif external.location:
        locations = ",\n".join(f"\t'{escape_string(location)}'" for location in external.location)
        statement += f" LOCATION (\n{locations}\n)"
    format_name = _EXTERNAL_FORMATS.get(external.format_type, external.format_type)
    statement += f"\nFORMAT '{format_name}'"
    if external.format_opts:
        statement += f" ({external.format_opts})"
    if external.options:
        statement += f"\nOPTIONS (\n\t{external.options}\n)"
    statement += f"\nENCODING '{external.encoding}'"
    if external.reject_limit:
        unit = "PERCENT" if external.reject_limit_type == "p" else "ROWS"
        log_errors = "LOG ERRORS " if external.log_errors else ""
        statement += f"\n{log_errors}SEGMENT REJECT LIMIT {external.reject_limit} {unit}"
    if external.writable and definition.dist_policy:
        statement += f" {definition.dist_policy}"
    return statement + ";"


def _foreign_table_statement(relation: Relation, definition: TableDefinition) -> str:
    foreign = definition.foreign_def
    statement = (
        f"CREATE FOREIGN TABLE {relation.fqn} {_column_list(definition)} SERVER {foreign.server}"
    )
    if foreign.options:
        statement += f" OPTIONS ({foreign.options})"
    return statement + ";"


def table_statement(relation: Relation, definition: TableDefinition) -> str:
    """CREATE TABLE (or its external/foreign variant) for one relation.

    Example:
        CREATE TABLE public.relation (
        \tid integer NOT NULL
        ) DISTRIBUTED BY (id);
    """
    if definition.is_external and definition.ext_table_def is not None:
        return _external_table_statement(relation, definition)
    if definition.is_foreign:
        return _foreign_table_statement(relation, definition)

    unlogged = "UNLOGGED " if definition.is_unlogged else ""
    statement = f"CREATE {unlogged}TABLE {relation.fqn}"
    if definition.table_type:
        statement += f" OF {definition.table_type}"
    else:
        statement += f" {_column_list(definition)}"
    if definition.inherits:
        statement += f" INHERITS ({', '.join(definition.inherits)})"
    if definition.storage_opts:
        statement += f" WITH ({definition.storage_opts})"
    if definition.tablespace_name:
        statement += f" TABLESPACE {definition.tablespace_name}"
    if definition.dist_policy:
        statement += f" {definition.dist_policy}"
    if definition.part_def:
        statement += f" {definition.part_def.strip()}"
    return statement + ";"


def post_create_table_statements(
    relation: Relation, definition: TableDefinition, owner: str = ""
) -> list[str]:
    """Column-level settings, replica identity and partition schema moves."""
    table_name = relation.fqn
    alter = f"ALTER {'FOREIGN ' if definition.is_foreign else ''}TABLE ONLY {table_name}"
    statements = []
    for column in definition.column_defs:
        if column.storage_type:
            statements.append(f"{alter} ALTER COLUMN {column.name} SET STORAGE {column.storage_type};")
        if column.stat_target > -1:
            statements.append(f"{alter} ALTER COLUMN {column.name} SET STATISTICS {column.stat_target};")
        if column.options:
            statements.append(f"{alter} ALTER COLUMN {column.name} SET ({column.options});")
        if column.comment:
            statements.append(
                f"COMMENT ON COLUMN {table_name}.{column.name} IS '{escape_string(column.comment)}';"
            )
        privileges = column_privileges_statement(
            column.name, column.privileges, column.kind, table_name, owner
        )
        if privileges:
            statements.append(privileges)
        if column.security_label_provider:
            statements.append(
                f"SECURITY LABEL FOR {column.security_label_provider} ON COLUMN "
                f"{table_name}.{column.name} IS '{escape_string(column.security_label)}';"
            )

    replica_identity = _REPLICA_IDENTITY.get(definition.replica_identity)
    if replica_identity:
        statements.append(f"ALTER TABLE {table_name} REPLICA IDENTITY {replica_identity};")

    for altered in definition.partition_altered_schemas:
        statements.append(
            f"ALTER TABLE {altered.old_schema}.{altered.name} SET SCHEMA {altered.new_schema};"
        )
    return statements


# ============================================================================
# Dependency-ordered rendering
# ============================================================================


def _referenced_type(type_text: str) -> str:
    """Strip array brackets and type modifiers: ``public.t(10)[]`` -> ``public.t``."""
    name = type_text.strip()
    while name.endswith("[]"):
        name = name[:-2].rstrip()
    return _TYPE_MODIFIER.sub("", name).strip()


def check_dependency_order(
    objects: Sequence[Function | Type | Relation],
    table_defs: Mapping[int, TableDefinition],
) -> None:
    """Validate an ordered object sequence before rendering it.

    Raises:
        UnsupportedVariantError: For objects or type kinds that cannot be
            rendered.
        MissingReferencedObjectError: For relations with no definition.
        DependencyOrderError: When a table column, composite attribute,
            domain base type or typed-table type refers to a type placed
            later in the sequence.
    """
    type_positions = {obj.fqn: index for index, obj in enumerate(objects) if isinstance(obj, Type)}

    def check(dependent: str, index: int, type_text: str) -> None:
        referenced = _referenced_type(type_text)
        position = type_positions.get(referenced)
        if position is not None and position > index:
            raise DependencyOrderError(
                f"{dependent} references type {referenced}, which is placed after it"
            )

    for index, obj in enumerate(objects):
        if isinstance(obj, Function):
            continue
        elif isinstance(obj, Type):
            if obj.type not in TYPE_KINDS:
                raise UnsupportedVariantError(f"Unsupported type kind {obj.type!r} for {obj.fqn}")
            if obj.type == "c":
                for attribute in obj.attributes:
                    check(obj.fqn, index, attribute.type)
            elif obj.type == "d":
                check(obj.fqn, index, obj.base_type)
        elif isinstance(obj, Relation):
            definition = table_defs.get(obj.oid)
            if definition is None:
                raise MissingReferencedObjectError(obj.oid, obj.fqn)
            for column in definition.column_defs:
                check(obj.fqn, index, column.type)
            if definition.table_type:
                check(obj.fqn, index, definition.table_type)
        else:
            raise UnsupportedVariantError(f"Cannot render object of type {type(obj).__name__}")


def _print_type(
    writer: StatementWriter,
    type_: Type,
    metadata: ObjectMetadata,
    metadata_map: MetadataMap,
    constraints: Sequence[Constraint],
) -> None:
    if type_.type == "b":
        writer.write_statement(base_type_statement(type_))
        print_object_metadata(writer, metadata, type_.fqn, "TYPE")
    elif type_.type == "c":
        writer.write_statement(composite_type_statement(type_))
        print_object_metadata(writer, metadata, type_.fqn, "TYPE", compact=True)
    elif type_.type == "e":
        writer.write_statement(enum_type_statement(type_))
        print_object_metadata(writer, metadata, type_.fqn, "TYPE")
    elif type_.type == "d":
        writer.write_statement(domain_statement(type_, constraints))
        print_object_metadata(writer, metadata, type_.fqn, "DOMAIN")
        for constraint in domain_constraints(type_, constraints):
            constraint_metadata = metadata_map.get(constraint.oid)
            if constraint_metadata is not None:
                print_object_metadata(
                    writer,
                    ObjectMetadata(comment=constraint_metadata.comment),
                    f"{constraint.name} ON DOMAIN {type_.fqn}",
                    "CONSTRAINT",
                )
    else:
        raise UnsupportedVariantError(f"Unsupported type kind {type_.type!r} for {type_.fqn}")


def _print_table(writer: StatementWriter, table: Table, metadata: ObjectMetadata) -> None:
    relation, definition = table.relation, table.definition
    writer.write_statement(table_statement(relation, definition))
    if definition.part_template_def and not definition.is_external:
        writer.write_statement(f"{definition.part_template_def.strip().rstrip(';')};", NO_BLANK_LINE)
    print_object_metadata(writer, metadata, table.fqn, table.object_type)
    post_create = post_create_table_statements(relation, definition, metadata.owner)
    if post_create:
        writer.write_statement("\n".join(post_create))


def print_create_dependent_statements(
    writer: StatementWriter,
    objects: Sequence[Function | Type | Relation],
    metadata_map: MetadataMap,
    table_defs: Mapping[int, TableDefinition],
    constraints: Sequence[Constraint],
) -> None:
    """Write definitions for functions, types and tables in the given order.

    Args:
        writer: Destination.
        objects: Objects already sorted by the dependency resolver.
        metadata_map: Metadata by OID; objects without an entry get none.
        table_defs: Table definitions by relation OID.
        constraints: All constraints; those owned by a domain are inlined
            into its CREATE DOMAIN statement.

    Raises:
        UnsupportedVariantError, MissingReferencedObjectError,
        DependencyOrderError: See ``check_dependency_order``.  Raised before
            anything is written.
    """
    check_dependency_order(objects, table_defs)
    logger.info("Writing CREATE statements for %d dependent object(s)", len(objects))

    for obj in objects:
        metadata = metadata_map.get(obj.oid, ObjectMetadata())
        if isinstance(obj, Function):
            logger.debug("Writing function %s", obj.fqn)
            writer.write_statement(function_statement(obj))
            print_object_metadata(writer, metadata, f"{obj.fqn}({obj.ident_args})", "FUNCTION")
        elif isinstance(obj, Type):
            logger.debug("Writing %s type %s", TYPE_KINDS.get(obj.type, obj.type), obj.fqn)
            _print_type(writer, obj, metadata, metadata_map, constraints)
        elif isinstance(obj, Relation):
            logger.debug("Writing table %s", obj.fqn)
            _print_table(writer, Table(relation=obj, definition=table_defs[obj.oid]), metadata)
        else:
            raise UnsupportedVariantError(f"Cannot render object of type {type(obj).__name__}")
