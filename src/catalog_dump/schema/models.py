"""Pydantic models for collected catalog facts.

This module contains the read-only records the renderers consume:
- Naming: Schema, Relation
- Table facts: ColumnDefinition, ExternalTableDefinition,
  ForeignTableDefinition, PartitionLevelInfo, AlteredPartitionRelation,
  TableDefinition, Table
- Constraints and metadata: Constraint, ACL, ObjectMetadata
- Dependency-ordered objects: Function, Type (and Relation), combined in
  the ``Sortable`` discriminated union

Relation, function and type names are stored already quoted, the way the
catalog's ``quote_ident()`` returns them.  ``Schema.name`` is the raw name.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from catalog_dump.schema.identifiers import quote_ident, unquote_ident


class CatalogRecord(BaseModel):
    """Base for all fact records; instances are immutable once built."""

    model_config = ConfigDict(frozen=True)


# ============================================================================
# Naming Models
# ============================================================================


class Schema(CatalogRecord):
    """A namespace.

    Example:
        >>> Schema(oid=0, name="schema,name").to_string()
        '"schema,name"'
        >>> Schema.from_string('"schema,name"').name
        'schema,name'
    """

    oid: int = 0
    name: str

    def to_string(self) -> str:
        """Render the schema name as a SQL identifier."""
        return quote_ident(self.name)

    @classmethod
    def from_string(cls, identifier: str) -> "Schema":
        """Parse a bare or quoted identifier into a Schema with OID 0."""
        return cls(oid=0, name=unquote_ident(identifier))


class Relation(CatalogRecord):
    """Minimal identity of a table, as placed in the dependency order."""

    object_kind: Literal["relation"] = "relation"
    schema_oid: int = 0
    oid: int
    schema_name: str
    name: str

    @property
    def fqn(self) -> str:
        """Schema-qualified name."""
        return f"{self.schema_name}.{self.name}"


# ============================================================================
# Table Fact Models
# ============================================================================


class ColumnDefinition(CatalogRecord):
    """Per-attribute facts for one column of a relation."""

    oid: int = 0  # attrelid
    num: int = 0  # attnum
    name: str
    not_null: bool = False
    has_default: bool = False
    type: str
    encoding: str = ""
    stat_target: int = -1
    storage_type: str = ""  # EXTERNAL, MAIN, PLAIN, EXTENDED or "" for the type default
    default_val: str = ""
    comment: str = ""
    privileges: str | None = None  # one raw ACL entry
    kind: str = ""  # "Empty" when every column privilege was revoked
    options: str = ""
    fdw_options: str = ""
    collation: str = ""
    security_label_provider: str = ""
    security_label: str = ""


class ExternalTableDefinition(CatalogRecord):
    """Location, format and error handling of an external table."""

    oid: int = 0
    location: list[str] = Field(default_factory=list)
    execute_command: str = ""
    execute_location: str = ""
    format_type: str = "t"  # t=text, c=csv, b=custom
    format_opts: str = ""
    options: str = ""
    encoding: str = "UTF8"
    writable: bool = False
    reject_limit: int = 0
    reject_limit_type: str = ""  # r=rows, p=percent
    log_errors: bool = False

    @property
    def is_web(self) -> bool:
        """Web tables read from a command or an http location."""
        if self.execute_command:
            return True
        return any(location.startswith("http") for location in self.location)


class ForeignTableDefinition(CatalogRecord):
    """Server and options of a foreign table."""

    oid: int = 0
    options: str = ""
    server: str = ""


class PartitionLevelInfo(CatalogRecord):
    """Position of a table in a partition hierarchy.

    ``level`` is "p" for a parent, "l" for a leaf, "i" for an intermediate
    table and "" for an unpartitioned table.
    """

    oid: int = 0
    level: str = ""
    root_name: str = ""


class AlteredPartitionRelation(CatalogRecord):
    """A child partition living in a different schema than its root."""

    old_schema: str
    new_schema: str
    name: str


class TableDefinition(CatalogRecord):
    """Everything about a relation beyond its identity."""

    dist_policy: str = ""
    part_def: str = ""
    part_template_def: str = ""
    storage_opts: str = ""
    tablespace_name: str = ""
    column_defs: list[ColumnDefinition] = Field(default_factory=list)
    is_external: bool = False
    ext_table_def: ExternalTableDefinition | None = None
    partition_level_info: PartitionLevelInfo = Field(default_factory=PartitionLevelInfo)
    table_type: str = ""  # typed tables: CREATE TABLE ... OF <table_type>
    is_unlogged: bool = False
    foreign_def: ForeignTableDefinition | None = None
    inherits: list[str] = Field(default_factory=list)
    replica_identity: str = ""
    partition_altered_schemas: list[AlteredPartitionRelation] = Field(default_factory=list)

    @property
    def is_foreign(self) -> bool:
        return self.foreign_def is not None


class Table(CatalogRecord):
    """A relation joined with its definition.

    Example:
        >>> table = Table(
        ...     relation=Relation(oid=1, schema_name="public", name="t"),
        ...     definition=TableDefinition(is_external=True),
        ... )
        >>> table.skip_data_backup()
        True
    """

    relation: Relation
    definition: TableDefinition

    @property
    def oid(self) -> int:
        return self.relation.oid

    @property
    def fqn(self) -> str:
        return self.relation.fqn

    @property
    def object_type(self) -> str:
        """Object type keyword used in COMMENT/ALTER statements."""
        return "FOREIGN TABLE" if self.definition.is_foreign else "TABLE"

    def skip_data_backup(self) -> bool:
        """External and foreign tables carry no row data of their own."""
        return self.definition.is_external or self.definition.is_foreign


# ============================================================================
# Constraint and Metadata Models
# ============================================================================


class Constraint(CatalogRecord):
    """A table or domain constraint with its rendered clause."""

    oid: int = 0
    name: str
    con_type: Literal["u", "p", "f", "c"] = "c"
    con_def: str
    owning_object: str
    is_domain_constraint: bool = False
    is_partition_parent: bool = False


class ACL(CatalogRecord):
    """Privileges one grantee holds on one object.

    Each privilege has a plain flag and a ``_with_grant`` flag; a privilege
    held with grant option sets only the latter.  An empty grantee is PUBLIC.
    """

    grantee: str = ""
    select: bool = False
    select_with_grant: bool = False
    insert: bool = False
    insert_with_grant: bool = False
    update: bool = False
    update_with_grant: bool = False
    delete: bool = False
    delete_with_grant: bool = False
    truncate: bool = False
    truncate_with_grant: bool = False
    references: bool = False
    references_with_grant: bool = False
    trigger: bool = False
    trigger_with_grant: bool = False
    execute: bool = False
    execute_with_grant: bool = False
    usage: bool = False
    usage_with_grant: bool = False
    create: bool = False
    create_with_grant: bool = False
    temporary: bool = False
    temporary_with_grant: bool = False
    connect: bool = False
    connect_with_grant: bool = False


class ObjectMetadata(CatalogRecord):
    """Owner, comment, privileges and security label of one object."""

    owner: str = ""
    comment: str = ""
    privileges: list[ACL] = Field(default_factory=list)
    security_label_provider: str = ""
    security_label: str = ""


MetadataMap = dict[int, ObjectMetadata]


# ============================================================================
# Dependency-Ordered Object Models
# ============================================================================


class Function(CatalogRecord):
    """A user-defined function."""

    object_kind: Literal["function"] = "function"
    oid: int
    schema_name: str
    name: str
    body: str = ""
    arguments: str = ""
    ident_args: str = ""
    result_type: str = ""
    language: str = "sql"
    volatility: str = "v"  # i=immutable, s=stable, v=volatile
    is_strict: bool = False
    is_security_definer: bool = False
    cost: float = 0

    @property
    def fqn(self) -> str:
        return f"{self.schema_name}.{self.name}"


class CompositeTypeAttribute(CatalogRecord):
    """One attribute of a composite type."""

    name: str
    type: str


class Type(CatalogRecord):
    """A user-defined type.

    ``type`` selects the kind: "b" base, "c" composite, "d" domain, "e" enum.
    Only the fields of the selected kind are used when rendering.
    """

    object_kind: Literal["type"] = "type"
    oid: int
    schema_name: str
    name: str
    type: str
    # base
    input: str = ""
    output: str = ""
    receive: str = ""
    send: str = ""
    internal_length: int = -1
    is_passed_by_value: bool = False
    alignment: str = ""
    storage: str = ""
    default_val: str = ""
    element: str = ""
    delimiter: str = ""
    # composite
    attributes: list[CompositeTypeAttribute] = Field(default_factory=list)
    # domain
    base_type: str = ""
    not_null: bool = False
    collation: str = ""
    # enum
    enum_labels: list[str] = Field(default_factory=list)

    @property
    def fqn(self) -> str:
        return f"{self.schema_name}.{self.name}"


Sortable = Annotated[
    Union[Function, Type, Relation],
    Field(discriminator="object_kind"),
]
