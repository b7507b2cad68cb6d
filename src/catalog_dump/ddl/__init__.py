"""DDL rendering: statements for schemas, objects, constraints and metadata.

Usage:
    from catalog_dump.ddl import StatementWriter, render_predata
    from catalog_dump.ddl import print_create_dependent_statements
"""

from catalog_dump.ddl.constraints import print_constraint_statements
from catalog_dump.ddl.metadata import print_object_metadata
from catalog_dump.ddl.objects import (
    check_dependency_order,
    print_create_dependent_statements,
    print_create_schema_statements,
)
from catalog_dump.ddl.predata import render_predata
from catalog_dump.ddl.privileges import parse_acl, privileges_statement
from catalog_dump.ddl.writer import StatementWriter

__all__ = [
    "StatementWriter",
    "render_predata",
    "print_create_schema_statements",
    "print_create_dependent_statements",
    "check_dependency_order",
    "print_constraint_statements",
    "print_object_metadata",
    "parse_acl",
    "privileges_statement",
]
