"""Identifier quoting and parsing.

``quote_ident`` leaves lower-case names made of letters, digits and
underscores (not starting with a digit) bare; anything else is
double-quoted, with embedded double quotes doubled.  ``unquote_ident``
accepts any bare name free of ``.`` and ``"``, so ``quote_ident`` output
always parses back to the same name and re-quotes identically.

Usage:
    >>> quote_ident("schema,name")
    '"schema,name"'
    >>> unquote_ident('"schema,name"')
    'schema,name'
"""

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from catalog_dump.errors import InvalidIdentifierError

if TYPE_CHECKING:
    from catalog_dump.schema.models import Relation, Schema


UNQUOTED_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")
QUOTED_IDENTIFIER = re.compile(r'^"((?:[^"]|"")+)"$')
RESERVED_BARE_CHARACTERS = (".", '"')


def quote_ident(name: str) -> str:
    """Return *name* as it must appear in SQL text."""
    if UNQUOTED_IDENTIFIER.match(name):
        return name
    escaped = name.replace('"', '""')
    return f'"{escaped}"'


def unquote_ident(identifier: str) -> str:
    """Parse a bare or quoted identifier back into the raw name.

    Bare input is taken as is unless it contains a ``.`` (reserved for
    qualified names) or a stray double quote.

    Raises:
        InvalidIdentifierError: If *identifier* is empty, badly quoted or
            contains an unquoted separator (e.g. ``schema.name``).
    """
    match = QUOTED_IDENTIFIER.match(identifier)
    if match:
        return match.group(1).replace('""', '"')
    if identifier and not any(char in identifier for char in RESERVED_BARE_CHARACTERS):
        return identifier
    raise InvalidIdentifierError(identifier)


def get_unique_schemas(
    schemas: Iterable["Schema"], relations: Iterable["Relation"]
) -> list["Schema"]:
    """Return the schemas owning at least one of *relations*, sorted by name.

    Schemas are matched by OID.  An empty relation set gives an empty list.
    """
    schema_oids = {relation.schema_oid for relation in relations}
    unique = [schema for schema in schemas if schema.oid in schema_oids]
    return sorted(unique, key=lambda schema: schema.name)
