"""Privilege parsing and GRANT/REVOKE rendering.

Parses catalog ACL entries of the form ``grantee=privchars/grantor`` into
``ACL`` records and renders ``ObjectMetadata.privileges`` back into a
REVOKE/GRANT block.

Usage:
    >>> acl = parse_acl("testrole=ar*/gpadmin")
    >>> acl.insert, acl.select_with_grant
    (True, True)
    >>> parse_acl("") is None
    True
"""

import re
from collections.abc import Iterable

from catalog_dump.errors import InvalidACLError
from catalog_dump.schema.identifiers import quote_ident
from catalog_dump.schema.models import ACL, ObjectMetadata

ACL_ENTRY = re.compile(r"^(.*)=([a-zA-Z*]*)/(.*)$", re.DOTALL)
QUOTED_GRANTEE = re.compile(r'^"((?:[^"]|"")*)"$')

GRANT_OPTION_MARKER = "*"

# (ACL field, privilege letter, GRANT keyword) in canonical keyword order
PRIVILEGES: list[tuple[str, str, str]] = [
    ("select", "r", "SELECT"),
    ("insert", "a", "INSERT"),
    ("update", "w", "UPDATE"),
    ("delete", "d", "DELETE"),
    ("truncate", "D", "TRUNCATE"),
    ("references", "x", "REFERENCES"),
    ("trigger", "t", "TRIGGER"),
    ("execute", "X", "EXECUTE"),
    ("usage", "U", "USAGE"),
    ("create", "C", "CREATE"),
    ("temporary", "T", "TEMPORARY"),
    ("connect", "c", "CONNECT"),
]

_FIELD_FOR_LETTER = {letter: field for field, letter, _ in PRIVILEGES}

_TABLE_PRIVILEGES = ("select", "insert", "update", "delete", "truncate", "references", "trigger")

# Privileges making up "ALL" for each object type
FULL_PRIVILEGES: dict[str, tuple[str, ...]] = {
    "TABLE": _TABLE_PRIVILEGES,
    "VIEW": _TABLE_PRIVILEGES,
    "MATERIALIZED VIEW": _TABLE_PRIVILEGES,
    "FOREIGN TABLE": _TABLE_PRIVILEGES,
    "SEQUENCE": ("select", "update", "usage"),
    "FUNCTION": ("execute",),
    "TYPE": ("usage",),
    "DOMAIN": ("usage",),
    "LANGUAGE": ("usage",),
    "FOREIGN DATA WRAPPER": ("usage",),
    "FOREIGN SERVER": ("usage",),
    "SCHEMA": ("usage", "create"),
    "DATABASE": ("create", "temporary", "connect"),
    "TABLESPACE": ("create",),
    "PROTOCOL": ("select", "insert"),
}
_ALL_PRIVILEGES = tuple(field for field, _, _ in PRIVILEGES)

# GRANT ... ON TABLE also covers these
_GRANT_TABLE_ALIASES = {"VIEW", "MATERIALIZED VIEW", "FOREIGN TABLE"}


def _parse_grantee(raw: str, grantee: str) -> str:
    if grantee.startswith('"'):
        match = QUOTED_GRANTEE.match(grantee)
        if match is None:
            raise InvalidACLError(raw, f"badly quoted grantee {grantee}")
        return match.group(1).replace('""', '"')
    if '"' in grantee:
        raise InvalidACLError(raw, f"unexpected quote in grantee {grantee}")
    return grantee


def parse_acl(acl_str: str | None) -> ACL | None:
    """Parse one ACL entry.

    A privilege letter sets the plain flag; when followed by ``*`` the
    ``_with_grant`` flag is set instead.

    Args:
        acl_str: Entry such as ``testrole=arwdDxt/gpadmin``.  An empty
            grantee (``=r/gpadmin``) is PUBLIC.

    Returns:
        The parsed ``ACL``, or ``None`` for an empty (default privileges)
        entry.

    Raises:
        InvalidACLError: If the entry is malformed.
    """
    if not acl_str:
        return None

    match = ACL_ENTRY.match(acl_str)
    if match is None:
        raise InvalidACLError(acl_str, "expected grantee=privileges/grantor")
    grantee = _parse_grantee(acl_str, match.group(1))
    privilege_chars = match.group(2)

    flags: dict[str, bool] = {}
    i = 0
    while i < len(privilege_chars):
        letter = privilege_chars[i]
        field = _FIELD_FOR_LETTER.get(letter)
        if field is None:
            if letter == GRANT_OPTION_MARKER:
                raise InvalidACLError(acl_str, "grant option marker without a privilege")
            raise InvalidACLError(acl_str, f"unknown privilege {letter!r}")
        if privilege_chars[i + 1 : i + 2] == GRANT_OPTION_MARKER:
            flags[f"{field}_with_grant"] = True
            i += 2
        else:
            flags[field] = True
            i += 1

    return ACL(grantee=grantee, **flags)


def parse_acls(entries: Iterable[str | None]) -> list[ACL]:
    """Parse several ACL entries, dropping default (empty) ones."""
    acls = []
    for entry in entries:
        acl = parse_acl(entry)
        if acl is not None:
            acls.append(acl)
    return acls


def _held(acl: ACL, field: str) -> bool:
    return getattr(acl, field) or getattr(acl, f"{field}_with_grant")


def held_privileges(acl: ACL) -> list[str]:
    """Fields of the privileges *acl* holds, in canonical order."""
    return [field for field in _ALL_PRIVILEGES if _held(acl, field)]


def has_all_privileges(acl: ACL, object_type: str) -> bool:
    """True if *acl* holds every privilege defined for *object_type*."""
    full_set = FULL_PRIVILEGES.get(object_type, _ALL_PRIVILEGES)
    return all(_held(acl, field) for field in full_set)


def _grantee_name(acl: ACL) -> str:
    return quote_ident(acl.grantee) if acl.grantee else "PUBLIC"


def _grant_keyword_type(object_type: str) -> str:
    return "TABLE" if object_type in _GRANT_TABLE_ALIASES else object_type


def _privilege_keywords(held: list[str]) -> str:
    return ",".join(keyword for field, _, keyword in PRIVILEGES if field in held)


def _grant_option_suffix(acl: ACL, held: list[str]) -> str:
    """One decision per grantee: every held privilege must carry grant option."""
    if all(getattr(acl, f"{field}_with_grant") for field in held):
        return " WITH GRANT OPTION"
    return ""


def _owner_needs_revoke(obj: ObjectMetadata, object_type: str) -> bool:
    """The owner holds everything by default; revoke only if it was reduced."""
    if not obj.owner:
        return False
    for acl in obj.privileges:
        if obj.owner in (acl.grantee, quote_ident(acl.grantee)) and not has_all_privileges(
            acl, object_type
        ):
            return True
    return False


def privileges_statement(obj: ObjectMetadata, object_name: str, object_type: str) -> str:
    """Render the REVOKE/GRANT block for an object.

    Args:
        obj: Metadata whose ``privileges`` are rendered.
        object_name: Name as it appears in SQL (``public.t``, ``f(integer)``).
        object_type: Object type keyword (``TABLE``, ``FUNCTION``, ...).

    Returns:
        Newline-joined statements, or "" when there are no privileges.

    Example:
        REVOKE ALL ON TABLE public.t FROM PUBLIC;
        GRANT ALL ON TABLE public.t TO reader;
        GRANT TRIGGER ON TABLE public.t TO PUBLIC;
    """
    if not obj.privileges:
        return ""

    grant_type = _grant_keyword_type(object_type)
    target = f"{grant_type} {object_name}"
    statements = [f"REVOKE ALL ON {target} FROM PUBLIC;"]
    if _owner_needs_revoke(obj, object_type):
        statements.append(f"REVOKE ALL ON {target} FROM {obj.owner};")

    for acl in obj.privileges:
        held = held_privileges(acl)
        if not held:
            continue
        if has_all_privileges(acl, object_type):
            privileges = "ALL"
        else:
            privileges = _privilege_keywords(held)
        suffix = _grant_option_suffix(acl, held)
        statements.append(f"GRANT {privileges} ON {target} TO {_grantee_name(acl)}{suffix};")

    return "\n".join(statements)


def column_privileges_statement(
    column_name: str, privileges: str | None, kind: str, table_name: str, owner: str = ""
) -> str:
    """Render GRANT/REVOKE statements for the privileges on one column.

    Args:
        column_name: Quoted column name.
        privileges: Raw ACL entry for the column, or ``None``.
        kind: "Empty" when every privilege on the column was revoked.
        table_name: Qualified table name.
        owner: Table owner, revoked from as well when *kind* is "Empty".

    Returns:
        Newline-joined statements, or "".
    """
    target = f"({column_name}) ON TABLE {table_name}"
    if kind == "Empty":
        statements = [f"REVOKE ALL {target} FROM PUBLIC;"]
        if owner:
            statements.append(f"REVOKE ALL {target} FROM {owner};")
        return "\n".join(statements)

    acl = parse_acl(privileges)
    if acl is None:
        return ""
    held = held_privileges(acl)
    if not held:
        return ""
    suffix = _grant_option_suffix(acl, held)
    return f"GRANT {_privilege_keywords(held)} {target} TO {_grantee_name(acl)}{suffix};"
