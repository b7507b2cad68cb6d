"""Comment, ownership, privilege and security label statements.

``print_object_metadata`` writes the metadata of any named object as up to
four blocks, always in the same order: comment, owner, privileges,
security label.  Objects without metadata produce no output at all.
"""

from catalog_dump.ddl.privileges import privileges_statement
from catalog_dump.ddl.writer import StatementWriter
from catalog_dump.schema.models import ObjectMetadata


def escape_string(value: str) -> str:
    """Escape *value* for use inside a single-quoted SQL literal."""
    return value.replace("'", "''")


def comment_statement(obj: ObjectMetadata, object_name: str, object_type: str) -> str:
    if not obj.comment:
        return ""
    return f"COMMENT ON {object_type} {object_name} IS '{escape_string(obj.comment)}';"


def owner_statement(obj: ObjectMetadata, object_name: str, object_type: str) -> str:
    if not obj.owner:
        return ""
    return f"ALTER {object_type} {object_name} OWNER TO {obj.owner};"


def security_label_statement(obj: ObjectMetadata, object_name: str, object_type: str) -> str:
    if not obj.security_label_provider:
        return ""
    return (
        f"SECURITY LABEL FOR {obj.security_label_provider} ON {object_type} {object_name} "
        f"IS '{escape_string(obj.security_label)}';"
    )


def object_metadata_blocks(obj: ObjectMetadata, object_name: str, object_type: str) -> list[str]:
    """The non-empty metadata blocks for one object, in emission order."""
    blocks = [
        comment_statement(obj, object_name, object_type),
        owner_statement(obj, object_name, object_type),
        privileges_statement(obj, object_name, object_type),
        security_label_statement(obj, object_name, object_type),
    ]
    return [block for block in blocks if block]


def print_object_metadata(
    writer: StatementWriter,
    obj: ObjectMetadata,
    object_name: str,
    object_type: str,
    compact: bool = False,
) -> None:
    """Write the comment, owner, privilege and security label blocks.

    Args:
        writer: Destination.
        obj: Metadata of the object.
        object_name: Name as it appears in SQL, e.g. ``public.tablename``.
        object_type: Object type keyword, e.g. ``TABLE``.
        compact: Separate blocks by one blank line instead of two (used
            for composite types).
    """
    for block in object_metadata_blocks(obj, object_name, object_type):
        if compact:
            writer.write_compact_statement(block)
        else:
            writer.write_statement(block)
