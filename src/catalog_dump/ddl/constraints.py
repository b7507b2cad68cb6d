"""Table constraint statements.

Constraints are added after every table exists.  Unique, primary key and
check constraints go first, foreign keys last, so that a foreign key never
references a key added later in the same batch.  Domain constraints are
not handled here: they are inlined into CREATE DOMAIN.

Usage:
    writer = StatementWriter()
    print_constraint_statements(writer, constraints, metadata_map)
"""

import logging
from collections.abc import Sequence

from catalog_dump.ddl.metadata import print_object_metadata
from catalog_dump.ddl.writer import StatementWriter
from catalog_dump.schema.models import Constraint, MetadataMap, ObjectMetadata

logger = logging.getLogger(__name__)


def constraint_statement(constraint: Constraint) -> str:
    """``ALTER TABLE [ONLY] ... ADD CONSTRAINT`` for one constraint.

    ``ONLY`` is left out for partition parents so the constraint applies to
    the whole hierarchy.

    Example:
        >>> constraint_statement(Constraint(
        ...     name="t_i_key", con_type="u", con_def="UNIQUE (i)",
        ...     owning_object="public.t"))
        'ALTER TABLE ONLY public.t ADD CONSTRAINT t_i_key UNIQUE (i);'
    """
    only = "" if constraint.is_partition_parent else "ONLY "
    return (
        f"ALTER TABLE {only}{constraint.owning_object} "
        f"ADD CONSTRAINT {constraint.name} {constraint.con_def};"
    )


def order_constraints(constraints: Sequence[Constraint]) -> list[Constraint]:
    """Non-domain constraints, non-foreign-keys first, each group in list order."""
    eligible = [c for c in constraints if not c.is_domain_constraint]
    non_foreign = [c for c in eligible if c.con_type != "f"]
    foreign = [c for c in eligible if c.con_type == "f"]
    return non_foreign + foreign


def print_constraint_statements(
    writer: StatementWriter,
    constraints: Sequence[Constraint],
    metadata_map: MetadataMap,
) -> None:
    """Write one ADD CONSTRAINT statement per table constraint plus its comment.

    Args:
        writer: Destination.
        constraints: Constraints in catalog order.
        metadata_map: Metadata by OID; only comments apply to constraints.
    """
    ordered = order_constraints(constraints)
    logger.debug("Writing %d constraint(s)", len(ordered))
    for constraint in ordered:
        writer.write_statement(constraint_statement(constraint))
        metadata = metadata_map.get(constraint.oid)
        if metadata is not None:
            print_object_metadata(
                writer,
                ObjectMetadata(comment=metadata.comment),
                f"{constraint.name} ON {constraint.owning_object}",
                "CONSTRAINT",
            )
