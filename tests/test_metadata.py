"""Tests for comment, owner, privilege and security label output."""

from catalog_dump.ddl.metadata import (
    comment_statement,
    escape_string,
    object_metadata_blocks,
    owner_statement,
    print_object_metadata,
    security_label_statement,
)
from catalog_dump.ddl.writer import StatementWriter
from catalog_dump.schema.models import ACL, ObjectMetadata


class TestStatements:
    """The individual metadata statements."""

    def test_escape_string(self) -> None:
        """Single quotes are doubled."""
        assert escape_string("it's") == "it''s"

    def test_comment(self) -> None:
        """COMMENT ON escapes the comment text."""
        obj = ObjectMetadata(comment="This is a table's comment.")
        assert comment_statement(obj, "public.tablename", "TABLE") == (
            "COMMENT ON TABLE public.tablename IS 'This is a table''s comment.';"
        )

    def test_no_comment(self) -> None:
        """No comment gives no statement."""
        assert comment_statement(ObjectMetadata(), "public.tablename", "TABLE") == ""

    def test_owner(self) -> None:
        """ALTER ... OWNER TO uses the object type keyword."""
        obj = ObjectMetadata(owner="testrole")
        assert owner_statement(obj, "public.tablename", "TABLE") == (
            "ALTER TABLE public.tablename OWNER TO testrole;"
        )

    def test_security_label(self) -> None:
        """SECURITY LABEL names its provider."""
        obj = ObjectMetadata(security_label_provider="dummy", security_label="unclassified")
        assert security_label_statement(obj, "public.tablename", "TABLE") == (
            "SECURITY LABEL FOR dummy ON TABLE public.tablename IS 'unclassified';"
        )

    def test_block_order(self) -> None:
        """Blocks come out as comment, owner, privileges, security label."""
        obj = ObjectMetadata(
            owner="testrole",
            comment="c",
            privileges=[ACL(grantee="", select=True)],
            security_label_provider="dummy",
            security_label="unclassified",
        )
        blocks = object_metadata_blocks(obj, "public.t", "TABLE")
        assert [block.split()[0] for block in blocks] == ["COMMENT", "ALTER", "REVOKE", "SECURITY"]


class TestPrintObjectMetadata:
    """print_object_metadata() writes the blocks with the right spacing."""

    def test_empty_metadata_writes_nothing(self) -> None:
        """An object without metadata produces no output."""
        writer = StatementWriter()
        print_object_metadata(writer, ObjectMetadata(), "public.t", "TABLE")
        assert writer.getvalue() == ""

    def test_comment_and_owner(self) -> None:
        """Each block is a separate statement."""
        writer = StatementWriter()
        obj = ObjectMetadata(owner="testrole", comment="This is a table comment.")
        print_object_metadata(writer, obj, "public.tablename", "TABLE")
        assert writer.getvalue() == (
            "\n\nCOMMENT ON TABLE public.tablename IS 'This is a table comment.';\n"
            "\n\nALTER TABLE public.tablename OWNER TO testrole;\n"
        )

    def test_privileges_form_one_block(self) -> None:
        """The REVOKE/GRANT lines are written together as one block."""
        writer = StatementWriter()
        obj = ObjectMetadata(privileges=[ACL(grantee="testrole", select=True)])
        print_object_metadata(writer, obj, "public.tablename", "TABLE")
        assert writer.getvalue() == (
            "\n\nREVOKE ALL ON TABLE public.tablename FROM PUBLIC;\n"
            "GRANT SELECT ON TABLE public.tablename TO testrole;\n"
        )

    def test_compact(self) -> None:
        """Compact blocks are one blank line apart."""
        writer = StatementWriter()
        obj = ObjectMetadata(owner="testrole", comment="composite type")
        print_object_metadata(writer, obj, "public.composite", "TYPE", compact=True)
        writer.close()
        assert writer.getvalue() == (
            "\nCOMMENT ON TYPE public.composite IS 'composite type';\n"
            "\nALTER TYPE public.composite OWNER TO testrole;\n"
        )
