"""Tests for ACL parsing and GRANT/REVOKE rendering."""

import pytest

from catalog_dump.ddl.privileges import (
    column_privileges_statement,
    has_all_privileges,
    held_privileges,
    parse_acl,
    parse_acls,
    privileges_statement,
)
from catalog_dump.errors import InvalidACLError
from catalog_dump.schema.models import ACL, ObjectMetadata

ALL_TABLE = dict(
    select=True, insert=True, update=True, delete=True,
    truncate=True, references=True, trigger=True,
)


# ============================================================
# parse_acl
# ============================================================


class TestParseACL:
    """parse_acl() turns grantee=privileges/grantor entries into ACL records."""

    def test_empty_entry(self) -> None:
        """An empty entry means default privileges."""
        assert parse_acl("") is None
        assert parse_acl(None) is None

    def test_no_privileges(self) -> None:
        """An entry with no privilege letters gives a bare ACL."""
        assert parse_acl("GRANTEE=/GRANTOR") == ACL(grantee="GRANTEE")

    def test_all_table_privileges(self) -> None:
        """arwdDxt covers every table privilege."""
        assert parse_acl("testrole=arwdDxt/gpadmin") == ACL(grantee="testrole", **ALL_TABLE)

    def test_quoted_grantee(self) -> None:
        """Quotes around the grantee are removed."""
        assert parse_acl('"test|role"=a/gpadmin') == ACL(grantee="test|role", insert=True)

    def test_quoted_grantee_with_doubled_quote(self) -> None:
        """Doubled quotes inside a quoted grantee are unescaped."""
        assert parse_acl('"a""b"=r/gpadmin') == ACL(grantee='a"b', select=True)

    def test_grant_option_sets_only_with_grant_flags(self) -> None:
        """A '*' after a letter sets the _with_grant flag instead of the plain one."""
        expected = ACL(
            grantee="testrole",
            insert_with_grant=True,
            truncate_with_grant=True,
            references_with_grant=True,
            trigger_with_grant=True,
            execute_with_grant=True,
            usage_with_grant=True,
            create_with_grant=True,
            temporary_with_grant=True,
            connect_with_grant=True,
        )
        assert parse_acl("testrole=a*D*x*t*X*U*C*T*c*/gpadmin") == expected

    def test_public_grantee(self) -> None:
        """An empty grantee is PUBLIC."""
        assert parse_acl("=a/gpadmin") == ACL(grantee="", insert=True)

    def test_unknown_privilege_letter(self) -> None:
        """Unknown letters are rejected."""
        with pytest.raises(InvalidACLError) as exc_info:
            parse_acl("testrole=q/gpadmin")
        assert exc_info.value.raw == "testrole=q/gpadmin"

    def test_dangling_grant_option(self) -> None:
        """A '*' with no privilege before it is rejected."""
        with pytest.raises(InvalidACLError):
            parse_acl("testrole=*/gpadmin")

    def test_missing_grantor(self) -> None:
        """An entry without '/grantor' is rejected."""
        with pytest.raises(InvalidACLError):
            parse_acl("testrole=r")

    def test_bad_quoting(self) -> None:
        """A grantee with unbalanced quotes is rejected."""
        with pytest.raises(InvalidACLError):
            parse_acl('"bad"role=r/gpadmin')

    def test_acl_error_is_value_error(self) -> None:
        """InvalidACLError can be caught as ValueError."""
        with pytest.raises(ValueError):
            parse_acl("nonsense")

    def test_parse_acls_drops_defaults(self) -> None:
        """parse_acls() skips empty entries."""
        assert parse_acls(["", "=r/gpadmin", None]) == [ACL(grantee="", select=True)]


class TestPrivilegeSets:
    """held_privileges() and has_all_privileges()."""

    def test_held_privileges_in_canonical_order(self) -> None:
        """Plain and grant-option privileges both count as held."""
        acl = ACL(grantee="r", trigger=True, select_with_grant=True)
        assert held_privileges(acl) == ["select", "trigger"]

    def test_full_table_set(self) -> None:
        """Every table privilege makes ALL for a table."""
        assert has_all_privileges(ACL(grantee="r", **ALL_TABLE), "TABLE")

    def test_partial_table_set(self) -> None:
        """Missing TRIGGER is not ALL."""
        acl = ACL(grantee="r", **{**ALL_TABLE, "trigger": False})
        assert not has_all_privileges(acl, "TABLE")

    def test_schema_set(self) -> None:
        """USAGE and CREATE make ALL for a schema."""
        assert has_all_privileges(ACL(grantee="r", usage=True, create=True), "SCHEMA")
        assert not has_all_privileges(ACL(grantee="r", usage=True), "SCHEMA")

    def test_function_set(self) -> None:
        """EXECUTE alone makes ALL for a function."""
        assert has_all_privileges(ACL(grantee="r", execute_with_grant=True), "FUNCTION")


# ============================================================
# privileges_statement
# ============================================================


class TestPrivilegesStatement:
    """privileges_statement() renders the REVOKE/GRANT block."""

    def test_no_privileges(self) -> None:
        """Default privileges produce no statements."""
        assert privileges_statement(ObjectMetadata(), "public.tablename", "TABLE") == ""

    def test_mixed_grantees(self) -> None:
        """Full, partial and PUBLIC grants, with a revoke from the reduced owner."""
        obj = ObjectMetadata(
            owner="testrole",
            privileges=[
                ACL(grantee="anothertestrole", **ALL_TABLE),
                ACL(grantee="testrole", **{**ALL_TABLE, "trigger": False}),
                ACL(grantee="", trigger=True),
            ],
        )
        assert privileges_statement(obj, "public.tablename", "TABLE") == (
            "REVOKE ALL ON TABLE public.tablename FROM PUBLIC;\n"
            "REVOKE ALL ON TABLE public.tablename FROM testrole;\n"
            "GRANT ALL ON TABLE public.tablename TO anothertestrole;\n"
            "GRANT SELECT,INSERT,UPDATE,DELETE,TRUNCATE,REFERENCES "
            "ON TABLE public.tablename TO testrole;\n"
            "GRANT TRIGGER ON TABLE public.tablename TO PUBLIC;"
        )

    def test_mixed_grantees_with_grant_option(self) -> None:
        """Grantees holding every privilege with grant option get WITH GRANT OPTION."""
        obj = ObjectMetadata(
            owner="testrole",
            privileges=[
                ACL(grantee="anothertestrole", **{f"{k}_with_grant": True for k in ALL_TABLE}),
                ACL(grantee="", trigger_with_grant=True),
            ],
        )
        assert privileges_statement(obj, "public.tablename", "TABLE") == (
            "REVOKE ALL ON TABLE public.tablename FROM PUBLIC;\n"
            "GRANT ALL ON TABLE public.tablename TO anothertestrole WITH GRANT OPTION;\n"
            "GRANT TRIGGER ON TABLE public.tablename TO PUBLIC WITH GRANT OPTION;"
        )

    def test_owner_with_full_privileges_not_revoked(self) -> None:
        """An owner holding everything gets no REVOKE of its own."""
        obj = ObjectMetadata(owner="testrole", privileges=[ACL(grantee="testrole", **ALL_TABLE)])
        assert privileges_statement(obj, "public.t", "TABLE") == (
            "REVOKE ALL ON TABLE public.t FROM PUBLIC;\n"
            "GRANT ALL ON TABLE public.t TO testrole;"
        )

    def test_grantee_without_privileges(self) -> None:
        """A grantee holding nothing gets no GRANT."""
        obj = ObjectMetadata(privileges=[ACL(grantee="testrole")])
        assert privileges_statement(obj, "public.t", "TABLE") == (
            "REVOKE ALL ON TABLE public.t FROM PUBLIC;"
        )

    def test_function_execute(self) -> None:
        """EXECUTE on a function is ALL."""
        obj = ObjectMetadata(privileges=[ACL(grantee="testrole", execute=True)])
        assert privileges_statement(obj, "public.func(integer)", "FUNCTION") == (
            "REVOKE ALL ON FUNCTION public.func(integer) FROM PUBLIC;\n"
            "GRANT ALL ON FUNCTION public.func(integer) TO testrole;"
        )

    def test_sequence_partial(self) -> None:
        """A partial sequence grant lists its keywords."""
        obj = ObjectMetadata(privileges=[ACL(grantee="testrole", select=True, usage=True)])
        assert privileges_statement(obj, "public.seq", "SEQUENCE") == (
            "REVOKE ALL ON SEQUENCE public.seq FROM PUBLIC;\n"
            "GRANT SELECT,USAGE ON SEQUENCE public.seq TO testrole;"
        )

    def test_view_grants_on_table(self) -> None:
        """Views are granted with ON TABLE."""
        obj = ObjectMetadata(privileges=[ACL(grantee="testrole", select=True)])
        assert privileges_statement(obj, "public.v", "VIEW") == (
            "REVOKE ALL ON TABLE public.v FROM PUBLIC;\n"
            "GRANT SELECT ON TABLE public.v TO testrole;"
        )

    def test_grantee_is_quoted(self) -> None:
        """Grantees that need quoting are quoted."""
        obj = ObjectMetadata(privileges=[ACL(grantee="Test Role", usage=True)])
        assert privileges_statement(obj, "myschema", "SCHEMA") == (
            "REVOKE ALL ON SCHEMA myschema FROM PUBLIC;\n"
            'GRANT USAGE ON SCHEMA myschema TO "Test Role";'
        )


class TestColumnPrivilegesStatement:
    """column_privileges_statement() renders per-column grants."""

    def test_empty_kind_revokes_all(self) -> None:
        """Kind 'Empty' revokes from PUBLIC and the owner."""
        assert column_privileges_statement("i", None, "Empty", "public.t", "testrole") == (
            "REVOKE ALL (i) ON TABLE public.t FROM PUBLIC;\n"
            "REVOKE ALL (i) ON TABLE public.t FROM testrole;"
        )

    def test_grant(self) -> None:
        """A raw ACL entry becomes a column GRANT."""
        assert column_privileges_statement("i", "testrole=r/gpadmin", "", "public.t") == (
            "GRANT SELECT (i) ON TABLE public.t TO testrole;"
        )

    def test_grant_option(self) -> None:
        """Column grants keep WITH GRANT OPTION."""
        assert column_privileges_statement("i", "=ra*/gpadmin", "", "public.t") == (
            "GRANT SELECT,INSERT (i) ON TABLE public.t TO PUBLIC;"
        )
        assert column_privileges_statement("i", "=r*a*/gpadmin", "", "public.t") == (
            "GRANT SELECT,INSERT (i) ON TABLE public.t TO PUBLIC WITH GRANT OPTION;"
        )

    def test_no_privileges(self) -> None:
        """No ACL entry means no statement."""
        assert column_privileges_statement("i", None, "", "public.t") == ""


class TestParseThenRender:
    """Parsed entries render back to an equivalent grant set."""

    def test_mixed_grant_options_parse(self) -> None:
        """Grant-option markers apply only to the letter before them."""
        expected = ACL(
            grantee="testrole",
            insert=True,
            select_with_grant=True,
            update_with_grant=True,
            delete_with_grant=True,
            trigger=True,
            execute=True,
            usage=True,
            create=True,
            temporary=True,
            connect=True,
        )
        assert parse_acl("testrole=ar*w*d*tXUCTc/gpadmin") == expected

    def test_owner_absent_has_no_owner_revoke(self) -> None:
        """Without an owner only PUBLIC is revoked."""
        acls = parse_acls(["anothertestrole=arwdDxt/gpadmin", "testrole=arwdDx/gpadmin", "=t/gpadmin"])
        assert privileges_statement(ObjectMetadata(privileges=acls), "public.tablename", "TABLE") == (
            "REVOKE ALL ON TABLE public.tablename FROM PUBLIC;\n"
            "GRANT ALL ON TABLE public.tablename TO anothertestrole;\n"
            "GRANT SELECT,INSERT,UPDATE,DELETE,TRUNCATE,REFERENCES "
            "ON TABLE public.tablename TO testrole;\n"
            "GRANT TRIGGER ON TABLE public.tablename TO PUBLIC;"
        )

    def test_keyword_order_is_canonical(self) -> None:
        """Keywords follow canonical order whatever the letter order."""
        acl = parse_acl("testrole=xdr/gpadmin")
        obj = ObjectMetadata(privileges=[acl])
        assert privileges_statement(obj, "public.t", "TABLE").endswith(
            "GRANT SELECT,DELETE,REFERENCES ON TABLE public.t TO testrole;"
        )
