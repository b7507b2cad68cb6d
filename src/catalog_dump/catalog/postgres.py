"""Table fact collection from a live Greenplum 6 catalog via psycopg.

Each getter runs one catalog query and returns an OID-keyed map, the shape
``construct_definitions_for_tables`` joins on.  Identifiers are quoted by
the server (``quote_ident``), so names arrive ready for SQL text.

Uses psycopg (v3) for PostgreSQL connections.
"""

import logging
from collections.abc import Sequence

import psycopg
from psycopg import Connection

from catalog_dump.catalog.snapshot import CatalogSnapshot
from catalog_dump.schema.models import (
    AlteredPartitionRelation,
    ColumnDefinition,
    ExternalTableDefinition,
    ForeignTableDefinition,
    PartitionLevelInfo,
    Relation,
    Schema,
)

logger = logging.getLogger(__name__)

# OIDs below this belong to objects created by initdb
FIRST_NORMAL_OBJECT_ID = 16384

STORAGE_TYPE_CODES = {
    "e": "EXTERNAL",
    "m": "MAIN",
    "p": "PLAIN",
    "x": "EXTENDED",
}

SCHEMA_FILTER = """n.nspname NOT LIKE 'pg_temp_%'
        AND n.nspname NOT LIKE 'pg_toast%'
        AND n.nspname NOT IN ('gp_toolkit', 'information_schema', 'pg_aoseg',
                              'pg_bitmapindex', 'pg_catalog')"""


class PostgresCatalogSource:
    """Collects per-relation table facts from pg_catalog.

    Implements the ``CatalogSource`` protocol.  Queries target Greenplum 6
    catalogs (``pg_partition``, ``pg_exttable``, ``gp_distribution_policy``).

    Usage:
        with PostgresCatalogSource(database_url) as source:
            relations = source.get_relations()
            tables = construct_definitions_for_tables(source, relations)
    """

    def __init__(self, database_url: str, connect_timeout: int = 10):
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL
            connect_timeout: Seconds to wait for the connection, appended
                to the URL unless it already sets one
        """
        self._database_url = database_url
        self._connect_timeout = connect_timeout
        self._conn: Connection | None = None

    def __enter__(self) -> "PostgresCatalogSource":
        """Context manager entry - opens connection."""
        url = self._database_url
        if "connect_timeout" not in url:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}connect_timeout={self._connect_timeout}"

        self._conn = psycopg.connect(url)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _fetch(self, query: str, params: Sequence | None = None) -> list[tuple]:
        if not self._conn:
            raise RuntimeError("Catalog source not connected. Use with statement.")
        with self._conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def _fetch_oid_map(self, query: str) -> dict[int, str]:
        return {oid: value for oid, value in self._fetch(query)}

    # ------------------------------------------------------------------
    # Schemas and relations
    # ------------------------------------------------------------------

    def get_schemas(self) -> list[Schema]:
        """User schemas, by name."""
        query = f"""
            SELECT n.oid, n.nspname
            FROM pg_namespace n
            WHERE {SCHEMA_FILTER}
            ORDER BY n.nspname
        """
        return [Schema(oid=oid, name=name) for oid, name in self._fetch(query)]

    def get_relations(self) -> list[Relation]:
        """User tables, excluding child partitions that are not external."""
        query = f"""
            SELECT n.oid, c.oid, quote_ident(n.nspname), quote_ident(c.relname)
            FROM pg_class c
                JOIN pg_namespace n ON c.relnamespace = n.oid
            WHERE {SCHEMA_FILTER}
                AND c.relkind IN ('r', 'f')
                AND c.oid NOT IN (
                    SELECT parchildrelid FROM pg_partition_rule
                    EXCEPT SELECT reloid FROM pg_exttable)
            ORDER BY n.nspname, c.relname
        """
        return [
            Relation(schema_oid=schema_oid, oid=oid, schema_name=schema_name, name=name)
            for schema_oid, oid, schema_name, name in self._fetch(query)
        ]

    # ------------------------------------------------------------------
    # CatalogSource protocol
    # ------------------------------------------------------------------

    def get_column_definitions(self) -> dict[int, list[ColumnDefinition]]:
        logger.debug("Getting column definitions")
        query = f"""
            SELECT a.attrelid,
                a.attnum,
                quote_ident(a.attname),
                a.attnotnull,
                a.atthasdef,
                pg_catalog.format_type(t.oid, a.atttypmod),
                coalesce(pg_catalog.array_to_string(e.attoptions, ','), ''),
                a.attstattarget,
                CASE WHEN a.attstorage != t.typstorage THEN a.attstorage ELSE '' END,
                coalesce(pg_catalog.pg_get_expr(ad.adbin, ad.adrelid), ''),
                coalesce(d.description, ''),
                CASE
                    WHEN a.attacl IS NULL THEN NULL
                    WHEN array_upper(a.attacl, 1) = 0 THEN a.attacl[0]
                    ELSE UNNEST(a.attacl)
                END,
                CASE
                    WHEN a.attacl IS NULL THEN ''
                    WHEN array_upper(a.attacl, 1) = 0 THEN 'Empty'
                    ELSE ''
                END,
                coalesce(pg_catalog.array_to_string(a.attoptions, ','), ''),
                coalesce(array_to_string(ARRAY(
                    SELECT option_name || ' ' || quote_literal(option_value)
                    FROM pg_options_to_table(attfdwoptions) ORDER BY option_name), ', '), ''),
                CASE WHEN a.attcollation <> t.typcollation
                    THEN quote_ident(cn.nspname) || '.' || quote_ident(coll.collname)
                    ELSE '' END,
                coalesce(sec.provider, ''),
                coalesce(sec.label, '')
            FROM pg_catalog.pg_attribute a
                JOIN pg_class c ON a.attrelid = c.oid
                JOIN pg_namespace n ON c.relnamespace = n.oid
                LEFT JOIN pg_catalog.pg_attrdef ad ON a.attrelid = ad.adrelid AND a.attnum = ad.adnum
                LEFT JOIN pg_catalog.pg_type t ON a.atttypid = t.oid
                LEFT JOIN pg_catalog.pg_attribute_encoding e
                    ON e.attrelid = a.attrelid AND e.attnum = a.attnum
                LEFT JOIN pg_description d ON d.objoid = a.attrelid
                    AND d.classoid = 'pg_class'::regclass AND d.objsubid = a.attnum
                LEFT JOIN pg_collation coll ON a.attcollation = coll.oid
                LEFT JOIN pg_namespace cn ON coll.collnamespace = cn.oid
                LEFT JOIN pg_seclabel sec ON sec.objoid = a.attrelid
                    AND sec.classoid = 'pg_class'::regclass AND sec.objsubid = a.attnum
            WHERE {SCHEMA_FILTER}
                AND NOT EXISTS (SELECT 1 FROM
                    (SELECT parchildrelid FROM pg_partition_rule EXCEPT SELECT reloid FROM pg_exttable)
                    par WHERE par.parchildrelid = c.oid)
                AND c.reltype <> 0
                AND a.attnum > 0::pg_catalog.int2
                AND a.attisdropped = 'f'
            ORDER BY a.attrelid, a.attnum
        """
        result: dict[int, list[ColumnDefinition]] = {}
        for row in self._fetch(query):
            (oid, num, name, not_null, has_default, type_, encoding, stat_target,
             storage, default_val, comment, privileges, kind, options, fdw_options,
             collation, label_provider, label) = row
            column = ColumnDefinition(
                oid=oid,
                num=num,
                name=name,
                not_null=not_null,
                has_default=has_default,
                type=type_,
                encoding=encoding,
                stat_target=stat_target,
                storage_type=STORAGE_TYPE_CODES.get(storage, ""),
                default_val=default_val,
                comment=comment,
                privileges=privileges,
                kind=kind,
                options=options,
                fdw_options=fdw_options,
                collation=collation,
                security_label_provider=label_provider,
                security_label=label,
            )
            result.setdefault(oid, []).append(column)
        return result

    def get_distribution_policies(self) -> dict[int, str]:
        logger.debug("Getting distribution policies")
        query = f"""
            SELECT p.localoid, pg_catalog.pg_get_table_distributedby(p.localoid)
            FROM gp_distribution_policy p
                JOIN pg_class c ON p.localoid = c.oid
                JOIN pg_namespace n ON c.relnamespace = n.oid
            WHERE {SCHEMA_FILTER}
        """
        return self._fetch_oid_map(query)

    def get_partition_details(self) -> tuple[dict[int, str], dict[int, str]]:
        logger.info("Getting partition definitions")
        query = f"""
            SELECT p.parrelid,
                pg_get_partition_def(p.parrelid, true, true),
                pg_get_partition_template_def(p.parrelid, true, true)
            FROM pg_partition p
                JOIN pg_class c ON p.parrelid = c.oid
                JOIN pg_namespace n ON c.relnamespace = n.oid
            WHERE {SCHEMA_FILTER}
        """
        definitions: dict[int, str] = {}
        templates: dict[int, str] = {}
        for oid, definition, template in self._fetch(query):
            definitions[oid] = definition
            if template is not None:
                templates[oid] = template
        return definitions, templates

    def get_table_storage(self) -> tuple[dict[int, str], dict[int, str]]:
        logger.info("Getting storage information")
        query = f"""
            SELECT c.oid,
                quote_ident(t.spcname),
                array_to_string(c.reloptions, ', ')
            FROM pg_class c
                JOIN pg_namespace n ON c.relnamespace = n.oid
                LEFT JOIN pg_tablespace t ON t.oid = c.reltablespace
            WHERE {SCHEMA_FILTER}
                AND (t.spcname IS NOT NULL OR c.reloptions IS NOT NULL)
        """
        tablespaces: dict[int, str] = {}
        storage_options: dict[int, str] = {}
        for oid, tablespace, options in self._fetch(query):
            if tablespace is not None:
                tablespaces[oid] = tablespace
            if options is not None:
                storage_options[oid] = options
        return tablespaces, storage_options

    def get_external_table_definitions(self) -> dict[int, ExternalTableDefinition]:
        logger.debug("Getting external table definitions")
        query = f"""
            SELECT e.reloid,
                coalesce(e.urilocation, '{{}}'::text[]),
                coalesce(array_to_string(e.execlocation, ','), ''),
                e.fmttype,
                coalesce(e.fmtopts, ''),
                coalesce(array_to_string(e.options, ',\n\t'), ''),
                coalesce(e.command, ''),
                coalesce(e.rejectlimit, 0),
                coalesce(e.rejectlimittype, ''),
                e.logerrors,
                pg_encoding_to_char(e.encoding),
                e.writable
            FROM pg_exttable e
                JOIN pg_class c ON e.reloid = c.oid
                JOIN pg_namespace n ON c.relnamespace = n.oid
            WHERE {SCHEMA_FILTER}
        """
        result: dict[int, ExternalTableDefinition] = {}
        for row in self._fetch(query):
            (oid, location, execute_location, format_type, format_opts, options,
             command, reject_limit, reject_limit_type, log_errors, encoding, writable) = row
            result[oid] = ExternalTableDefinition(
                oid=oid,
                location=list(location),
                execute_command=command,
                execute_location=execute_location,
                format_type=format_type,
                format_opts=format_opts,
                options=options,
                encoding=encoding,
                writable=writable,
                reject_limit=reject_limit,
                reject_limit_type=reject_limit_type,
                log_errors=log_errors,
            )
        return result

    def get_partition_table_map(self) -> dict[int, PartitionLevelInfo]:
        """Parent ("p"), intermediate ("i") and leaf ("l") partition tables."""
        query = """
            SELECT pc.oid, 'p', ''
            FROM pg_partition p
                JOIN pg_class pc ON p.parrelid = pc.oid
            UNION ALL
            SELECT r.parchildrelid,
                CASE WHEN p.parlevel = levels.pl THEN 'l' ELSE 'i' END,
                quote_ident(cparent.relname)
            FROM pg_partition p
                JOIN pg_partition_rule r ON p.oid = r.paroid
                JOIN pg_class cparent ON cparent.oid = p.parrelid
                JOIN (SELECT parrelid AS relid, max(parlevel) AS pl
                    FROM pg_partition GROUP BY parrelid) AS levels ON p.parrelid = levels.relid
            WHERE r.parchildrelid != 0
        """
        return {
            oid: PartitionLevelInfo(oid=oid, level=level, root_name=root_name)
            for oid, level, root_name in self._fetch(query)
        }

    def get_table_type(self) -> dict[int, str]:
        query = "SELECT oid, reloftype::pg_catalog.regtype::text FROM pg_class WHERE reloftype != 0"
        return self._fetch_oid_map(query)

    def get_unlogged_tables(self) -> dict[int, bool]:
        query = "SELECT oid FROM pg_class WHERE relpersistence = 'u'"
        return {oid: True for (oid,) in self._fetch(query)}

    def get_foreign_table_definitions(self) -> dict[int, ForeignTableDefinition]:
        query = f"""
            SELECT ft.ftrelid,
                pg_catalog.array_to_string(array(
                    SELECT pg_catalog.quote_ident(option_name) || ' '
                        || pg_catalog.quote_literal(option_value)
                    FROM pg_catalog.pg_options_to_table(ft.ftoptions) ORDER BY option_name
                ), e',    '),
                fs.srvname
            FROM pg_foreign_table ft
                JOIN pg_foreign_server fs ON ft.ftserver = fs.oid
            WHERE ft.ftrelid >= {FIRST_NORMAL_OBJECT_ID} AND fs.oid >= {FIRST_NORMAL_OBJECT_ID}
        """
        return {
            oid: ForeignTableDefinition(oid=oid, options=options, server=server)
            for oid, options, server in self._fetch(query)
        }

    def get_table_inheritance(self, relations: Sequence[Relation]) -> dict[int, list[str]]:
        """Parent tables of the given relations, in inheritance order."""
        oids = [relation.oid for relation in relations]
        if not oids:
            return {}
        query = """
            SELECT i.inhrelid,
                quote_ident(n.nspname) || '.' || quote_ident(p.relname)
            FROM pg_inherits i
                JOIN pg_class p ON i.inhparent = p.oid
                JOIN pg_namespace n ON p.relnamespace = n.oid
            WHERE i.inhrelid = ANY(%s)
            ORDER BY i.inhrelid, i.inhseqno
        """
        result: dict[int, list[str]] = {}
        for oid, parent in self._fetch(query, (oids,)):
            result.setdefault(oid, []).append(parent)
        return result

    def get_table_replica_identity(self) -> dict[int, str]:
        query = f"""
            SELECT oid, relreplident
            FROM pg_class
            WHERE relkind IN ('r', 'm')
                AND oid >= {FIRST_NORMAL_OBJECT_ID}
        """
        return self._fetch_oid_map(query)

    def get_partition_altered_schema(self) -> dict[int, list[AlteredPartitionRelation]]:
        """Child partitions living in a different schema than their root."""
        logger.info("Getting child partitions with altered schema")
        query = """
            SELECT pgp.parrelid,
                quote_ident(pgn2.nspname),
                quote_ident(pgn.nspname),
                quote_ident(pgc.relname)
            FROM pg_catalog.pg_partition_rule pgpr
                JOIN pg_catalog.pg_partition pgp ON pgp.oid = pgpr.paroid
                JOIN pg_catalog.pg_class pgc ON pgpr.parchildrelid = pgc.oid
                JOIN pg_catalog.pg_class pgc2 ON pgp.parrelid = pgc2.oid
                JOIN pg_catalog.pg_namespace pgn ON pgc.relnamespace = pgn.oid
                JOIN pg_catalog.pg_namespace pgn2 ON pgc2.relnamespace = pgn2.oid
            WHERE pgc.relnamespace != pgc2.relnamespace
        """
        result: dict[int, list[AlteredPartitionRelation]] = {}
        for oid, old_schema, new_schema, name in self._fetch(query):
            result.setdefault(oid, []).append(
                AlteredPartitionRelation(old_schema=old_schema, new_schema=new_schema, name=name)
            )
        return result

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def collect_table_snapshot(self) -> CatalogSnapshot:
        """Collect schemas, relations and every table fact map.

        Functions, types, constraints and object metadata are left empty:
        their collection and dependency sorting happen elsewhere.
        """
        relations = self.get_relations()
        logger.info("Collecting table facts for %d relation(s)", len(relations))
        partition_defs, partition_templates = self.get_partition_details()
        tablespaces, storage_options = self.get_table_storage()
        return CatalogSnapshot(
            schemas=self.get_schemas(),
            relations=relations,
            objects=list(relations),
            column_defs=self.get_column_definitions(),
            distribution_policies=self.get_distribution_policies(),
            partition_defs=partition_defs,
            partition_templates=partition_templates,
            tablespaces=tablespaces,
            storage_options=storage_options,
            external_table_defs=self.get_external_table_definitions(),
            partition_levels=self.get_partition_table_map(),
            table_types=self.get_table_type(),
            unlogged_tables=self.get_unlogged_tables(),
            foreign_table_defs=self.get_foreign_table_definitions(),
            inheritance=self.get_table_inheritance(relations),
            replica_identities=self.get_table_replica_identity(),
            partition_altered_schemas=self.get_partition_altered_schema(),
        )
