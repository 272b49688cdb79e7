"""Tests for CQL rendering of schema definitions."""

from __future__ import annotations

import pytest

from cql_explorer.schema.cql import (
    create_index_cql,
    create_table_cql,
    create_type_cql,
    quote_identifier,
    referenced_user_types,
    table_statements,
)
from cql_explorer.schema.models import ClusteringOrder, ColumnDef, DefaultTableDef, IndexDef
from cql_explorer.schema.types import INT, VARCHAR, ListType, MapType, UserDefinedType

ADDRESS = UserDefinedType(name="address", field_names=("street", "zip"), field_types=(VARCHAR, INT))
PERSON = UserDefinedType(
    name="person",
    field_names=("name", "home"),
    field_types=(VARCHAR, ADDRESS.as_frozen()),
)


@pytest.fixture
def events() -> DefaultTableDef:
    return DefaultTableDef.build(
        "shop",
        "events",
        partition_key=[("tenant", VARCHAR), ("day", INT)],
        clustering_columns=[
            ColumnDef.clustering_column("seq", INT, 0, ClusteringOrder.DESC),
            ("kind", VARCHAR),
        ],
        regular_columns=[
            ColumnDef.regular_column("owner", VARCHAR, static=True),
            ("attrs", MapType(key_type=VARCHAR, value_type=VARCHAR)),
        ],
        indexes=[IndexDef.from_target("events_attrs_idx", "entries(attrs)")],
    )


class TestQuoteIdentifier:
    """Tests for quote_identifier."""

    @pytest.mark.parametrize("name", ["users", "d16_address", "k1"])
    def test_plain_names_unquoted(self, name: str):
        assert quote_identifier(name) == name

    @pytest.mark.parametrize(
        ("name", "quoted"),
        [
            ("UserId", '"UserId"'),
            ("select", '"select"'),
            ("1st", '"1st"'),
            ("has space", '"has space"'),
            ('say "hi"', '"say ""hi"""'),
        ],
    )
    def test_quoted_names(self, name: str, quoted: str):
        assert quote_identifier(name) == quoted


class TestCreateTable:
    """Tests for create_table_cql."""

    def test_composite_keys_and_ordering(self, events):
        assert create_table_cql(events) == (
            "CREATE TABLE shop.events (\n"
            "  tenant varchar,\n"
            "  day int,\n"
            "  seq int,\n"
            "  kind varchar,\n"
            "  owner varchar static,\n"
            "  attrs map<varchar, varchar>,\n"
            "  PRIMARY KEY ((tenant, day), seq, kind)\n"
            ") WITH CLUSTERING ORDER BY (seq DESC, kind ASC)"
        )

    def test_if_not_exists(self, events):
        assert create_table_cql(events, if_not_exists=True).startswith(
            "CREATE TABLE IF NOT EXISTS shop.events ("
        )

    def test_ascending_table_has_no_ordering_clause(self, test_table):
        statement = test_table.cql
        assert "CLUSTERING ORDER" not in statement
        assert statement.startswith("CREATE TABLE test_ks.test (\n  k1 int,\n  k2 varchar,")
        assert "  d9_map map<int, varchar>,\n" in statement
        assert "  d16_address frozen<address>,\n" in statement
        assert statement.endswith("  PRIMARY KEY ((k1, k2, k3), c1, c2, c3)\n)")

    def test_single_column_key(self):
        table = DefaultTableDef.build("ks", "t", partition_key=[("k1", INT)])
        assert create_table_cql(table) == "CREATE TABLE ks.t (\n  k1 int,\n  PRIMARY KEY ((k1))\n)"


class TestCreateTypeAndIndex:
    """Tests for create_type_cql and create_index_cql."""

    def test_create_type(self):
        assert create_type_cql("ks", ADDRESS) == "CREATE TYPE ks.address (street varchar, zip int)"

    def test_create_type_nested(self):
        assert create_type_cql("ks", PERSON, if_not_exists=True) == (
            "CREATE TYPE IF NOT EXISTS ks.person (name varchar, home frozen<address>)"
        )

    def test_collection_index(self, events):
        assert create_index_cql(events, events.indexes[0]) == (
            "CREATE INDEX events_attrs_idx ON shop.events (entries(attrs))"
        )

    def test_index_if_not_exists(self, events):
        assert create_index_cql(events, events.indexes[0], if_not_exists=True).startswith(
            "CREATE INDEX IF NOT EXISTS events_attrs_idx ON"
        )

    def test_custom_index(self, events):
        index = IndexDef.from_target("kind_idx", "kind", class_name="org.example.SasiIndex")
        assert create_index_cql(events, index) == (
            "CREATE CUSTOM INDEX kind_idx ON shop.events (kind) USING 'org.example.SasiIndex'"
        )

    def test_sample_indexes(self, test_table):
        statements = [create_index_cql(test_table, index) for index in test_table.indexes]
        assert statements == [
            "CREATE INDEX test_d9_map_idx ON test_ks.test (keys(d9_map))",
            "CREATE INDEX test_d7_int_idx ON test_ks.test (d7_int)",
        ]


class TestTableStatements:
    """Tests for referenced_user_types and table_statements."""

    def test_dependencies_first(self):
        table = DefaultTableDef.build(
            "ks",
            "people",
            partition_key=[("id", INT)],
            regular_columns=[
                ("friends", ListType(element_type=PERSON.as_frozen())),
                ("office", ADDRESS.as_frozen()),
            ],
        )
        assert [udt.name for udt in referenced_user_types(table)] == ["address", "person"]
        assert all(not udt.frozen for udt in referenced_user_types(table))

    def test_statement_order(self, test_table):
        statements = table_statements(test_table)
        assert statements[0] == "CREATE TYPE test_ks.address (street varchar, city varchar, zip int)"
        assert statements[1].startswith("CREATE TABLE test_ks.test")
        assert statements[2:] == [
            "CREATE INDEX test_d9_map_idx ON test_ks.test (keys(d9_map))",
            "CREATE INDEX test_d7_int_idx ON test_ks.test (d7_int)",
        ]

    def test_table_without_user_types(self, schema):
        table = schema.keyspace_by_name("test_ks").table_by_name("another_test")
        assert table_statements(table) == [table.cql]
