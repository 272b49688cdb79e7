"""Shared fixtures: an in-memory catalog holding the sample keyspaces."""

from __future__ import annotations

import copy

import pytest

from cql_explorer.catalog.memory import InMemoryCatalog
from cql_explorer.schema.models import Schema

KEYSPACE = "test_ks"
ALT_KEYSPACE = "another_keyspace"

REGULAR_COLUMNS = [
    ("d1_blob", "blob"),
    ("d2_boolean", "boolean"),
    ("d3_decimal", "decimal"),
    ("d4_double", "double"),
    ("d5_float", "float"),
    ("d6_inet", "inet"),
    ("d7_int", "int"),
    ("d8_list", "list<int>"),
    ("d9_map", "map<int, text>"),
    ("d10_set", "set<int>"),
    ("d11_timestamp", "timestamp"),
    ("d12_uuid", "uuid"),
    ("d13_timeuuid", "timeuuid"),
    ("d14_varchar", "text"),
    ("d15_varint", "varint"),
    ("d16_address", "frozen<address>"),
]

SNAPSHOT = {
    "keyspaces": {
        KEYSPACE: {
            "replication": {
                "class": "org.apache.cassandra.locator.SimpleStrategy",
                "replication_factor": "1",
            },
            "durable_writes": True,
            "user_types": {"address": [["street", "text"], ["city", "text"], ["zip", "int"]]},
            "tables": {
                "test": {
                    "columns": [
                        {"name": "k1", "type": "int", "kind": "partition_key", "position": 0},
                        {"name": "k2", "type": "text", "kind": "partition_key", "position": 1},
                        {"name": "k3", "type": "timestamp", "kind": "partition_key", "position": 2},
                        {
                            "name": "c1",
                            "type": "bigint",
                            "kind": "clustering",
                            "position": 0,
                            "clustering_order": "asc",
                        },
                        {
                            "name": "c2",
                            "type": "text",
                            "kind": "clustering",
                            "position": 1,
                            "clustering_order": "asc",
                        },
                        {
                            "name": "c3",
                            "type": "uuid",
                            "kind": "clustering",
                            "position": 2,
                            "clustering_order": "asc",
                        },
                        *({"name": name, "type": cql_type} for name, cql_type in REGULAR_COLUMNS),
                    ],
                    "indexes": [
                        {
                            "name": "test_d9_map_idx",
                            "target": "keys(d9_map)",
                            "options": {"target": "keys(d9_map)"},
                        },
                        {
                            "name": "test_d7_int_idx",
                            "target": "d7_int",
                            "options": {"target": "d7_int"},
                        },
                    ],
                    "options": {"comment": "", "gc_grace_seconds": "864000"},
                },
                "another_test": {
                    "columns": [{"name": "k1", "type": "int", "kind": "partition_key", "position": 0}],
                },
                "yet_another_test": {
                    "columns": [{"name": "k1", "type": "int", "kind": "partition_key", "position": 0}],
                },
            },
        },
        ALT_KEYSPACE: {
            "replication": {
                "class": "org.apache.cassandra.locator.SimpleStrategy",
                "replication_factor": "1",
            },
            "tables": {},
        },
    }
}


@pytest.fixture
def snapshot_data() -> dict:
    """A private copy of the sample catalog snapshot."""
    return copy.deepcopy(SNAPSHOT)


@pytest.fixture
def catalog(snapshot_data: dict) -> InMemoryCatalog:
    """In-memory catalog with the sample keyspaces."""
    return InMemoryCatalog.from_dict(snapshot_data)


@pytest.fixture
def schema(catalog: InMemoryCatalog) -> Schema:
    """Schema loaded from the sample catalog without filters."""
    return Schema.from_catalog(catalog)


@pytest.fixture
def test_table(schema: Schema):
    """The sample table with composite keys, collections and a user type column."""
    return schema.keyspace_by_name(KEYSPACE).table_by_name("test")
