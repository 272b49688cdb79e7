"""Seed script to populate a Cassandra cluster with sample keyspaces and tables."""

from cassandra.cluster import Cluster

from cql_explorer.config import get_settings
from cql_explorer.schema.cql import table_statements
from cql_explorer.schema.models import DefaultTableDef, IndexDef
from cql_explorer.schema.types import INT, VARCHAR, UserDefinedType

KEYSPACE = "test_ks"
ALT_KEYSPACE = "another_keyspace"
REPLICATION = "{'class': 'SimpleStrategy', 'replication_factor': 1}"

ADDRESS = UserDefinedType(
    name="address",
    field_names=("street", "city", "zip"),
    field_types=(VARCHAR, VARCHAR, INT),
)


def sample_tables() -> list[DefaultTableDef]:
    """Tables created in the sample keyspace."""
    test = DefaultTableDef.build(
        KEYSPACE,
        "test",
        partition_key=[("k1", "int"), ("k2", "varchar"), ("k3", "timestamp")],
        clustering_columns=[("c1", "bigint"), ("c2", "varchar"), ("c3", "uuid")],
        regular_columns=[
            ("d1_blob", "blob"),
            ("d2_boolean", "boolean"),
            ("d3_decimal", "decimal"),
            ("d4_double", "double"),
            ("d5_float", "float"),
            ("d6_inet", "inet"),
            ("d7_int", "int"),
            ("d8_list", "list<int>"),
            ("d9_map", "map<int, varchar>"),
            ("d10_set", "set<int>"),
            ("d11_timestamp", "timestamp"),
            ("d12_uuid", "uuid"),
            ("d13_timeuuid", "timeuuid"),
            ("d14_varchar", "varchar"),
            ("d15_varint", "varint"),
            ("d16_address", ADDRESS.as_frozen()),
        ],
        indexes=[
            IndexDef.from_target("test_d9_map_idx", "keys(d9_map)"),
            IndexDef.from_target("test_d7_int_idx", "d7_int"),
        ],
    )
    another = DefaultTableDef.build(KEYSPACE, "another_test", partition_key=[("k1", "int")])
    yet_another = DefaultTableDef.build(KEYSPACE, "yet_another_test", partition_key=[("k1", "int")])
    return [test, another, yet_another]


def seed_database() -> None:
    """Seed the cluster with the sample keyspaces and tables."""
    catalog = get_settings().catalog
    cluster = Cluster(catalog.contact_points, port=catalog.port)
    session = cluster.connect()

    try:
        for keyspace in (KEYSPACE, ALT_KEYSPACE):
            print(f"Creating keyspace: {keyspace}")
            session.execute(
                f"CREATE KEYSPACE IF NOT EXISTS {keyspace} WITH replication = {REPLICATION}"
            )

        for table in sample_tables():
            print(f"Creating table: {table.qualified_name}")
            for statement in table_statements(table, if_not_exists=True):
                session.execute(statement)

        print("Seeding complete.")
    finally:
        cluster.shutdown()


if __name__ == "__main__":
    seed_database()
