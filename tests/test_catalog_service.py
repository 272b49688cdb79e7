"""Tests for CatalogService."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from cql_explorer.catalog.ports import CatalogDetails, CatalogHandle, ColumnDescriptor
from cql_explorer.catalog.service import CatalogService, get_catalog_service, reset_catalog_service
from cql_explorer.config import CatalogConfig, Settings, reset_settings
from cql_explorer.schema.errors import ConnectivityError, NotFoundError
from cql_explorer.schema.models import Schema


@pytest.fixture(autouse=True)
def clean_state():
    """Reset global state before and after each test."""
    reset_settings()
    reset_catalog_service()
    yield
    reset_settings()
    reset_catalog_service()


@pytest.fixture
def mock_settings() -> Settings:
    """Create mock settings for testing."""
    return Settings(
        catalog=CatalogConfig(
            contact_points=["10.0.0.1", "10.0.0.2"],
            port=9142,
            local_datacenter="dc1",
        ),
    )


@pytest.fixture
def service(mock_settings: Settings) -> CatalogService:
    return CatalogService(settings=mock_settings)


def column_row(name, cql_type, kind="regular", position=-1, clustering_order="none"):
    return {
        "column_name": name,
        "type": cql_type,
        "kind": kind,
        "position": position,
        "clustering_order": clustering_order,
    }


class TestCatalogServiceProtocol:
    """Tests for the catalog interfaces."""

    def test_implements_handle_and_details(self, service: CatalogService):
        assert isinstance(service, CatalogHandle)
        assert isinstance(service, CatalogDetails)


class TestCatalogServiceListKeyspaces:
    """Tests for list_keyspaces method."""

    def test_list_keyspaces_returns_empty_list(self, service: CatalogService):
        """Test listing keyspaces from an empty catalog returns empty list."""
        mock_session = MagicMock()
        mock_session.execute.return_value = []

        with patch.object(service, "_session", mock_session):
            assert service.list_keyspaces() == []
            mock_session.execute.assert_called_once()

    def test_list_keyspaces_returns_names(self, service: CatalogService):
        """Test listing keyspaces returns their names in catalog order."""
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            {"keyspace_name": "system"},
            {"keyspace_name": "shop"},
        ]

        with patch.object(service, "_session", mock_session):
            assert service.list_keyspaces() == ["system", "shop"]

    def test_list_keyspaces_lazy_initialization(self, service: CatalogService):
        """Test that list_keyspaces triggers lazy initialization."""
        mock_session = MagicMock()
        mock_session.execute.return_value = [{"keyspace_name": "shop"}]

        with patch.object(service, "_initialize_session", return_value=mock_session):
            assert service.list_keyspaces() == ["shop"]
            service._initialize_session.assert_called_once()
            assert service.is_initialized


class TestCatalogServiceListTables:
    """Tests for list_tables and list_views."""

    def test_tables_then_views(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.side_effect = [
            [{"table_name": "orders"}, {"table_name": "users"}],
            [{"view_name": "users_by_email"}],
        ]

        with patch.object(service, "_session", mock_session):
            assert service.list_tables("shop") == ["orders", "users", "users_by_email"]

        first_call = mock_session.execute.call_args_list[0]
        assert "system_schema.tables" in first_call.args[0]
        assert first_call.args[1] == ("shop",)

    def test_unknown_keyspace_is_empty(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = []

        with patch.object(service, "_session", mock_session):
            assert service.list_tables("nowhere") == []


class TestCatalogServiceListColumns:
    """Tests for list_columns."""

    def test_key_columns_first_in_key_order(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            column_row("a_value", "text"),
            column_row("c0", "int", "clustering", 0, "desc"),
            column_row("k1", "text", "partition_key", 1),
            column_row("k0", "int", "partition_key", 0),
            column_row("shared", "int", "static"),
            column_row("z_value", "list<int>"),
        ]

        with patch.object(service, "_session", mock_session):
            columns = service.list_columns("shop", "events")

        assert [c.name for c in columns] == ["k0", "k1", "c0", "a_value", "shared", "z_value"]
        assert columns[2] == ColumnDescriptor(
            name="c0", type="int", kind="clustering", position=0, clustering_order="desc"
        )
        assert columns[3].position == -1

    def test_null_position_becomes_minus_one(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            column_row("k", "int", "partition_key", 0),
            column_row("v", "int", position=None, clustering_order=None),
        ]

        with patch.object(service, "_session", mock_session):
            columns = service.list_columns("shop", "t")

        assert columns[1].position == -1
        assert columns[1].clustering_order == "none"


class TestCatalogServiceIndexesAndTypes:
    """Tests for list_indexes and list_user_types."""

    def test_index_target_from_options(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            {"index_name": "m_idx", "kind": "COMPOSITES", "options": {"target": "keys(m)"}},
            {
                "index_name": "sasi_idx",
                "kind": "CUSTOM",
                "options": {"target": "v", "class_name": "org.example.Sasi"},
            },
        ]

        with patch.object(service, "_session", mock_session):
            indexes = service.list_indexes("shop", "t")

        assert [(i.name, i.target, i.kind) for i in indexes] == [
            ("m_idx", "keys(m)", "COMPOSITES"),
            ("sasi_idx", "v", "CUSTOM"),
        ]
        assert indexes[1].options["class_name"] == "org.example.Sasi"

    def test_user_type_fields_in_order(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            {
                "type_name": "address",
                "field_names": ["street", "zip"],
                "field_types": ["text", "int"],
            }
        ]

        with patch.object(service, "_session", mock_session):
            user_types = service.list_user_types("shop")

        assert user_types[0].name == "address"
        assert user_types[0].fields == (("street", "text"), ("zip", "int"))


class TestCatalogServiceDetails:
    """Tests for describe_keyspace and table_options."""

    def test_describe_keyspace(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            {
                "keyspace_name": "shop",
                "replication": {"class": "NetworkTopologyStrategy", "dc1": "3"},
                "durable_writes": False,
            }
        ]

        with patch.object(service, "_session", mock_session):
            descriptor = service.describe_keyspace("shop")

        assert descriptor.replication["dc1"] == "3"
        assert descriptor.durable_writes is False

    def test_describe_unknown_keyspace(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = []

        with patch.object(service, "_session", mock_session):
            with pytest.raises(NotFoundError, match="Keyspace not found: nowhere"):
                service.describe_keyspace("nowhere")

    def test_table_options_as_strings(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [
            {"comment": "orders", "default_time_to_live": 0, "gc_grace_seconds": 864000}
        ]

        with patch.object(service, "_session", mock_session):
            options = service.table_options("shop", "orders")

        assert options == {
            "comment": "orders",
            "default_time_to_live": "0",
            "gc_grace_seconds": "864000",
        }

    def test_view_options_fall_back(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.side_effect = [[], [{"comment": "", "gc_grace_seconds": 10}]]

        with patch.object(service, "_session", mock_session):
            options = service.table_options("shop", "users_by_email")

        assert options == {"gc_grace_seconds": "10"}
        assert "system_schema.views" in mock_session.execute.call_args_list[1].args[0]


class TestCatalogServiceSchemaLoad:
    """Tests for loading a schema through the service."""

    def test_errors_from_session_propagate(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.side_effect = RuntimeError("read timeout")

        with patch.object(service, "_session", mock_session):
            with pytest.raises(RuntimeError, match="read timeout"):
                Schema.from_catalog(service)

    def test_lost_cluster_during_read(self, service: CatalogService):
        from cassandra.cluster import NoHostAvailable

        mock_session = MagicMock()
        mock_session.execute.side_effect = NoHostAvailable("down", {})

        with patch.object(service, "_session", mock_session):
            with pytest.raises(ConnectivityError, match="Catalog read failed"):
                Schema.from_catalog(service)

    def test_read_timeout(self, service: CatalogService):
        from cassandra import OperationTimedOut

        mock_session = MagicMock()
        mock_session.execute.side_effect = OperationTimedOut()

        with patch.object(service, "_session", mock_session):
            with pytest.raises(ConnectivityError) as exc_info:
                service.list_tables("shop")

        assert isinstance(exc_info.value.__cause__, OperationTimedOut)

    def test_health_check_after_hosts_drop(self, service: CatalogService):
        from cassandra.cluster import NoHostAvailable

        mock_session = MagicMock()
        mock_session.execute.side_effect = NoHostAvailable("down", {})

        with patch.object(service, "_session", mock_session):
            result = service.health_check()

        assert result["healthy"] is False
        assert "Catalog read failed" in result["error"]


class TestCatalogServiceConnection:
    """Tests for session setup, health and shutdown."""

    def test_cluster_options(self, service: CatalogService):
        from cassandra.cluster import EXEC_PROFILE_DEFAULT
        from cassandra.policies import DCAwareRoundRobinPolicy

        options = service._build_cluster_options()
        assert options["contact_points"] == ["10.0.0.1", "10.0.0.2"]
        assert options["port"] == 9142
        assert "auth_provider" not in options
        profile = options["execution_profiles"][EXEC_PROFILE_DEFAULT]
        assert isinstance(profile.load_balancing_policy, DCAwareRoundRobinPolicy)
        assert profile.request_timeout == 10.0

    def test_cluster_options_with_auth(self):
        from cassandra.auth import PlainTextAuthProvider

        settings = Settings(catalog=CatalogConfig(username="reader", password="secret"))
        options = CatalogService(settings=settings)._build_cluster_options()
        assert isinstance(options["auth_provider"], PlainTextAuthProvider)

    def test_unreachable_cluster(self, service: CatalogService):
        from cassandra.cluster import NoHostAvailable

        with patch("cassandra.cluster.Cluster") as mock_cluster:
            mock_cluster.return_value.connect.side_effect = NoHostAvailable("no hosts", {})
            with pytest.raises(ConnectivityError, match="Cannot reach catalog at 10.0.0.1, 10.0.0.2"):
                service.list_keyspaces()
            mock_cluster.return_value.shutdown.assert_called_once()

        assert not service.is_initialized

    def test_health_check_healthy(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.return_value = [{"release_version": "4.1.3"}]

        with patch.object(service, "_session", mock_session):
            result = service.health_check()

        assert result == {"healthy": True, "catalog": True, "release_version": "4.1.3"}

    def test_health_check_unhealthy(self, service: CatalogService):
        mock_session = MagicMock()
        mock_session.execute.side_effect = RuntimeError("boom")

        with patch.object(service, "_session", mock_session):
            result = service.health_check()

        assert result["healthy"] is False
        assert result["catalog"] is False
        assert "boom" in result["error"]

    def test_close(self, service: CatalogService):
        mock_cluster = MagicMock()
        service._cluster = mock_cluster
        service._session = MagicMock()

        service.close()

        mock_cluster.shutdown.assert_called_once()
        assert not service.is_initialized


class TestGetCatalogService:
    """Tests for the cached catalog handle."""

    def test_live_service_by_default(self):
        handle = get_catalog_service()
        assert isinstance(handle, CatalogService)
        assert get_catalog_service() is handle

    def test_snapshot_when_configured(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        from cql_explorer.catalog.memory import InMemoryCatalog

        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text('{"keyspaces": {"shop": {}}}')
        monkeypatch.setenv("CQL_EXPLORER_CATALOG__SNAPSHOT_PATH", str(snapshot))

        handle = get_catalog_service()
        assert isinstance(handle, InMemoryCatalog)
        assert handle.list_keyspaces() == ["shop"]
