"""Catalog service for Cassandra schema metadata.

This module provides a service wrapper around a cassandra-driver session,
reading the ``system_schema`` tables. It handles connection management and
lazy initialization, and implements the ``CatalogHandle`` interface the
schema loader consumes.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from cql_explorer.catalog.ports import (
    ColumnDescriptor,
    IndexDescriptor,
    KeyspaceDescriptor,
    UserTypeDescriptor,
)
from cql_explorer.config import get_settings
from cql_explorer.observability import get_logger
from cql_explorer.schema.errors import ConnectivityError, NotFoundError

if TYPE_CHECKING:
    from cassandra.cluster import Cluster, Session

    from cql_explorer.catalog.ports import CatalogHandle
    from cql_explorer.config import Settings

logger = get_logger(__name__)

_KIND_RANK = {"partition_key": 0, "clustering": 1}


class CatalogService:
    """Service for catalog reads using cassandra-driver.

    This class manages a driver session with:
    - Lazy initialization on first use
    - Configuration-driven cluster setup (contact points, auth, local DC)
    - Rows read from ``system_schema`` as plain dictionaries

    The service is designed to be created once and reused throughout
    the application lifecycle (typically via dependency injection).
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the catalog service.

        Args:
            settings: Application settings. If None, uses cached settings.
        """
        self._settings = settings or get_settings()
        self._lock = threading.Lock()
        self._cluster: Cluster | None = None
        self._session: Session | None = None

    def _build_cluster_options(self) -> dict[str, Any]:
        """Build cluster options from configuration.

        Returns:
            Keyword arguments for ``cassandra.cluster.Cluster``.
        """
        from cassandra.cluster import EXEC_PROFILE_DEFAULT, ExecutionProfile
        from cassandra.policies import DCAwareRoundRobinPolicy, RoundRobinPolicy
        from cassandra.query import dict_factory

        catalog = self._settings.catalog

        if catalog.local_datacenter:
            policy = DCAwareRoundRobinPolicy(local_dc=catalog.local_datacenter)
        else:
            policy = RoundRobinPolicy()

        profile = ExecutionProfile(
            load_balancing_policy=policy,
            request_timeout=catalog.request_timeout,
            row_factory=dict_factory,
        )

        options: dict[str, Any] = {
            "contact_points": list(catalog.contact_points),
            "port": catalog.port,
            "connect_timeout": catalog.connect_timeout,
            "execution_profiles": {EXEC_PROFILE_DEFAULT: profile},
        }

        if catalog.username:
            from cassandra.auth import PlainTextAuthProvider

            options["auth_provider"] = PlainTextAuthProvider(
                username=catalog.username,
                password=catalog.password or "",
            )

        return options

    @property
    def session(self) -> Session:
        """Get the driver session (lazy initialization).

        Returns:
            Connected cassandra-driver Session.

        Raises:
            ConnectivityError: If no contact point can be reached.
        """
        if self._session is None:
            with self._lock:
                if self._session is None:
                    self._session = self._initialize_session()
        return self._session

    def _initialize_session(self) -> Session:
        """Connect to the cluster.

        Returns:
            Connected driver session.

        Raises:
            ConnectivityError: If no contact point can be reached.
        """
        from cassandra.cluster import Cluster, NoHostAvailable

        contact_points = ", ".join(self._settings.catalog.contact_points)
        cluster = Cluster(**self._build_cluster_options())
        try:
            session = cluster.connect()
        except NoHostAvailable as e:
            cluster.shutdown()
            raise ConnectivityError(f"Cannot reach catalog at {contact_points}: {e}") from e

        logger.info("catalog_connected", contact_points=contact_points)
        self._cluster = cluster
        return session

    def _rows(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        """Run a catalog query.

        Raises:
            ConnectivityError: If the cluster cannot serve the read.
        """
        from cassandra import OperationTimedOut, ReadTimeout, Unavailable
        from cassandra.cluster import NoHostAvailable

        session = self.session
        try:
            return list(session.execute(query, params))
        except (NoHostAvailable, OperationTimedOut, ReadTimeout, Unavailable) as e:
            logger.warning("catalog_read_failed", error=str(e))
            raise ConnectivityError(f"Catalog read failed: {e}") from e

    def list_keyspaces(self) -> list[str]:
        """List keyspace names.

        Returns:
            Keyspace names as reported by ``system_schema.keyspaces``.
        """
        rows = self._rows("SELECT keyspace_name FROM system_schema.keyspaces")
        return [row["keyspace_name"] for row in rows]

    def list_tables(self, keyspace: str) -> list[str]:
        """List tables and materialized views in a keyspace.

        Args:
            keyspace: Keyspace name.

        Returns:
            Table names followed by view names. Empty if the keyspace
            does not exist.
        """
        rows = self._rows(
            "SELECT table_name FROM system_schema.tables WHERE keyspace_name = %s",
            (keyspace,),
        )
        return [row["table_name"] for row in rows] + self.list_views(keyspace)

    def list_views(self, keyspace: str) -> list[str]:
        """List materialized views in a keyspace."""
        rows = self._rows(
            "SELECT view_name FROM system_schema.views WHERE keyspace_name = %s",
            (keyspace,),
        )
        return [row["view_name"] for row in rows]

    def list_columns(self, keyspace: str, table: str) -> list[ColumnDescriptor]:
        """List the columns of a table.

        The catalog stores columns ordered by name; they are returned with
        the partition key first, then the clustering columns, each in key
        order, followed by the remaining columns in catalog order.

        Args:
            keyspace: Keyspace name.
            table: Table or view name.

        Returns:
            Column descriptors in table order.
        """
        rows = self._rows(
            "SELECT column_name, type, kind, position, clustering_order "
            "FROM system_schema.columns WHERE keyspace_name = %s AND table_name = %s",
            (keyspace, table),
        )
        columns = [
            ColumnDescriptor(
                name=row["column_name"],
                type=row["type"],
                kind=row["kind"],
                position=row["position"] if row["position"] is not None else -1,
                clustering_order=row.get("clustering_order") or "none",
            )
            for row in rows
        ]
        return sorted(
            columns,
            key=lambda c: (_KIND_RANK.get(c.kind, 2), c.position if c.kind in _KIND_RANK else 0),
        )

    def list_indexes(self, keyspace: str, table: str) -> list[IndexDescriptor]:
        """List the secondary indexes of a table.

        Args:
            keyspace: Keyspace name.
            table: Table name.

        Returns:
            Index descriptors, with the target expression taken from the
            index options.
        """
        rows = self._rows(
            "SELECT index_name, kind, options "
            "FROM system_schema.indexes WHERE keyspace_name = %s AND table_name = %s",
            (keyspace, table),
        )
        indexes = []
        for row in rows:
            options = dict(row["options"] or {})
            indexes.append(
                IndexDescriptor(
                    name=row["index_name"],
                    target=options.get("target", ""),
                    kind=row["kind"],
                    options=options,
                )
            )
        return indexes

    def list_user_types(self, keyspace: str) -> list[UserTypeDescriptor]:
        """List the user-defined types of a keyspace.

        Args:
            keyspace: Keyspace name.

        Returns:
            User type descriptors with fields in declaration order.
        """
        rows = self._rows(
            "SELECT type_name, field_names, field_types "
            "FROM system_schema.types WHERE keyspace_name = %s",
            (keyspace,),
        )
        return [
            UserTypeDescriptor(
                name=row["type_name"],
                fields=tuple(zip(row["field_names"] or [], row["field_types"] or [])),
            )
            for row in rows
        ]

    def describe_keyspace(self, keyspace: str) -> KeyspaceDescriptor:
        """Get replication settings of a keyspace.

        Raises:
            NotFoundError: If the keyspace does not exist.
        """
        rows = self._rows(
            "SELECT keyspace_name, replication, durable_writes "
            "FROM system_schema.keyspaces WHERE keyspace_name = %s",
            (keyspace,),
        )
        if not rows:
            raise NotFoundError("keyspace", keyspace)
        row = rows[0]
        durable_writes = row["durable_writes"]
        return KeyspaceDescriptor(
            name=row["keyspace_name"],
            replication=dict(row["replication"] or {}),
            durable_writes=True if durable_writes is None else bool(durable_writes),
        )

    def table_options(self, keyspace: str, table: str) -> dict[str, str]:
        """Get the options of a table or view as strings."""
        query = (
            "SELECT comment, default_time_to_live, gc_grace_seconds "
            "FROM system_schema.{source} WHERE keyspace_name = %s AND {name} = %s"
        )
        rows = self._rows(query.format(source="tables", name="table_name"), (keyspace, table))
        if not rows:
            rows = self._rows(query.format(source="views", name="view_name"), (keyspace, table))
        if not rows:
            return {}
        return {key: str(value) for key, value in rows[0].items() if value not in (None, "")}

    def health_check(self) -> dict[str, bool | str]:
        """Check catalog connectivity.

        Returns:
            Dictionary with health status:
            - healthy: Overall health status
            - catalog: Catalog connectivity status
            - release_version: Server version if reachable
            - error: Error message if unhealthy
        """
        result: dict[str, bool | str] = {"healthy": False, "catalog": False}
        try:
            rows = self._rows("SELECT release_version FROM system.local")
        except Exception as e:
            result["error"] = f"Catalog error: {e}"
            return result

        if rows:
            result["release_version"] = str(rows[0]["release_version"])
        result["catalog"] = True
        result["healthy"] = True
        return result

    @property
    def is_initialized(self) -> bool:
        """Check if the session is connected."""
        return self._session is not None

    def close(self) -> None:
        """Close the catalog connection.

        This method cleans up resources and should be called when
        the service is no longer needed.
        """
        with self._lock:
            if self._cluster is not None:
                self._cluster.shutdown()
            self._cluster = None
            self._session = None


_catalog_service: CatalogHandle | None = None


def get_catalog_service() -> CatalogHandle:
    """Get the global catalog instance (cached).

    Serves the JSON snapshot named by ``catalog.snapshot_path`` when it is
    configured, and a live CatalogService otherwise.

    Returns:
        The global catalog handle.
    """
    global _catalog_service
    if _catalog_service is None:
        settings = get_settings()
        if settings.catalog.snapshot_path:
            from cql_explorer.catalog.memory import InMemoryCatalog

            _catalog_service = InMemoryCatalog.from_json_file(settings.catalog.snapshot_path)
        else:
            _catalog_service = CatalogService(settings)
    return _catalog_service


def reset_catalog_service() -> None:
    """Reset global catalog service (useful for testing)."""
    global _catalog_service
    if isinstance(_catalog_service, CatalogService):
        _catalog_service.close()
    _catalog_service = None
