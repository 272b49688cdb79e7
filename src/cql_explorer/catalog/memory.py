"""In-memory catalog backed by a snapshot.

Serves the same listings as a live catalog from plain data, so a schema can
be loaded offline, from a JSON file, or in tests. A snapshot can be captured
from any other catalog handle.

Snapshot layout::

    {
      "keyspaces": {
        "shop": {
          "replication": {"class": "SimpleStrategy", "replication_factor": "1"},
          "durable_writes": true,
          "user_types": {"address": [["street", "text"], ["zip", "int"]]},
          "tables": {
            "orders": {
              "columns": [
                {"name": "id", "type": "uuid", "kind": "partition_key", "position": 0}
              ],
              "indexes": [{"name": "orders_by_zip", "target": "zip"}],
              "options": {"comment": ""},
              "view": false
            }
          }
        }
      }
    }
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cql_explorer.catalog.ports import (
    CatalogDetails,
    ColumnDescriptor,
    IndexDescriptor,
    KeyspaceDescriptor,
    UserTypeDescriptor,
)
from cql_explorer.schema.errors import NotFoundError

if TYPE_CHECKING:
    from cql_explorer.catalog.ports import CatalogHandle


@dataclass(frozen=True)
class TableSnapshot:
    """Raw metadata of one table."""

    columns: tuple[ColumnDescriptor, ...]
    indexes: tuple[IndexDescriptor, ...] = ()
    options: dict[str, str] = field(default_factory=dict)
    view: bool = False


@dataclass(frozen=True)
class KeyspaceSnapshot:
    """Raw metadata of one keyspace."""

    tables: dict[str, TableSnapshot] = field(default_factory=dict)
    user_types: tuple[UserTypeDescriptor, ...] = ()
    replication: dict[str, str] = field(default_factory=dict)
    durable_writes: bool = True


class InMemoryCatalog:
    """Catalog handle over snapshot data.

    Listings of unknown keyspaces or tables are empty, as with a live
    catalog; only ``describe_keyspace`` raises for an unknown keyspace.
    """

    def __init__(self, keyspaces: dict[str, KeyspaceSnapshot] | None = None) -> None:
        self._keyspaces = dict(keyspaces or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryCatalog:
        """Create a catalog from snapshot data (see module docstring)."""
        keyspaces: dict[str, KeyspaceSnapshot] = {}
        for keyspace_name, keyspace in data.get("keyspaces", {}).items():
            tables = {
                table_name: TableSnapshot(
                    columns=tuple(ColumnDescriptor(**column) for column in table.get("columns", [])),
                    indexes=tuple(IndexDescriptor(**index) for index in table.get("indexes", [])),
                    options=dict(table.get("options", {})),
                    view=bool(table.get("view", False)),
                )
                for table_name, table in keyspace.get("tables", {}).items()
            }
            user_types = tuple(
                UserTypeDescriptor(name=name, fields=tuple((f, t) for f, t in fields))
                for name, fields in keyspace.get("user_types", {}).items()
            )
            keyspaces[keyspace_name] = KeyspaceSnapshot(
                tables=tables,
                user_types=user_types,
                replication=dict(keyspace.get("replication", {})),
                durable_writes=bool(keyspace.get("durable_writes", True)),
            )
        return cls(keyspaces)

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryCatalog:
        """Load a catalog from a JSON snapshot file.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        with Path(path).open(encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def capture(cls, handle: CatalogHandle, keyspaces: list[str] | None = None) -> InMemoryCatalog:
        """Snapshot another catalog.

        Args:
            handle: Catalog to read.
            keyspaces: Capture only these keyspaces. Defaults to all.

        Returns:
            An InMemoryCatalog holding the captured listings.
        """
        details = handle if isinstance(handle, CatalogDetails) else None
        snapshots: dict[str, KeyspaceSnapshot] = {}
        for keyspace in keyspaces if keyspaces is not None else handle.list_keyspaces():
            views = set(details.list_views(keyspace)) if details else set()
            tables = {
                table: TableSnapshot(
                    columns=tuple(handle.list_columns(keyspace, table)),
                    indexes=tuple(handle.list_indexes(keyspace, table)),
                    options=dict(details.table_options(keyspace, table)) if details else {},
                    view=table in views,
                )
                for table in handle.list_tables(keyspace)
            }
            descriptor = details.describe_keyspace(keyspace) if details else None
            snapshots[keyspace] = KeyspaceSnapshot(
                tables=tables,
                user_types=tuple(handle.list_user_types(keyspace)),
                replication=dict(descriptor.replication) if descriptor else {},
                durable_writes=descriptor.durable_writes if descriptor else True,
            )
        return cls(snapshots)

    def to_dict(self) -> dict[str, Any]:
        """Export the snapshot in the layout ``from_dict`` reads."""
        return {
            "keyspaces": {
                keyspace_name: {
                    "replication": dict(keyspace.replication),
                    "durable_writes": keyspace.durable_writes,
                    "user_types": {ut.name: [list(f) for f in ut.fields] for ut in keyspace.user_types},
                    "tables": {
                        table_name: {
                            "columns": [asdict(c) for c in table.columns],
                            "indexes": [asdict(i) for i in table.indexes],
                            "options": dict(table.options),
                            "view": table.view,
                        }
                        for table_name, table in keyspace.tables.items()
                    },
                }
                for keyspace_name, keyspace in self._keyspaces.items()
            }
        }

    def _table(self, keyspace: str, table: str) -> TableSnapshot | None:
        snapshot = self._keyspaces.get(keyspace)
        return snapshot.tables.get(table) if snapshot else None

    def list_keyspaces(self) -> list[str]:
        return list(self._keyspaces)

    def list_tables(self, keyspace: str) -> list[str]:
        snapshot = self._keyspaces.get(keyspace)
        return list(snapshot.tables) if snapshot else []

    def list_views(self, keyspace: str) -> list[str]:
        snapshot = self._keyspaces.get(keyspace)
        if snapshot is None:
            return []
        return [name for name, table in snapshot.tables.items() if table.view]

    def list_columns(self, keyspace: str, table: str) -> list[ColumnDescriptor]:
        snapshot = self._table(keyspace, table)
        return list(snapshot.columns) if snapshot else []

    def list_indexes(self, keyspace: str, table: str) -> list[IndexDescriptor]:
        snapshot = self._table(keyspace, table)
        return list(snapshot.indexes) if snapshot else []

    def list_user_types(self, keyspace: str) -> list[UserTypeDescriptor]:
        snapshot = self._keyspaces.get(keyspace)
        return list(snapshot.user_types) if snapshot else []

    def describe_keyspace(self, keyspace: str) -> KeyspaceDescriptor:
        snapshot = self._keyspaces.get(keyspace)
        if snapshot is None:
            raise NotFoundError("keyspace", keyspace)
        return KeyspaceDescriptor(
            name=keyspace,
            replication=dict(snapshot.replication),
            durable_writes=snapshot.durable_writes,
        )

    def table_options(self, keyspace: str, table: str) -> dict[str, str]:
        snapshot = self._table(keyspace, table)
        return dict(snapshot.options) if snapshot else {}

    def health_check(self) -> dict[str, bool | str]:
        """Snapshots are always reachable."""
        return {"healthy": True, "catalog": True}
