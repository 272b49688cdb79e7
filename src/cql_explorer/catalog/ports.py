"""Catalog collaborator interface.

A catalog handle lists the raw descriptors the schema model is built from.
Implementations own connectivity; their errors reach the caller unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ColumnDescriptor:
    """Raw column metadata.

    Attributes:
        name: Column name.
        type: CQL type string, e.g. ``frozen<address>``.
        kind: ``partition_key``, ``clustering``, ``regular`` or ``static``.
        position: Key position, or -1 for non-key columns.
        clustering_order: ``asc``, ``desc`` or ``none``.
    """

    name: str
    type: str
    kind: str = "regular"
    position: int = -1
    clustering_order: str = "none"


@dataclass(frozen=True)
class IndexDescriptor:
    """Raw secondary index metadata.

    Attributes:
        name: Index name.
        target: Target expression, e.g. ``d7_int`` or ``keys(d9_map)``.
        kind: ``COMPOSITES``, ``KEYS`` or ``CUSTOM``.
        options: Raw index options (``target``, ``class_name``, ...).
    """

    name: str
    target: str
    kind: str = "COMPOSITES"
    options: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UserTypeDescriptor:
    """Raw user-defined type: name plus ordered (field name, type) pairs."""

    name: str
    fields: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class KeyspaceDescriptor:
    """Raw keyspace options."""

    name: str
    replication: dict[str, str] = field(default_factory=dict)
    durable_writes: bool = True


@runtime_checkable
class CatalogHandle(Protocol):
    """What the schema loader needs from a catalog."""

    def list_keyspaces(self) -> Sequence[str]: ...

    def list_tables(self, keyspace: str) -> Sequence[str]: ...

    def list_columns(self, keyspace: str, table: str) -> Sequence[ColumnDescriptor]: ...

    def list_indexes(self, keyspace: str, table: str) -> Sequence[IndexDescriptor]: ...

    def list_user_types(self, keyspace: str) -> Sequence[UserTypeDescriptor]: ...


@runtime_checkable
class CatalogDetails(Protocol):
    """Optional extras a catalog may provide beyond ``CatalogHandle``."""

    def describe_keyspace(self, keyspace: str) -> KeyspaceDescriptor: ...

    def list_views(self, keyspace: str) -> Sequence[str]: ...

    def table_options(self, keyspace: str, table: str) -> dict[str, str]: ...
