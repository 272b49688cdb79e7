"""Schema model: columns, indexes, tables, keyspaces and the schema root.

Provides frozen Pydantic models for:
- Column definitions with their structural role in the primary key
- Secondary index definitions classified by what they index
- Table definitions, built from the catalog or defined by hand
- Keyspaces grouping tables and user-defined types
- The schema root, loaded from a catalog snapshot

Every model is immutable after construction, holds no reference to the
catalog it came from, and round-trips through pickle and JSON.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Annotated, Any, Literal, TypeVar, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    WrapSerializer,
    model_validator,
)

from cql_explorer.schema.errors import NotFoundError
from cql_explorer.schema.types import ColumnType, UserDefinedType

if TYPE_CHECKING:
    from cql_explorer.catalog.ports import CatalogHandle

K = TypeVar("K")
V = TypeVar("V")


def _freeze(value: dict[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(value))


def _thaw(value: Mapping[Any, Any], handler: SerializerFunctionWrapHandler) -> Any:
    return handler(dict(value))


# Validated as a dict, stored as a read-only view, serialized as a dict.
FrozenMapping = Annotated[dict[K, V], AfterValidator(_freeze), WrapSerializer(_thaw)]


class _FrozenModel(BaseModel):
    """Frozen model whose mapping fields are read-only views.

    Pickles carry the mappings as plain dicts. Every field value is
    immutable, so a deep copy is a shallow one.
    """

    model_config = ConfigDict(frozen=True)

    def __hash__(self) -> int:
        values = (
            frozenset(value.items()) if isinstance(value, Mapping) else value
            for value in self.__dict__.values()
        )
        return hash((type(self), *values))

    def __getstate__(self) -> dict[Any, Any]:
        state = super().__getstate__()
        state["__dict__"] = {
            name: dict(value) if isinstance(value, MappingProxyType) else value
            for name, value in state["__dict__"].items()
        }
        return state

    def __setstate__(self, state: dict[Any, Any]) -> None:
        fields = {
            name: MappingProxyType(value) if isinstance(value, dict) else value
            for name, value in state["__dict__"].items()
        }
        super().__setstate__({**state, "__dict__": fields})

    def __deepcopy__(self, memo: dict[int, Any] | None = None) -> _FrozenModel:
        return self.__copy__()


class ColumnRole(str, Enum):
    """Structural role of a column in its table."""

    PARTITION_KEY = "partition_key"
    CLUSTERING_KEY = "clustering"
    REGULAR = "regular"


class ClusteringOrder(str, Enum):
    """On-disk ordering of a clustering column."""

    ASC = "asc"
    DESC = "desc"


class ColumnRef(BaseModel):
    """Reference to a column by name only.

    Stands in for columns that have no definition, e.g. the result of
    ``BaseTableDef.missing_columns``.
    """

    model_config = ConfigDict(frozen=True)

    column_name: str = Field(..., description="Column name")

    def __str__(self) -> str:
        return self.column_name


class ColumnDef(BaseModel):
    """Definition of one table column."""

    model_config = ConfigDict(frozen=True)

    column_name: str = Field(..., min_length=1, description="Column name, unique within its table")
    column_type: ColumnType = Field(..., description="Semantic type of the column")
    role: ColumnRole = Field(default=ColumnRole.REGULAR, description="Role in the primary key")
    position: int | None = Field(
        default=None,
        ge=0,
        description="Zero-based position within the partition key or clustering key",
    )
    clustering_order: ClusteringOrder | None = Field(
        default=None,
        description="Ordering of a clustering column (ASC when not given)",
    )
    is_static: bool = Field(default=False, description="Whether a regular column is static")

    @model_validator(mode="before")
    @classmethod
    def _default_clustering_order(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("clustering_order") is None:
            role = data.get("role")
            if role in (ColumnRole.CLUSTERING_KEY, ColumnRole.CLUSTERING_KEY.value):
                data = {**data, "clustering_order": ClusteringOrder.ASC}
        return data

    @model_validator(mode="after")
    def _check_role(self) -> ColumnDef:
        if self.role == ColumnRole.REGULAR:
            if self.position is not None:
                raise ValueError(f"Regular column {self.column_name} cannot have a key position")
        elif self.position is None:
            raise ValueError(f"Key column {self.column_name} requires a key position")
        if self.clustering_order is not None and self.role != ColumnRole.CLUSTERING_KEY:
            raise ValueError(f"Only clustering columns have an order: {self.column_name}")
        if self.is_static and self.role != ColumnRole.REGULAR:
            raise ValueError(f"Primary key column {self.column_name} cannot be static")
        return self

    @classmethod
    def partition_key_column(cls, name: str, column_type: ColumnType, position: int) -> ColumnDef:
        """Create a partition key column at the given position."""
        return cls(
            column_name=name,
            column_type=column_type,
            role=ColumnRole.PARTITION_KEY,
            position=position,
        )

    @classmethod
    def clustering_column(
        cls,
        name: str,
        column_type: ColumnType,
        position: int,
        order: ClusteringOrder = ClusteringOrder.ASC,
    ) -> ColumnDef:
        """Create a clustering column at the given position."""
        return cls(
            column_name=name,
            column_type=column_type,
            role=ColumnRole.CLUSTERING_KEY,
            position=position,
            clustering_order=order,
        )

    @classmethod
    def regular_column(cls, name: str, column_type: ColumnType, static: bool = False) -> ColumnDef:
        """Create a regular (optionally static) column."""
        return cls(column_name=name, column_type=column_type, is_static=static)

    @property
    def component_index(self) -> int | None:
        """Position within the clustering key, None for other columns."""
        return self.position if self.role == ColumnRole.CLUSTERING_KEY else None

    @property
    def is_partition_key_column(self) -> bool:
        return self.role == ColumnRole.PARTITION_KEY

    @property
    def is_clustering_column(self) -> bool:
        return self.role == ColumnRole.CLUSTERING_KEY

    @property
    def is_primary_key_column(self) -> bool:
        return self.role != ColumnRole.REGULAR

    @property
    def is_regular_column(self) -> bool:
        return self.role == ColumnRole.REGULAR

    @property
    def is_collection(self) -> bool:
        return self.column_type.is_collection

    @property
    def cql(self) -> str:
        """Column fragment as used in CREATE TABLE."""
        from cql_explorer.schema.cql import quote_identifier

        fragment = f"{quote_identifier(self.column_name)} {self.column_type.cql_name}"
        return f"{fragment} static" if self.is_static else fragment


class IndexKind(str, Enum):
    """What part of its target column an index covers."""

    COLUMN = "column"
    KEYS = "keys"
    VALUES = "values"
    ENTRIES = "entries"
    FULL = "full"


_INDEX_TARGET_PATTERN = re.compile(r"^\s*(keys|values|entries|full)\s*\((.+)\)\s*$", re.IGNORECASE)


def _unquote(identifier: str) -> str:
    identifier = identifier.strip()
    if len(identifier) >= 2 and identifier.startswith('"') and identifier.endswith('"'):
        return identifier[1:-1].replace('""', '"')
    return identifier


class IndexDef(_FrozenModel):
    """Definition of one secondary index."""

    index_name: str = Field(..., min_length=1, description="Index name")
    target_column: str = Field(..., min_length=1, description="Name of the indexed column")
    kind: IndexKind = Field(default=IndexKind.COLUMN, description="Indexed part of the column")
    class_name: str | None = Field(
        default=None,
        description="Implementation class of a custom index",
    )
    options: FrozenMapping[str, str] = Field(
        default_factory=dict, validate_default=True, description="Raw index options"
    )

    @classmethod
    def from_target(
        cls,
        index_name: str,
        target: str,
        class_name: str | None = None,
        options: Mapping[str, str] | None = None,
    ) -> IndexDef:
        """Create an index from a catalog target expression.

        Args:
            index_name: Name of the index.
            target: Target expression, e.g. ``d7_int``, ``keys(d9_map)`` or
                ``entries("Attrs")``.
            class_name: Implementation class for custom indexes.
            options: Raw index options.

        Returns:
            IndexDef with the target column and kind classified.
        """
        match = _INDEX_TARGET_PATTERN.match(target)
        if match:
            kind = IndexKind(match.group(1).lower())
            column = _unquote(match.group(2))
        else:
            kind = IndexKind.COLUMN
            column = _unquote(target)
        return cls(
            index_name=index_name,
            target_column=column,
            kind=kind,
            class_name=class_name,
            options=dict(options or {}),
        )

    @property
    def is_simple(self) -> bool:
        """Whether the index covers the whole value of a column."""
        return self.kind == IndexKind.COLUMN

    @property
    def is_custom(self) -> bool:
        return self.class_name is not None

    @property
    def target(self) -> str:
        """Target expression in CQL form."""
        from cql_explorer.schema.cql import quote_identifier

        column = quote_identifier(self.target_column)
        return column if self.is_simple else f"{self.kind.value}({column})"


class BaseTableDef(_FrozenModel):
    """Shared behaviour of all table definitions.

    Stores the ordered column sequence and derives every key view from it,
    so all table variants agree on partition key, clustering columns,
    primary key and regular columns.
    """

    keyspace_name: str = Field(..., min_length=1, description="Keyspace the table belongs to")
    table_name: str = Field(..., min_length=1, description="Table name")
    columns: tuple[ColumnDef, ...] = Field(..., description="Columns in declaration order")
    indexes: tuple[IndexDef, ...] = Field(default=(), description="Secondary indexes")
    options: FrozenMapping[str, str] = Field(
        default_factory=dict, validate_default=True, description="Table options"
    )

    @model_validator(mode="after")
    def _check_columns(self) -> BaseTableDef:
        names = [column.column_name for column in self.columns]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate columns in {self.qualified_name}: {', '.join(duplicates)}")

        partition_positions = sorted(c.position for c in self.columns if c.is_partition_key_column)
        if not partition_positions:
            raise ValueError(f"Table {self.qualified_name} has no partition key")
        if partition_positions != list(range(len(partition_positions))):
            raise ValueError(
                f"Partition key positions of {self.qualified_name} are not contiguous: "
                f"{partition_positions}"
            )

        clustering_positions = sorted(c.position for c in self.columns if c.is_clustering_column)
        if clustering_positions != list(range(len(clustering_positions))):
            raise ValueError(
                f"Clustering positions of {self.qualified_name} are not contiguous: "
                f"{clustering_positions}"
            )

        known = set(names)
        for index in self.indexes:
            if index.target_column not in known:
                raise ValueError(
                    f"Index {index.index_name} targets unknown column {index.target_column}"
                )
        return self

    @property
    def qualified_name(self) -> str:
        return f"{self.keyspace_name}.{self.table_name}"

    @property
    def partition_key(self) -> tuple[ColumnDef, ...]:
        """Partition key columns ordered by key position."""
        return tuple(
            sorted(
                (c for c in self.columns if c.is_partition_key_column),
                key=lambda c: c.position,
            )
        )

    @property
    def clustering_columns(self) -> tuple[ColumnDef, ...]:
        """Clustering columns ordered by component index."""
        return tuple(
            sorted(
                (c for c in self.columns if c.is_clustering_column),
                key=lambda c: c.position,
            )
        )

    @property
    def primary_key(self) -> tuple[ColumnDef, ...]:
        return self.partition_key + self.clustering_columns

    @property
    def regular_columns(self) -> tuple[ColumnDef, ...]:
        """Columns outside the primary key, static ones included, in declaration order."""
        return tuple(c for c in self.columns if c.is_regular_column)

    @property
    def static_columns(self) -> tuple[ColumnDef, ...]:
        return tuple(c for c in self.columns if c.is_static)

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.column_name for c in self.columns)

    @property
    def indexed_columns(self) -> frozenset[ColumnDef]:
        """Columns covered by a whole-value index.

        Columns indexed only through collection keys, values or entries are
        left out; those indexes are still listed in ``indexes``.
        """
        targets = {index.target_column for index in self.indexes if index.is_simple}
        return frozenset(c for c in self.columns if c.column_name in targets)

    @property
    def cql(self) -> str:
        """CREATE TABLE statement for this table."""
        from cql_explorer.schema.cql import create_table_cql

        return create_table_cql(self)

    def contains_column(self, name: str) -> bool:
        return any(c.column_name == name for c in self.columns)

    def column_by_name(self, name: str) -> ColumnDef:
        """Get a column definition by name.

        Raises:
            NotFoundError: If the table has no such column.
        """
        for column in self.columns:
            if column.column_name == name:
                return column
        raise NotFoundError("column", name, parent=self.qualified_name)

    def column_by_index(self, index: int) -> ColumnDef:
        """Get a column definition by its declaration position.

        Raises:
            IndexError: If the index is out of range.
        """
        return self.columns[index]

    def missing_columns(
        self, requested: str | Iterable[str | ColumnRef | ColumnDef]
    ) -> tuple[ColumnRef, ...]:
        """Find requested columns the table does not define.

        Args:
            requested: Column names, or objects with a ``column_name``. A
                single string is one column name.

        Returns:
            References to the absent columns in the order they were first
            requested. A name requested more than once is reported once.
        """
        if isinstance(requested, str):
            requested = (requested,)
        known = set(self.column_names)
        missing: dict[str, ColumnRef] = {}
        for item in requested:
            name = item if isinstance(item, str) else item.column_name
            if name not in known and name not in missing:
                missing[name] = ColumnRef(column_name=name)
        return tuple(missing.values())


class CatalogTableDef(BaseTableDef):
    """Table definition read from the catalog."""

    source: Literal["catalog"] = "catalog"
    is_view: bool = Field(default=False, description="Whether the table is a materialized view")


ColumnSpec = Union[ColumnDef, tuple[str, Union[ColumnType, str]]]


def _column_from_spec(spec: ColumnSpec) -> tuple[str, ColumnType, ColumnDef | None]:
    if isinstance(spec, ColumnDef):
        return spec.column_name, spec.column_type, spec
    name, column_type = spec
    if isinstance(column_type, str):
        from cql_explorer.schema.resolver import resolve_type

        column_type = resolve_type(column_type)
    return name, column_type, None


class DefaultTableDef(BaseTableDef):
    """Table definition built from explicit values.

    Used for tables that do not exist in the catalog yet, e.g. targets of
    writes that will create them.
    """

    source: Literal["default"] = "default"

    @classmethod
    def build(
        cls,
        keyspace_name: str,
        table_name: str,
        partition_key: Sequence[ColumnSpec],
        clustering_columns: Sequence[ColumnSpec] = (),
        regular_columns: Sequence[ColumnSpec] = (),
        indexes: Iterable[IndexDef] = (),
        options: Mapping[str, str] | None = None,
    ) -> DefaultTableDef:
        """Build a table from its key and regular columns.

        Each column is given either as a ``ColumnDef`` or as a
        ``(name, type)`` pair where the type is a ColumnType or a CQL type
        string. Roles and key positions come from the argument a column is
        passed in, and the position within it.

        Args:
            keyspace_name: Keyspace name.
            table_name: Table name.
            partition_key: Partition key columns in key order.
            clustering_columns: Clustering columns in key order.
            regular_columns: Remaining columns.
            indexes: Secondary indexes.
            options: Table options.

        Returns:
            The assembled DefaultTableDef.
        """
        columns: list[ColumnDef] = []

        for position, spec in enumerate(partition_key):
            name, column_type, _ = _column_from_spec(spec)
            columns.append(ColumnDef.partition_key_column(name, column_type, position))

        for position, spec in enumerate(clustering_columns):
            name, column_type, source = _column_from_spec(spec)
            order = (
                source.clustering_order
                if source is not None and source.clustering_order is not None
                else ClusteringOrder.ASC
            )
            columns.append(ColumnDef.clustering_column(name, column_type, position, order))

        for spec in regular_columns:
            name, column_type, source = _column_from_spec(spec)
            static = source.is_static if source is not None else False
            columns.append(ColumnDef.regular_column(name, column_type, static=static))

        return cls(
            keyspace_name=keyspace_name,
            table_name=table_name,
            columns=tuple(columns),
            indexes=tuple(indexes),
            options=dict(options or {}),
        )

    @classmethod
    def from_table_def(cls, table: BaseTableDef) -> DefaultTableDef:
        """Convert any table definition into a DefaultTableDef."""
        return cls.build(
            table.keyspace_name,
            table.table_name,
            partition_key=table.partition_key,
            clustering_columns=table.clustering_columns,
            regular_columns=table.regular_columns,
            indexes=table.indexes,
            options=table.options,
        )


TableDef = Annotated[Union[CatalogTableDef, DefaultTableDef], Field(discriminator="source")]


class KeyspaceDef(_FrozenModel):
    """Tables and user-defined types of one keyspace."""

    keyspace_name: str = Field(..., min_length=1, description="Keyspace name")
    tables: FrozenMapping[str, TableDef] = Field(
        default_factory=dict, validate_default=True, description="Tables by name"
    )
    user_types: FrozenMapping[str, UserDefinedType] = Field(
        default_factory=dict,
        validate_default=True,
        description="User-defined types by name",
    )
    replication: FrozenMapping[str, str] = Field(
        default_factory=dict, validate_default=True, description="Replication options"
    )
    durable_writes: bool = True

    @model_validator(mode="after")
    def _check_members(self) -> KeyspaceDef:
        for name, table in self.tables.items():
            if name != table.table_name:
                raise ValueError(f"Table {table.table_name} registered under name {name}")
            if table.keyspace_name != self.keyspace_name:
                raise ValueError(
                    f"Table {table.qualified_name} does not belong to keyspace {self.keyspace_name}"
                )
        for name, user_type in self.user_types.items():
            if name != user_type.name:
                raise ValueError(f"User type {user_type.name} registered under name {name}")
        return self

    @classmethod
    def from_tables(
        cls,
        keyspace_name: str,
        tables: Iterable[BaseTableDef] = (),
        user_types: Iterable[UserDefinedType] = (),
        **kwargs: Any,
    ) -> KeyspaceDef:
        """Create a keyspace from table and user type definitions."""
        return cls(
            keyspace_name=keyspace_name,
            tables={table.table_name: table for table in tables},
            user_types={udt.name: udt.as_frozen(False) for udt in user_types},
            **kwargs,
        )

    @property
    def table_names(self) -> tuple[str, ...]:
        return tuple(self.tables)

    def table_by_name(self, name: str) -> CatalogTableDef | DefaultTableDef:
        """Get a table by name.

        Raises:
            NotFoundError: If the keyspace has no such table.
        """
        try:
            return self.tables[name]
        except KeyError:
            raise NotFoundError("table", name, parent=self.keyspace_name) from None

    def user_type_by_name(self, name: str) -> UserDefinedType:
        """Get a user-defined type by name.

        The keyspace stores the type definition itself, so the result is
        never frozen. A column declared ``frozen<address>`` holds the same
        type with ``frozen=True``: compare it against
        ``user_type.as_frozen()``, not the returned value.

        Raises:
            NotFoundError: If the keyspace has no such type.
        """
        try:
            return self.user_types[name]
        except KeyError:
            raise NotFoundError("user type", name, parent=self.keyspace_name) from None


class Schema(_FrozenModel):
    """All keyspaces loaded from a catalog."""

    keyspaces: FrozenMapping[str, KeyspaceDef] = Field(
        default_factory=dict, validate_default=True, description="Keyspaces by name"
    )

    @model_validator(mode="after")
    def _check_keyspaces(self) -> Schema:
        for name, keyspace in self.keyspaces.items():
            if name != keyspace.keyspace_name:
                raise ValueError(f"Keyspace {keyspace.keyspace_name} registered under name {name}")
        return self

    @classmethod
    def from_keyspaces(cls, keyspaces: Iterable[KeyspaceDef]) -> Schema:
        return cls(keyspaces={keyspace.keyspace_name: keyspace for keyspace in keyspaces})

    @classmethod
    def from_catalog(
        cls,
        handle: CatalogHandle,
        keyspace: str | None = None,
        table: str | None = None,
    ) -> Schema:
        """Load a schema from a catalog.

        Args:
            handle: Catalog to read from.
            keyspace: Load only this keyspace.
            table: Load only this table. Meant to be combined with ``keyspace``.

        Returns:
            The loaded Schema.

        Raises:
            NotFoundError: If the keyspace filter names an absent keyspace.
        """
        from cql_explorer.schema.loader import schema_from_catalog

        return schema_from_catalog(handle, keyspace=keyspace, table=table)

    @staticmethod
    def table_from_catalog(handle: CatalogHandle, keyspace: str, table: str) -> CatalogTableDef:
        """Load a single table from a catalog.

        Raises:
            NotFoundError: If the keyspace or table does not exist.
        """
        from cql_explorer.schema.loader import table_from_catalog

        return table_from_catalog(handle, keyspace, table)

    @property
    def keyspace_names(self) -> tuple[str, ...]:
        return tuple(self.keyspaces)

    @property
    def tables(self) -> tuple[CatalogTableDef | DefaultTableDef, ...]:
        """Every table of every keyspace."""
        return tuple(table for keyspace in self.keyspaces.values() for table in keyspace.tables.values())

    def keyspace_by_name(self, name: str) -> KeyspaceDef:
        """Get a keyspace by name.

        Raises:
            NotFoundError: If the schema has no such keyspace.
        """
        try:
            return self.keyspaces[name]
        except KeyError:
            raise NotFoundError("keyspace", name) from None
