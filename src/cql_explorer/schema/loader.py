"""Schema loading from a catalog handle.

Builds the immutable schema model from the raw descriptors a catalog lists:
- Column descriptors become ColumnDefs with resolved types and key roles
- Index descriptors become IndexDefs classified by their target expression
- User type descriptors are resolved once per keyspace and shared by its tables

Catalog errors are not caught here; they reach the caller unchanged.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from cql_explorer.catalog.ports import CatalogDetails
from cql_explorer.observability import (
    get_logger,
    get_tracer,
    record_schema_load_duration,
    record_tables_loaded,
)
from cql_explorer.schema.errors import NotFoundError, SchemaError
from cql_explorer.schema.models import (
    CatalogTableDef,
    ClusteringOrder,
    ColumnDef,
    IndexDef,
    KeyspaceDef,
    Schema,
)
from cql_explorer.schema.resolver import TypeResolver

if TYPE_CHECKING:
    from cql_explorer.catalog.ports import (
        CatalogHandle,
        ColumnDescriptor,
        IndexDescriptor,
    )

logger = get_logger(__name__)


def build_column(descriptor: ColumnDescriptor, resolver: TypeResolver) -> ColumnDef:
    """Build a column definition from its catalog descriptor.

    Args:
        descriptor: Raw column metadata.
        resolver: Resolver for the keyspace the column's table belongs to.

    Returns:
        ColumnDef with resolved type, role and key position.

    Raises:
        UnsupportedTypeError: If the column type cannot be resolved.
        SchemaError: If the column kind is unknown.
    """
    column_type = resolver.resolve(descriptor.type)
    kind = descriptor.kind.lower()

    if kind == "partition_key":
        return ColumnDef.partition_key_column(descriptor.name, column_type, descriptor.position)
    if kind == "clustering":
        raw_order = descriptor.clustering_order.lower()
        order = ClusteringOrder(raw_order) if raw_order in ("asc", "desc") else ClusteringOrder.ASC
        return ColumnDef.clustering_column(descriptor.name, column_type, descriptor.position, order)
    if kind in ("regular", "static"):
        return ColumnDef.regular_column(descriptor.name, column_type, static=kind == "static")

    raise SchemaError(f"Unknown kind '{descriptor.kind}' for column {descriptor.name}")


def build_index(descriptor: IndexDescriptor) -> IndexDef:
    """Build an index definition from its catalog descriptor."""
    options = dict(descriptor.options)
    class_name = options.get("class_name") if descriptor.kind.upper() == "CUSTOM" else None
    return IndexDef.from_target(
        descriptor.name,
        descriptor.target,
        class_name=class_name,
        options=options,
    )


def _resolver_for(handle: CatalogHandle, keyspace: str) -> TypeResolver:
    user_types = {ut.name: ut.fields for ut in handle.list_user_types(keyspace)}
    return TypeResolver(user_types, keyspace=keyspace)


def _details(handle: CatalogHandle) -> CatalogDetails | None:
    return handle if isinstance(handle, CatalogDetails) else None


def _require_keyspace(handle: CatalogHandle, keyspace: str) -> None:
    if keyspace not in handle.list_keyspaces():
        raise NotFoundError("keyspace", keyspace)


def _load_table(
    handle: CatalogHandle,
    keyspace: str,
    table: str,
    resolver: TypeResolver,
    views: frozenset[str] = frozenset(),
) -> CatalogTableDef:
    details = _details(handle)
    with get_tracer().start_as_current_span("schema.load_table") as span:
        span.set_attribute("cql.keyspace", keyspace)
        span.set_attribute("cql.table", table)

        columns = tuple(build_column(d, resolver) for d in handle.list_columns(keyspace, table))
        indexes = tuple(build_index(d) for d in handle.list_indexes(keyspace, table))
        options = dict(details.table_options(keyspace, table)) if details else {}

        table_def = CatalogTableDef(
            keyspace_name=keyspace,
            table_name=table,
            columns=columns,
            indexes=indexes,
            options=options,
            is_view=table in views,
        )
        span.set_attribute("cql.columns", len(columns))

    logger.debug(
        "table_loaded",
        keyspace=keyspace,
        table=table,
        columns=len(columns),
        indexes=len(indexes),
    )
    return table_def


def table_from_catalog(handle: CatalogHandle, keyspace: str, table: str) -> CatalogTableDef:
    """Load one table from the catalog.

    Args:
        handle: Catalog to read from.
        keyspace: Keyspace name.
        table: Table name.

    Returns:
        The table definition.

    Raises:
        NotFoundError: If the keyspace or the table does not exist.
        UnsupportedTypeError: If a column type cannot be resolved.
    """
    _require_keyspace(handle, keyspace)
    if table not in handle.list_tables(keyspace):
        raise NotFoundError("table", table, parent=keyspace)

    details = _details(handle)
    views = frozenset(details.list_views(keyspace)) if details else frozenset()
    return _load_table(handle, keyspace, table, _resolver_for(handle, keyspace), views)


def keyspace_from_catalog(handle: CatalogHandle, keyspace: str, table: str | None = None) -> KeyspaceDef:
    """Load one keyspace, its user types and its tables.

    Args:
        handle: Catalog to read from.
        keyspace: Keyspace name. Must exist in the catalog.
        table: Load only this table; a keyspace without it gets no tables.

    Returns:
        The keyspace definition.
    """
    resolver = _resolver_for(handle, keyspace)
    details = _details(handle)

    table_names = [name for name in handle.list_tables(keyspace) if table is None or name == table]
    views = frozenset(details.list_views(keyspace)) if details else frozenset()
    tables = [_load_table(handle, keyspace, name, resolver, views) for name in table_names]

    extra = {}
    if details:
        descriptor = details.describe_keyspace(keyspace)
        extra = {
            "replication": dict(descriptor.replication),
            "durable_writes": descriptor.durable_writes,
        }

    return KeyspaceDef.from_tables(
        keyspace,
        tables=tables,
        user_types=resolver.user_types().values(),
        **extra,
    )


def schema_from_catalog(
    handle: CatalogHandle,
    keyspace: str | None = None,
    table: str | None = None,
) -> Schema:
    """Load a schema from the catalog.

    With no filters every keyspace the catalog lists is loaded. With a
    keyspace filter the schema holds exactly that keyspace, and adding a
    table filter restricts it to exactly that table. A table filter is
    meant to be combined with a keyspace filter; on its own it is applied
    to every keyspace.

    Args:
        handle: Catalog to read from.
        keyspace: Load only this keyspace.
        table: Load only this table.

    Returns:
        The loaded Schema.

    Raises:
        NotFoundError: If a filter names a keyspace or table that does not exist.
        UnsupportedTypeError: If a column type cannot be resolved.
    """
    start = time.perf_counter()
    status = "failed"
    try:
        with get_tracer().start_as_current_span("schema.load") as span:
            if keyspace is not None:
                span.set_attribute("cql.keyspace", keyspace)
                _require_keyspace(handle, keyspace)
                if table is not None and table not in handle.list_tables(keyspace):
                    raise NotFoundError("table", table, parent=keyspace)
                keyspace_names = [keyspace]
            else:
                if table is not None:
                    logger.warning("table_filter_without_keyspace", table=table)
                keyspace_names = list(handle.list_keyspaces())

            if table is not None:
                span.set_attribute("cql.table", table)

            schema = Schema.from_keyspaces(
                keyspace_from_catalog(handle, name, table) for name in keyspace_names
            )
        status = "completed"
    finally:
        record_schema_load_duration(time.perf_counter() - start, status)

    table_count = len(schema.tables)
    record_tables_loaded(table_count)
    logger.info("schema_loaded", keyspaces=len(schema.keyspaces), tables=table_count)
    return schema
