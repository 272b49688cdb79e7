"""Schema API routes for browsing keyspaces and tables.

Provides endpoints for:
- Listing keyspaces
- Getting keyspace details with tables and user types
- Getting a table's schema and key structure
- Rendering a table's CQL and checking for missing columns
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from cql_explorer.api.routes.utils import (
    _check_keyspace_allowed,
    _table_filter_for,
    _to_http_error,
)
from cql_explorer.catalog.service import get_catalog_service
from cql_explorer.config import get_settings
from cql_explorer.models.catalog import (
    KeyspaceResponse,
    ListKeyspacesResponse,
    MissingColumnsRequest,
    MissingColumnsResponse,
    TableCqlResponse,
    TableSchemaResponse,
)
from cql_explorer.schema.cql import table_statements
from cql_explorer.schema.errors import SchemaError
from cql_explorer.schema.models import BaseTableDef, Schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/schema", tags=["schema"])


def _load_table(keyspace: str, table: str) -> BaseTableDef:
    """Load a table, enforcing the configured filters.

    Raises:
        HTTPException: 404 if the table is filtered out or does not exist,
            422 for unsupported types, 503 if the catalog is unreachable.
    """
    _check_keyspace_allowed(keyspace)
    allowed_table = _table_filter_for(keyspace)
    if allowed_table is not None and table != allowed_table:
        raise HTTPException(status_code=404, detail=f"Table not found: {table} in {keyspace}")

    try:
        return Schema.table_from_catalog(get_catalog_service(), keyspace, table)
    except SchemaError as e:
        raise _to_http_error(e) from e


@router.get("/keyspaces", response_model=ListKeyspacesResponse)
def list_keyspaces() -> ListKeyspacesResponse:
    """List keyspaces in the catalog.

    Returns:
        ListKeyspacesResponse with keyspace names. Only the configured
        keyspace is listed when a keyspace filter is set.

    Raises:
        HTTPException: 503 if the catalog is unreachable.
    """
    try:
        keyspaces = list(get_catalog_service().list_keyspaces())
    except SchemaError as e:
        raise _to_http_error(e) from e

    allowed = get_settings().filters.keyspace
    if allowed is not None:
        keyspaces = [name for name in keyspaces if name == allowed]

    return ListKeyspacesResponse(keyspaces=keyspaces)


@router.get("/keyspaces/{keyspace}", response_model=KeyspaceResponse)
def get_keyspace(keyspace: str) -> KeyspaceResponse:
    """Get a keyspace with its tables and user types.

    Args:
        keyspace: Keyspace name.

    Returns:
        KeyspaceResponse with table names, user types and replication.

    Raises:
        HTTPException: 404 if the keyspace doesn't exist.
    """
    _check_keyspace_allowed(keyspace)

    try:
        schema = Schema.from_catalog(
            get_catalog_service(),
            keyspace=keyspace,
            table=_table_filter_for(keyspace),
        )
    except SchemaError as e:
        raise _to_http_error(e) from e

    logger.debug("Loaded keyspace %s with %d tables", keyspace, len(schema.tables))
    return KeyspaceResponse.from_keyspace(schema.keyspace_by_name(keyspace))


@router.get("/keyspaces/{keyspace}/tables/{table}", response_model=TableSchemaResponse)
def get_table_schema(keyspace: str, table: str) -> TableSchemaResponse:
    """Get the schema of a table.

    Args:
        keyspace: Keyspace name.
        table: Table name.

    Returns:
        TableSchemaResponse with columns, key structure and indexes.

    Raises:
        HTTPException: 404 if the keyspace or table doesn't exist.
    """
    return TableSchemaResponse.from_table(_load_table(keyspace, table))


@router.get("/keyspaces/{keyspace}/tables/{table}/cql", response_model=TableCqlResponse)
def get_table_cql(keyspace: str, table: str) -> TableCqlResponse:
    """Get the CQL statements that recreate a table.

    Args:
        keyspace: Keyspace name.
        table: Table name.

    Returns:
        TableCqlResponse with user type, table and index statements.

    Raises:
        HTTPException: 404 if the keyspace or table doesn't exist.
    """
    table_def = _load_table(keyspace, table)
    return TableCqlResponse(
        keyspace=keyspace,
        name=table,
        statements=table_statements(table_def),
    )


@router.post(
    "/keyspaces/{keyspace}/tables/{table}/missing-columns",
    response_model=MissingColumnsResponse,
)
def check_missing_columns(
    keyspace: str,
    table: str,
    request: MissingColumnsRequest,
) -> MissingColumnsResponse:
    """Check which requested columns a table does not define.

    Args:
        keyspace: Keyspace name.
        table: Table name.
        request: Requested column names.

    Returns:
        MissingColumnsResponse with absent names in request order.

    Raises:
        HTTPException: 404 if the keyspace or table doesn't exist.
    """
    table_def = _load_table(keyspace, table)
    missing = table_def.missing_columns(request.columns)
    return MissingColumnsResponse(missing=[ref.column_name for ref in missing])
