"""Shared utility functions for API routes.

Provides common helpers for:
- Mapping schema errors to HTTP errors
- Applying the configured default filters
"""

from __future__ import annotations

from fastapi import HTTPException

from cql_explorer.config import get_settings
from cql_explorer.schema.errors import ConnectivityError, NotFoundError, UnsupportedTypeError


def _to_http_error(error: Exception) -> HTTPException:
    """Map a schema error to the HTTP error reported to the client.

    Args:
        error: NotFoundError, UnsupportedTypeError or ConnectivityError.

    Returns:
        HTTPException with 404, 422 or 503 status respectively.
    """
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, UnsupportedTypeError):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, ConnectivityError):
        return HTTPException(status_code=503, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _check_keyspace_allowed(keyspace: str) -> None:
    """Reject keyspaces outside the configured keyspace filter.

    Raises:
        HTTPException: 404 if a keyspace filter is configured and differs.
    """
    allowed = get_settings().filters.keyspace
    if allowed is not None and keyspace != allowed:
        raise HTTPException(status_code=404, detail=f"Keyspace not found: {keyspace}")


def _table_filter_for(keyspace: str) -> str | None:
    """Configured table filter, when it applies to the keyspace."""
    filters = get_settings().filters
    if filters.keyspace == keyspace:
        return filters.table
    return None
