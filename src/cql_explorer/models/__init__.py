"""API models package for CQL Explorer."""

from cql_explorer.models.catalog import (
    ColumnSchema,
    IndexSchema,
    KeyspaceResponse,
    ListKeyspacesResponse,
    MissingColumnsRequest,
    MissingColumnsResponse,
    TableCqlResponse,
    TableSchemaResponse,
    UserTypeField,
    UserTypeSchema,
)

__all__ = [
    "ColumnSchema",
    "IndexSchema",
    "KeyspaceResponse",
    "ListKeyspacesResponse",
    "MissingColumnsRequest",
    "MissingColumnsResponse",
    "TableCqlResponse",
    "TableSchemaResponse",
    "UserTypeField",
    "UserTypeSchema",
]
