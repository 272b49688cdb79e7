"""Schema model package for CQL Explorer."""

from cql_explorer.schema.errors import (
    ConnectivityError,
    NotFoundError,
    SchemaError,
    UnsupportedTypeError,
)
from cql_explorer.schema.models import (
    BaseTableDef,
    CatalogTableDef,
    ClusteringOrder,
    ColumnDef,
    ColumnRef,
    ColumnRole,
    DefaultTableDef,
    IndexDef,
    IndexKind,
    KeyspaceDef,
    Schema,
    TableDef,
)
from cql_explorer.schema.resolver import TypeDescriptor, TypeResolver, parse_type, resolve_type
from cql_explorer.schema.types import (
    ColumnType,
    ListType,
    MapType,
    ScalarKind,
    ScalarType,
    SetType,
    TupleType,
    UserDefinedType,
)

__all__ = [
    "BaseTableDef",
    "CatalogTableDef",
    "ClusteringOrder",
    "ColumnDef",
    "ColumnRef",
    "ColumnRole",
    "ColumnType",
    "ConnectivityError",
    "DefaultTableDef",
    "IndexDef",
    "IndexKind",
    "KeyspaceDef",
    "ListType",
    "MapType",
    "NotFoundError",
    "ScalarKind",
    "ScalarType",
    "Schema",
    "SchemaError",
    "SetType",
    "TableDef",
    "TupleType",
    "TypeDescriptor",
    "TypeResolver",
    "UnsupportedTypeError",
    "UserDefinedType",
    "parse_type",
    "resolve_type",
]
