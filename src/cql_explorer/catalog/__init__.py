"""Catalog access for CQL Explorer."""

from cql_explorer.catalog.memory import InMemoryCatalog
from cql_explorer.catalog.ports import (
    CatalogDetails,
    CatalogHandle,
    ColumnDescriptor,
    IndexDescriptor,
    KeyspaceDescriptor,
    UserTypeDescriptor,
)
from cql_explorer.catalog.service import CatalogService, get_catalog_service, reset_catalog_service

__all__ = [
    "CatalogDetails",
    "CatalogHandle",
    "CatalogService",
    "ColumnDescriptor",
    "InMemoryCatalog",
    "IndexDescriptor",
    "KeyspaceDescriptor",
    "UserTypeDescriptor",
    "get_catalog_service",
    "reset_catalog_service",
]
