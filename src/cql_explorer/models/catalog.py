"""API data models for keyspace and table browsing.

Provides Pydantic models for:
- Keyspace listings and details
- Table schemas with their key structure
- CQL statements and missing column checks
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from cql_explorer.schema.models import BaseTableDef, ColumnDef, IndexDef, KeyspaceDef


class ListKeyspacesResponse(BaseModel):
    """Response for listing keyspaces."""

    keyspaces: list[str] = Field(
        default_factory=list,
        description="Keyspace names",
        examples=[["shop", "analytics"]],
    )


class UserTypeField(BaseModel):
    """A field of a user-defined type."""

    name: str = Field(..., description="Field name")
    type: str = Field(..., description="Field type in CQL form")


class UserTypeSchema(BaseModel):
    """A user-defined type."""

    name: str = Field(..., description="Type name", examples=["address"])
    fields: list[UserTypeField] = Field(default_factory=list, description="Fields in order")


class KeyspaceResponse(BaseModel):
    """Response for keyspace details."""

    name: str = Field(..., description="Keyspace name")
    tables: list[str] = Field(default_factory=list, description="Table names")
    user_types: list[UserTypeSchema] = Field(default_factory=list, description="User types")
    replication: dict[str, str] = Field(default_factory=dict, description="Replication options")
    durable_writes: bool = Field(default=True, description="Whether durable writes are enabled")

    @classmethod
    def from_keyspace(cls, keyspace: KeyspaceDef) -> KeyspaceResponse:
        return cls(
            name=keyspace.keyspace_name,
            tables=list(keyspace.table_names),
            user_types=[
                UserTypeSchema(
                    name=udt.name,
                    fields=[UserTypeField(name=n, type=t.cql_name) for n, t in udt.fields],
                )
                for udt in keyspace.user_types.values()
            ],
            replication=dict(keyspace.replication),
            durable_writes=keyspace.durable_writes,
        )


class ColumnSchema(BaseModel):
    """Represents a column in a table schema."""

    name: str = Field(..., description="Column name")
    type: str = Field(..., description="Column type in CQL form", examples=["map<int, varchar>"])
    role: str = Field(..., description="partition_key, clustering or regular")
    position: int | None = Field(default=None, description="Position within its key")
    component_index: int | None = Field(
        default=None, description="Position within the clustering key"
    )
    clustering_order: str | None = Field(default=None, description="asc or desc")
    is_static: bool = Field(default=False, description="Whether the column is static")

    @classmethod
    def from_column(cls, column: ColumnDef) -> ColumnSchema:
        return cls(
            name=column.column_name,
            type=column.column_type.cql_name,
            role=column.role.value,
            position=column.position,
            component_index=column.component_index,
            clustering_order=column.clustering_order.value if column.clustering_order else None,
            is_static=column.is_static,
        )


class IndexSchema(BaseModel):
    """Represents a secondary index."""

    name: str = Field(..., description="Index name")
    target_column: str = Field(..., description="Indexed column")
    kind: str = Field(..., description="column, keys, values, entries or full")
    class_name: str | None = Field(default=None, description="Custom index class")

    @classmethod
    def from_index(cls, index: IndexDef) -> IndexSchema:
        return cls(
            name=index.index_name,
            target_column=index.target_column,
            kind=index.kind.value,
            class_name=index.class_name,
        )


class TableSchemaResponse(BaseModel):
    """Response for table schema endpoint."""

    keyspace: str = Field(..., description="Keyspace name")
    name: str = Field(..., description="Table name")
    is_view: bool = Field(default=False, description="Whether the table is a materialized view")
    columns: list[ColumnSchema] = Field(default_factory=list, description="Columns in order")
    partition_key: list[str] = Field(default_factory=list, description="Partition key columns")
    clustering_columns: list[str] = Field(default_factory=list, description="Clustering columns")
    regular_columns: list[str] = Field(default_factory=list, description="Non-key columns")
    indexes: list[IndexSchema] = Field(default_factory=list, description="Secondary indexes")
    indexed_columns: list[str] = Field(
        default_factory=list,
        description="Columns with a whole-value index",
    )
    options: dict[str, str] = Field(default_factory=dict, description="Table options")

    @classmethod
    def from_table(cls, table: BaseTableDef) -> TableSchemaResponse:
        indexed = {c.column_name for c in table.indexed_columns}
        return cls(
            keyspace=table.keyspace_name,
            name=table.table_name,
            is_view=getattr(table, "is_view", False),
            columns=[ColumnSchema.from_column(c) for c in table.columns],
            partition_key=[c.column_name for c in table.partition_key],
            clustering_columns=[c.column_name for c in table.clustering_columns],
            regular_columns=[c.column_name for c in table.regular_columns],
            indexes=[IndexSchema.from_index(i) for i in table.indexes],
            indexed_columns=[name for name in table.column_names if name in indexed],
            options=dict(table.options),
        )


class TableCqlResponse(BaseModel):
    """Response for the table DDL endpoint."""

    keyspace: str = Field(..., description="Keyspace name")
    name: str = Field(..., description="Table name")
    statements: list[str] = Field(
        default_factory=list,
        description="CREATE TYPE, CREATE TABLE and CREATE INDEX statements in run order",
    )


class MissingColumnsRequest(BaseModel):
    """Request for checking which columns a table lacks."""

    columns: list[str] = Field(..., description="Requested column names", examples=[["id", "nope"]])


class MissingColumnsResponse(BaseModel):
    """Response listing requested columns the table does not define."""

    missing: list[str] = Field(default_factory=list, description="Absent column names in request order")
