"""CQL rendering for schema definitions.

Provides DDL statements for tables, user types and indexes, used to
recreate a definition (or a DefaultTableDef that does not exist yet) in a
cluster.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cql_explorer.schema.models import BaseTableDef, IndexDef
    from cql_explorer.schema.types import UserDefinedType

_UNQUOTED_IDENTIFIER = re.compile(r"^[a-z][a-z0-9_]*$")

RESERVED_KEYWORDS = frozenset(
    {
        "add",
        "allow",
        "alter",
        "and",
        "apply",
        "asc",
        "authorize",
        "batch",
        "begin",
        "by",
        "columnfamily",
        "create",
        "delete",
        "desc",
        "describe",
        "drop",
        "entries",
        "execute",
        "from",
        "full",
        "grant",
        "if",
        "in",
        "index",
        "infinity",
        "insert",
        "into",
        "keyspace",
        "limit",
        "modify",
        "nan",
        "norecursive",
        "not",
        "null",
        "of",
        "on",
        "or",
        "order",
        "primary",
        "rename",
        "replace",
        "revoke",
        "schema",
        "select",
        "set",
        "table",
        "to",
        "token",
        "truncate",
        "unlogged",
        "update",
        "use",
        "using",
        "where",
        "with",
    }
)


def quote_identifier(identifier: str) -> str:
    """Quote an identifier unless it is a plain lowercase name.

    Args:
        identifier: Keyspace, table, column or type name.

    Returns:
        The identifier, double-quoted when CQL would otherwise change or
        reject it.
    """
    if _UNQUOTED_IDENTIFIER.match(identifier) and identifier not in RESERVED_KEYWORDS:
        return identifier
    escaped = identifier.replace('"', '""')
    return f'"{escaped}"'


def _qualified(keyspace: str, name: str) -> str:
    return f"{quote_identifier(keyspace)}.{quote_identifier(name)}"


def create_table_cql(table: BaseTableDef, if_not_exists: bool = False) -> str:
    """Render a CREATE TABLE statement.

    Args:
        table: Table definition.
        if_not_exists: Add ``IF NOT EXISTS``.

    Returns:
        The statement, without a trailing semicolon.
    """
    lines = [f"  {column.cql}" for column in table.columns]

    partition = ", ".join(quote_identifier(c.column_name) for c in table.partition_key)
    clustering = "".join(f", {quote_identifier(c.column_name)}" for c in table.clustering_columns)
    lines.append(f"  PRIMARY KEY (({partition}){clustering})")

    guard = " IF NOT EXISTS" if if_not_exists else ""
    statement = f"CREATE TABLE{guard} {_qualified(table.keyspace_name, table.table_name)} (\n"
    statement += ",\n".join(lines) + "\n)"

    if any(c.clustering_order and c.clustering_order.value == "desc" for c in table.clustering_columns):
        ordering = ", ".join(
            f"{quote_identifier(c.column_name)} {c.clustering_order.value.upper()}"
            for c in table.clustering_columns
        )
        statement += f" WITH CLUSTERING ORDER BY ({ordering})"

    return statement


def create_type_cql(keyspace_name: str, user_type: UserDefinedType, if_not_exists: bool = False) -> str:
    """Render a CREATE TYPE statement for a user-defined type."""
    fields = ", ".join(
        f"{quote_identifier(name)} {field_type.cql_name}" for name, field_type in user_type.fields
    )
    guard = " IF NOT EXISTS" if if_not_exists else ""
    return f"CREATE TYPE{guard} {_qualified(keyspace_name, user_type.name)} ({fields})"


def create_index_cql(table: BaseTableDef, index: IndexDef, if_not_exists: bool = False) -> str:
    """Render a CREATE INDEX statement for one of the table's indexes."""
    target = _qualified(table.keyspace_name, table.table_name)
    name = quote_identifier(index.index_name)
    if if_not_exists:
        name = f"IF NOT EXISTS {name}"
    if index.is_custom:
        return f"CREATE CUSTOM INDEX {name} ON {target} ({index.target}) USING '{index.class_name}'"
    return f"CREATE INDEX {name} ON {target} ({index.target})"


def referenced_user_types(table: BaseTableDef) -> list[UserDefinedType]:
    """User types used by the table's columns, dependencies first."""
    ordered: dict[str, UserDefinedType] = {}

    def visit(column_type) -> None:
        kind = column_type.kind
        if kind in ("list", "set"):
            visit(column_type.element_type)
        elif kind == "map":
            visit(column_type.key_type)
            visit(column_type.value_type)
        elif kind == "tuple":
            for element_type in column_type.element_types:
                visit(element_type)
        elif kind == "udt" and column_type.name not in ordered:
            for field_type in column_type.field_types:
                visit(field_type)
            ordered[column_type.name] = column_type.as_frozen(False)

    for column in table.columns:
        visit(column.column_type)
    return list(ordered.values())


def table_statements(table: BaseTableDef, if_not_exists: bool = False) -> list[str]:
    """Statements recreating a table: its user types, the table, then its indexes."""
    statements = [
        create_type_cql(table.keyspace_name, udt, if_not_exists=if_not_exists)
        for udt in referenced_user_types(table)
    ]
    statements.append(create_table_cql(table, if_not_exists=if_not_exists))
    statements.extend(
        create_index_cql(table, index, if_not_exists=if_not_exists) for index in table.indexes
    )
    return statements
