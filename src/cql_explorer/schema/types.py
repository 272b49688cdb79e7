"""Semantic column types.

Provides frozen Pydantic models for the closed set of column types:
- Scalars (int, varchar, uuid, ...) as ``ScalarType`` instances
- Collections (list, set, map) and tuples, nesting any other type
- User-defined types with ordered, named fields

Type equality is structural: two ``ListType(element_type=INT)`` values are
equal no matter where they came from.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cql_explorer.schema.errors import NotFoundError


class ScalarKind(str, Enum):
    """Scalar CQL types."""

    ASCII = "ascii"
    BIGINT = "bigint"
    BLOB = "blob"
    BOOLEAN = "boolean"
    COUNTER = "counter"
    DATE = "date"
    DECIMAL = "decimal"
    DOUBLE = "double"
    DURATION = "duration"
    FLOAT = "float"
    INET = "inet"
    INT = "int"
    SMALLINT = "smallint"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TIMEUUID = "timeuuid"
    TINYINT = "tinyint"
    UUID = "uuid"
    VARCHAR = "varchar"
    VARINT = "varint"


def _frozen(cql: str, frozen: bool) -> str:
    return f"frozen<{cql}>" if frozen else cql


class _BaseColumnType(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def cql_name(self) -> str:
        raise NotImplementedError

    @property
    def is_collection(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.cql_name


class ScalarType(_BaseColumnType):
    """A single-valued CQL type."""

    kind: Literal["scalar"] = "scalar"
    name: ScalarKind

    @property
    def cql_name(self) -> str:
        return self.name.value


class ListType(_BaseColumnType):
    """Ordered collection of elements of one type."""

    kind: Literal["list"] = "list"
    element_type: ColumnType
    frozen: bool = False

    @property
    def cql_name(self) -> str:
        return _frozen(f"list<{self.element_type.cql_name}>", self.frozen)

    @property
    def is_collection(self) -> bool:
        return True


class SetType(_BaseColumnType):
    """Collection of distinct elements of one type."""

    kind: Literal["set"] = "set"
    element_type: ColumnType
    frozen: bool = False

    @property
    def cql_name(self) -> str:
        return _frozen(f"set<{self.element_type.cql_name}>", self.frozen)

    @property
    def is_collection(self) -> bool:
        return True


class MapType(_BaseColumnType):
    """Key/value collection."""

    kind: Literal["map"] = "map"
    key_type: ColumnType
    value_type: ColumnType
    frozen: bool = False

    @property
    def cql_name(self) -> str:
        inner = f"map<{self.key_type.cql_name}, {self.value_type.cql_name}>"
        return _frozen(inner, self.frozen)

    @property
    def is_collection(self) -> bool:
        return True


class TupleType(_BaseColumnType):
    """Fixed-length sequence of anonymous, typed components. Always frozen."""

    kind: Literal["tuple"] = "tuple"
    element_types: tuple[ColumnType, ...] = Field(..., min_length=1)

    @property
    def cql_name(self) -> str:
        return f"tuple<{', '.join(t.cql_name for t in self.element_types)}>"


class UserDefinedType(_BaseColumnType):
    """Named composite type with ordered, named fields."""

    kind: Literal["udt"] = "udt"
    name: str = Field(..., min_length=1, description="Type name within its keyspace")
    field_names: tuple[str, ...] = Field(default=(), description="Field names in declaration order")
    field_types: tuple[ColumnType, ...] = Field(
        default=(), description="Field types, aligned with field_names"
    )
    frozen: bool = False

    @model_validator(mode="after")
    def _check_fields(self) -> UserDefinedType:
        if len(self.field_names) != len(self.field_types):
            raise ValueError(
                f"User type {self.name} has {len(self.field_names)} field names "
                f"but {len(self.field_types)} field types"
            )
        if len(set(self.field_names)) != len(self.field_names):
            raise ValueError(f"User type {self.name} has duplicate field names")
        return self

    @property
    def cql_name(self) -> str:
        from cql_explorer.schema.cql import quote_identifier

        return _frozen(quote_identifier(self.name), self.frozen)

    @property
    def fields(self) -> tuple[tuple[str, ColumnType], ...]:
        """(name, type) pairs in declaration order."""
        return tuple(zip(self.field_names, self.field_types))

    def field_type(self, field_name: str) -> ColumnType:
        """Get the type of a field.

        Raises:
            NotFoundError: If the type has no such field.
        """
        for name, field_type in self.fields:
            if name == field_name:
                return field_type
        raise NotFoundError("field", field_name, parent=self.name)

    def as_frozen(self, frozen: bool = True) -> UserDefinedType:
        """Return a copy with the given frozen flag."""
        if self.frozen == frozen:
            return self
        return self.model_copy(update={"frozen": frozen})


ColumnType = Annotated[
    Union[ScalarType, ListType, SetType, MapType, TupleType, UserDefinedType],
    Field(discriminator="kind"),
]

for _model in (ListType, SetType, MapType, TupleType, UserDefinedType):
    _model.model_rebuild()


ASCII = ScalarType(name=ScalarKind.ASCII)
BIGINT = ScalarType(name=ScalarKind.BIGINT)
BLOB = ScalarType(name=ScalarKind.BLOB)
BOOLEAN = ScalarType(name=ScalarKind.BOOLEAN)
COUNTER = ScalarType(name=ScalarKind.COUNTER)
DATE = ScalarType(name=ScalarKind.DATE)
DECIMAL = ScalarType(name=ScalarKind.DECIMAL)
DOUBLE = ScalarType(name=ScalarKind.DOUBLE)
DURATION = ScalarType(name=ScalarKind.DURATION)
FLOAT = ScalarType(name=ScalarKind.FLOAT)
INET = ScalarType(name=ScalarKind.INET)
INT = ScalarType(name=ScalarKind.INT)
SMALLINT = ScalarType(name=ScalarKind.SMALLINT)
TIME = ScalarType(name=ScalarKind.TIME)
TIMESTAMP = ScalarType(name=ScalarKind.TIMESTAMP)
TIMEUUID = ScalarType(name=ScalarKind.TIMEUUID)
TINYINT = ScalarType(name=ScalarKind.TINYINT)
UUID = ScalarType(name=ScalarKind.UUID)
VARCHAR = ScalarType(name=ScalarKind.VARCHAR)
VARINT = ScalarType(name=ScalarKind.VARINT)

# "text" is stored by the catalog for columns declared varchar
SCALAR_TYPES: dict[str, ScalarType] = {
    **{kind.value: ScalarType(name=kind) for kind in ScalarKind},
    "text": VARCHAR,
}
