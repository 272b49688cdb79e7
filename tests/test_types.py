"""Tests for semantic column types."""

from __future__ import annotations

import pickle

import pytest
from pydantic import TypeAdapter, ValidationError

from cql_explorer.schema.errors import NotFoundError
from cql_explorer.schema.types import (
    BIGINT,
    INT,
    SCALAR_TYPES,
    VARCHAR,
    ColumnType,
    ListType,
    MapType,
    ScalarKind,
    ScalarType,
    SetType,
    TupleType,
    UserDefinedType,
)


@pytest.fixture
def address() -> UserDefinedType:
    return UserDefinedType(
        name="address",
        field_names=("street", "city", "zip"),
        field_types=(VARCHAR, VARCHAR, INT),
    )


class TestScalarTypes:
    """Tests for scalar types."""

    def test_structural_equality(self):
        assert ScalarType(name=ScalarKind.INT) == INT
        assert ScalarType(name="int") == INT
        assert INT != BIGINT

    def test_text_is_varchar(self):
        assert SCALAR_TYPES["text"] is VARCHAR
        assert SCALAR_TYPES["varchar"] == VARCHAR

    def test_every_kind_is_registered(self):
        for kind in ScalarKind:
            assert SCALAR_TYPES[kind.value].name == kind

    def test_cql_name(self):
        assert INT.cql_name == "int"
        assert str(VARCHAR) == "varchar"

    def test_scalars_are_not_collections(self):
        assert INT.is_collection is False

    def test_unknown_scalar_rejected(self):
        with pytest.raises(ValidationError):
            ScalarType(name="money")


class TestCollectionTypes:
    """Tests for list, set, map and tuple types."""

    def test_list_equality_is_structural(self):
        assert ListType(element_type=INT) == ListType(element_type=ScalarType(name="int"))
        assert ListType(element_type=INT) != SetType(element_type=INT)

    def test_frozen_is_part_of_equality(self):
        assert ListType(element_type=INT) != ListType(element_type=INT, frozen=True)

    def test_cql_names(self):
        assert ListType(element_type=INT).cql_name == "list<int>"
        assert SetType(element_type=INT, frozen=True).cql_name == "frozen<set<int>>"
        assert MapType(key_type=INT, value_type=VARCHAR).cql_name == "map<int, varchar>"
        assert TupleType(element_types=(INT, VARCHAR)).cql_name == "tuple<int, varchar>"

    def test_nested_cql_name(self):
        nested = MapType(
            key_type=VARCHAR,
            value_type=ListType(element_type=INT, frozen=True),
        )
        assert nested.cql_name == "map<varchar, frozen<list<int>>>"

    def test_collections_flagged(self):
        assert ListType(element_type=INT).is_collection
        assert SetType(element_type=INT).is_collection
        assert MapType(key_type=INT, value_type=INT).is_collection
        assert not TupleType(element_types=(INT,)).is_collection

    def test_empty_tuple_rejected(self):
        with pytest.raises(ValidationError):
            TupleType(element_types=())

    def test_types_are_immutable(self):
        list_type = ListType(element_type=INT)
        with pytest.raises(ValidationError):
            list_type.element_type = VARCHAR


class TestUserDefinedType:
    """Tests for user-defined types."""

    def test_fields_in_declaration_order(self, address: UserDefinedType):
        assert address.fields == (("street", VARCHAR), ("city", VARCHAR), ("zip", INT))

    def test_field_type(self, address: UserDefinedType):
        assert address.field_type("zip") == INT

    def test_unknown_field(self, address: UserDefinedType):
        with pytest.raises(NotFoundError, match="Field not found: country in address"):
            address.field_type("country")

    def test_mismatched_fields_rejected(self):
        with pytest.raises(ValidationError, match="2 field names but 1 field types"):
            UserDefinedType(name="pair", field_names=("a", "b"), field_types=(INT,))

    def test_duplicate_fields_rejected(self):
        with pytest.raises(ValidationError, match="duplicate field names"):
            UserDefinedType(name="pair", field_names=("a", "a"), field_types=(INT, INT))

    def test_as_frozen(self, address: UserDefinedType):
        frozen = address.as_frozen()
        assert frozen.frozen is True
        assert frozen.cql_name == "frozen<address>"
        assert frozen.as_frozen(False) == address
        assert address.as_frozen(False) is address

    def test_quoted_name(self):
        udt = UserDefinedType(name="PostalAddress", field_names=("zip",), field_types=(INT,))
        assert udt.cql_name == '"PostalAddress"'


class TestSerialization:
    """Tests for type serialization."""

    def test_pickle_round_trip(self, address: UserDefinedType):
        nested = MapType(key_type=INT, value_type=address.as_frozen())
        assert pickle.loads(pickle.dumps(nested)) == nested

    def test_json_round_trip_through_union(self, address: UserDefinedType):
        adapter = TypeAdapter(ColumnType)
        value = ListType(element_type=TupleType(element_types=(INT, address.as_frozen())), frozen=True)
        restored = adapter.validate_json(adapter.dump_json(value))
        assert restored == value
        assert isinstance(restored, ListType)
