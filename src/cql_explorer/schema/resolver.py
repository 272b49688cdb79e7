"""Type resolution from catalog type descriptors.

The catalog reports column types as CQL type strings such as
``map<int, text>`` or ``frozen<list<frozen<address>>>``. Resolution is two
steps:

1. ``parse_type`` turns the string into a ``TypeDescriptor`` tree.
2. ``TypeResolver.resolve`` maps the tree onto the semantic types in
   ``cql_explorer.schema.types``, resolving collections and user-defined
   types recursively.

A resolver is bound to one keyspace's user types and memoizes each resolved
user type, so one resolver can be shared by every table of the keyspace.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from cql_explorer.schema.errors import NotFoundError, UnsupportedTypeError
from cql_explorer.schema.types import (
    SCALAR_TYPES,
    ColumnType,
    ListType,
    MapType,
    SetType,
    TupleType,
    UserDefinedType,
)

_TOKEN_PATTERN = re.compile(r'\s*(?:("(?:[^"]|"")*")|([A-Za-z0-9_.:$]+)|([<>,]))')

_COLLECTION_ARITY = {"list": 1, "set": 1, "map": 2}


@dataclass(frozen=True)
class TypeDescriptor:
    """Parsed, not yet resolved, catalog type.

    Attributes:
        name: Type name. Lowercased unless it was a quoted identifier.
        parameters: Nested descriptors for parameterized types.
        frozen: Whether the type was wrapped in ``frozen<...>``.
        quoted: Whether the name was a quoted identifier.
    """

    name: str
    parameters: tuple[TypeDescriptor, ...] = field(default=())
    frozen: bool = False
    quoted: bool = False

    def __str__(self) -> str:
        name = '"' + self.name.replace('"', '""') + '"' if self.quoted else self.name
        if self.parameters:
            name = f"{name}<{', '.join(str(p) for p in self.parameters)}>"
        return f"frozen<{name}>" if self.frozen else name


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    stripped = text.rstrip()
    while pos < len(stripped):
        match = _TOKEN_PATTERN.match(stripped, pos)
        if match is None or match.end() == pos:
            raise UnsupportedTypeError(text, f"unexpected character at offset {pos}")
        tokens.append(next(group for group in match.groups() if group is not None))
        pos = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._pos = 0

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise UnsupportedTypeError(self._text, "unexpected end of type")
        self._pos += 1
        return token

    def _expect(self, expected: str) -> None:
        token = self._next()
        if token != expected:
            raise UnsupportedTypeError(self._text, f"expected '{expected}', found '{token}'")

    def parse(self) -> TypeDescriptor:
        descriptor = self._parse_type()
        if self._peek() is not None:
            raise UnsupportedTypeError(self._text, f"trailing input '{self._peek()}'")
        return descriptor

    def _parse_type(self) -> TypeDescriptor:
        token = self._next()
        if token in ("<", ">", ","):
            raise UnsupportedTypeError(self._text, f"expected a type name, found '{token}'")

        if token.startswith('"'):
            name, quoted = token[1:-1].replace('""', '"'), True
        else:
            name, quoted = token.lower(), False

        parameters: list[TypeDescriptor] = []
        if self._peek() == "<":
            self._next()
            parameters.append(self._parse_type())
            while self._peek() == ",":
                self._next()
                parameters.append(self._parse_type())
            self._expect(">")

        if name == "frozen" and not quoted:
            if len(parameters) != 1:
                raise UnsupportedTypeError(self._text, "frozen takes exactly one type")
            inner = parameters[0]
            return TypeDescriptor(inner.name, inner.parameters, frozen=True, quoted=inner.quoted)

        return TypeDescriptor(name, tuple(parameters), quoted=quoted)


def parse_type(text: str) -> TypeDescriptor:
    """Parse a CQL type string into a descriptor tree.

    Args:
        text: Type as reported by the catalog, e.g. ``map<int, text>``.

    Returns:
        The parsed TypeDescriptor.

    Raises:
        UnsupportedTypeError: If the text is not a well-formed type.
    """
    if not text or not text.strip():
        raise UnsupportedTypeError(text, "empty type")
    return _Parser(text).parse()


class TypeResolver:
    """Resolves type descriptors against one keyspace's user-defined types.

    Args:
        user_types: Raw user type definitions, mapping type name to ordered
            ``(field_name, field_type)`` pairs where field types are CQL
            type strings.
        keyspace: Keyspace name, used in error messages.
    """

    def __init__(
        self,
        user_types: Mapping[str, Sequence[tuple[str, str]]] | None = None,
        keyspace: str | None = None,
    ) -> None:
        self._raw_user_types = dict(user_types or {})
        self._keyspace = keyspace
        self._resolved: dict[str, UserDefinedType] = {}
        self._in_progress: set[str] = set()

    @property
    def user_type_names(self) -> list[str]:
        """Names of the user types known to this resolver, in declaration order."""
        return list(self._raw_user_types)

    def resolve(self, descriptor: str | TypeDescriptor) -> ColumnType:
        """Resolve a descriptor to its semantic type.

        Args:
            descriptor: CQL type string or an already parsed TypeDescriptor.

        Returns:
            The semantic ColumnType.

        Raises:
            UnsupportedTypeError: If the type has no semantic mapping.
        """
        if isinstance(descriptor, str):
            descriptor = parse_type(descriptor)
        return self._resolve(descriptor)

    def _resolve(self, descriptor: TypeDescriptor) -> ColumnType:
        name = descriptor.name

        if not descriptor.quoted:
            if name in SCALAR_TYPES and not descriptor.parameters:
                return SCALAR_TYPES[name]

            if name in _COLLECTION_ARITY:
                arity = _COLLECTION_ARITY[name]
                if len(descriptor.parameters) != arity:
                    raise UnsupportedTypeError(
                        str(descriptor), f"{name} takes {arity} type parameter(s)"
                    )
                params = [self._resolve(p) for p in descriptor.parameters]
                if name == "list":
                    return ListType(element_type=params[0], frozen=descriptor.frozen)
                if name == "set":
                    return SetType(element_type=params[0], frozen=descriptor.frozen)
                return MapType(key_type=params[0], value_type=params[1], frozen=descriptor.frozen)

            if name == "tuple":
                if not descriptor.parameters:
                    raise UnsupportedTypeError(str(descriptor), "tuple needs at least one type")
                return TupleType(element_types=tuple(self._resolve(p) for p in descriptor.parameters))

        if name in self._raw_user_types and not descriptor.parameters:
            return self.user_type(name).as_frozen(descriptor.frozen)

        raise UnsupportedTypeError(str(descriptor))

    def user_type(self, name: str) -> UserDefinedType:
        """Resolve one user-defined type by name (memoized).

        Raises:
            NotFoundError: If the keyspace defines no such type.
            UnsupportedTypeError: If a field type cannot be resolved.
        """
        cached = self._resolved.get(name)
        if cached is not None:
            return cached

        if name not in self._raw_user_types:
            raise NotFoundError("user type", name, parent=self._keyspace)
        if name in self._in_progress:
            raise UnsupportedTypeError(name, "user type refers to itself")

        self._in_progress.add(name)
        try:
            fields = self._raw_user_types[name]
            udt = UserDefinedType(
                name=name,
                field_names=tuple(field_name for field_name, _ in fields),
                field_types=tuple(self.resolve(field_type) for _, field_type in fields),
            )
        finally:
            self._in_progress.discard(name)

        self._resolved[name] = udt
        return udt

    def user_types(self) -> dict[str, UserDefinedType]:
        """Resolve every known user type, keyed by name in declaration order."""
        return {name: self.user_type(name) for name in self._raw_user_types}


def resolve_type(
    descriptor: str | TypeDescriptor,
    user_types: Mapping[str, Sequence[tuple[str, str]]] | None = None,
) -> ColumnType:
    """Resolve a single descriptor with a throwaway resolver."""
    return TypeResolver(user_types).resolve(descriptor)
