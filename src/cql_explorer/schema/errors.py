"""Errors raised while building or querying the schema model."""

from __future__ import annotations


class SchemaError(Exception):
    """Base class for schema model errors."""

    pass


class NotFoundError(SchemaError, LookupError):
    """Raised when a keyspace, table, column or user type does not exist."""

    def __init__(self, kind: str, name: str, parent: str | None = None) -> None:
        self.kind = kind
        self.name = name
        self.parent = parent
        location = f" in {parent}" if parent else ""
        super().__init__(f"{kind.capitalize()} not found: {name}{location}")

    def __reduce__(self):
        return (self.__class__, (self.kind, self.name, self.parent))


class UnsupportedTypeError(SchemaError, ValueError):
    """Raised when a catalog type descriptor has no semantic mapping."""

    def __init__(self, descriptor: str, reason: str | None = None) -> None:
        self.descriptor = descriptor
        self.reason = reason
        message = f"Unsupported column type: {descriptor}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)

    def __reduce__(self):
        return (self.__class__, (self.descriptor, self.reason))


class ConnectivityError(SchemaError, ConnectionError):
    """Raised by catalog adapters when the catalog cannot be reached."""

    pass
