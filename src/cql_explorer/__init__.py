"""CQL Explorer: an immutable, queryable model of a Cassandra schema."""

__version__ = "0.1.0"
