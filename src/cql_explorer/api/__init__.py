"""HTTP API for CQL Explorer."""
