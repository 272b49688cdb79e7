"""Capture a live catalog into a JSON snapshot usable as catalog.snapshot_path."""

import argparse
import json

from cql_explorer.catalog.memory import InMemoryCatalog
from cql_explorer.catalog.service import CatalogService


def main() -> None:
    """Write the snapshot of the configured cluster to a file."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("output", help="Path of the JSON file to write")
    parser.add_argument(
        "--keyspace",
        action="append",
        dest="keyspaces",
        help="Keyspace to capture (repeatable, defaults to all)",
    )
    args = parser.parse_args()

    service = CatalogService()
    try:
        snapshot = InMemoryCatalog.capture(service, keyspaces=args.keyspaces)
    finally:
        service.close()

    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(snapshot.to_dict(), f, indent=2)

    print(f"Wrote snapshot of {len(snapshot.list_keyspaces())} keyspaces to {args.output}")


if __name__ == "__main__":
    main()
