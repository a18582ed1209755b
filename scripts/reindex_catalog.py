"""Load a JSON catalog into a collection and rebuild its chunk index."""
from __future__ import annotations

import argparse
import json
from pathlib import Path

from domain.entities import CatalogRecord
from infrastructure.config import ContainerConfig, build_default_container
from ui.logging_utils import setup_logging


def load_records(path: Path) -> list[CatalogRecord]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("records", [])
    return [CatalogRecord.from_mapping(item) for item in payload]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("catalog", help="JSON file: a list of records or {\"records\": [...]}")
    parser.add_argument("--collection", required=True, help="Target collection name (e.g. in_stock, all_fda)")
    return parser.parse_args()


def main() -> None:
    setup_logging()
    args = parse_args()
    cfg = ContainerConfig.from_env()
    if cfg.vector_index == "in_memory" or cfg.catalog_store == "in_memory":
        print("Warning: in-memory collaborators are selected, the index is discarded on exit.")
    container = build_default_container(cfg)
    collection = container.collection(args.collection)

    records = load_records(Path(args.catalog))
    for record in records:
        if record.id:
            container.catalog_store.add(record, collection=collection.name)
    report = container.reindex_service.reindex_batch(records, collection)

    print(f"Indexed {report.indexed}/{report.total} records into {collection.name}: {report.chunks} chunks")
    for chunk_type, count in report.stats.by_type.items():
        print(f"  {chunk_type}: {count}")
    for error in report.errors:
        print(f"  skipped {error.record_id or '<no id>'}: {error.reason}")


if __name__ == "__main__":
    main()
