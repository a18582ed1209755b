"""Dictionary-backed catalog store for demos and tests."""
from __future__ import annotations

import threading
from typing import Iterator

from application.services.text_normalization import is_code_fragment, normalize_code, normalize_tag
from domain.entities import CatalogRecord
from domain.interfaces import CatalogStore


def record_matches(record: CatalogRecord, text: str) -> bool:
    """Case-insensitive equality or substring on code, display name and alt name.

    Codes only substring-match on code-shaped fragments, so "rm" or "000" do not hit every code.
    """

    code_term = normalize_code(text)
    name_term = normalize_tag(text)
    if not name_term:
        return False
    if record.canonical_code and code_term:
        record_code = normalize_code(record.canonical_code)
        if code_term == record_code or (is_code_fragment(code_term) and code_term in record_code):
            return True
    return any(name_term in normalize_tag(name) for name in (record.display_name, record.alt_name) if name)


class InMemoryCatalogStore(CatalogStore):
    def __init__(self) -> None:
        self._collections: dict[str, dict[str, CatalogRecord]] = {}
        self._lock = threading.Lock()

    def add(self, record: CatalogRecord, *, collection: str) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[record.id] = record

    def get(self, record_id: str, *, collection: str) -> CatalogRecord | None:
        with self._lock:
            return self._collections.get(collection, {}).get(record_id)

    def get_by_code_or_name(self, text: str, *, collection: str) -> list[CatalogRecord]:
        with self._lock:
            records = list(self._collections.get(collection, {}).values())
        return sorted((record for record in records if record_matches(record, text)), key=lambda r: r.id)

    def iter_records(self, *, collection: str, page_size: int = 500) -> Iterator[CatalogRecord]:
        with self._lock:
            records = sorted(self._collections.get(collection, {}).values(), key=lambda r: r.id)
        for start in range(0, len(records), page_size):
            yield from records[start : start + page_size]


__all__ = ["InMemoryCatalogStore", "record_matches"]
