"""SQLite catalog store holding records per collection."""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Iterator

from application.services.text_normalization import is_code_fragment, normalize_code, normalize_tag
from domain.entities import CatalogRecord
from domain.errors import CollaboratorUnavailable
from domain.interfaces import CatalogStore


def _like(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqliteCatalogStore(CatalogStore):
    """Stores records as JSON with pre-normalized lookup keys.

    SQLite's LOWER() only folds ASCII, so lookup keys are normalized in Python.
    """

    def __init__(self, db_path: str | Path = "materialsearch.db") -> None:
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise CollaboratorUnavailable("catalog store", str(exc)) from exc

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    version INTEGER NOT NULL
                )
                """
            )
            conn.execute("INSERT OR IGNORE INTO schema_version (id, version) VALUES (1, 1)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS catalog_records (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    code_key TEXT,
                    name_key TEXT,
                    alt_key TEXT,
                    payload TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_catalog_code ON catalog_records (collection, code_key)"
            )

    def add(self, record: CatalogRecord, *, collection: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                REPLACE INTO catalog_records (collection, id, code_key, name_key, alt_key, payload)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    collection,
                    record.id,
                    normalize_code(record.canonical_code) if record.canonical_code else None,
                    normalize_tag(record.display_name) if record.display_name else None,
                    normalize_tag(record.alt_name) if record.alt_name else None,
                    json.dumps(record.to_mapping(), ensure_ascii=False),
                ),
            )

    def get(self, record_id: str, *, collection: str) -> CatalogRecord | None:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT payload FROM catalog_records WHERE collection = ? AND id = ?",
                    (collection, record_id),
                ).fetchone()
        except sqlite3.DatabaseError as exc:
            raise CollaboratorUnavailable("catalog store", str(exc)) from exc
        if row is None:
            return None
        return CatalogRecord.from_mapping(json.loads(row[0]))

    def get_by_code_or_name(self, text: str, *, collection: str) -> list[CatalogRecord]:
        code_term = normalize_code(text)
        name_term = normalize_tag(text)
        if not name_term:
            return []
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    """
                    SELECT payload FROM catalog_records
                    WHERE collection = ?
                      AND ((? != '' AND (code_key = ? OR (? AND code_key LIKE ? ESCAPE '\\')))
                           OR name_key LIKE ? ESCAPE '\\'
                           OR alt_key LIKE ? ESCAPE '\\')
                    ORDER BY id
                    """,
                    (
                        collection,
                        code_term,
                        code_term,
                        int(is_code_fragment(code_term)),
                        _like(code_term),
                        _like(name_term),
                        _like(name_term),
                    ),
                ).fetchall()
        except sqlite3.DatabaseError as exc:
            raise CollaboratorUnavailable("catalog store", str(exc)) from exc
        return [CatalogRecord.from_mapping(json.loads(row[0])) for row in rows]

    def iter_records(self, *, collection: str, page_size: int = 500) -> Iterator[CatalogRecord]:
        last_id = ""
        while True:
            try:
                with self._connect() as conn:
                    rows = conn.execute(
                        """
                        SELECT id, payload FROM catalog_records
                        WHERE collection = ? AND id > ?
                        ORDER BY id LIMIT ?
                        """,
                        (collection, last_id, page_size),
                    ).fetchall()
            except sqlite3.DatabaseError as exc:
                raise CollaboratorUnavailable("catalog store", str(exc)) from exc
            if not rows:
                return
            for row in rows:
                yield CatalogRecord.from_mapping(json.loads(row[1]))
            last_id = rows[-1][0]
            if len(rows) < page_size:
                return


__all__ = ["SqliteCatalogStore"]
