"""Turn one catalog record into several differently weighted chunks.

A single flat concatenation buries short identifiers inside long descriptive
text, so codes and names get their own minimal, high-weight chunks while
descriptions are windowed separately.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Sequence

from application.services.text_normalization import collapse_whitespace, contains_latin, contains_thai
from domain.entities import CatalogRecord, Chunk, ChunkType
from domain.errors import MalformedRecord

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_WEIGHTS: dict[ChunkType, float] = {
    ChunkType.PRIMARY_IDENTIFIER: 1.0,
    ChunkType.CODE_ONLY: 1.0,
    ChunkType.TECHNICAL: 0.9,
    ChunkType.COMMERCIAL: 0.8,
    ChunkType.DESCRIPTIVE: 0.7,
    ChunkType.COMBINED_CONTEXT: 0.85,
    ChunkType.LOCALIZED: 0.9,
}

FIELD_LABELS: dict[str, dict[str, str]] = {
    "en": {
        "canonical_code": "Material Code",
        "display_name": "Trade Name",
        "alt_name": "INCI Name",
        "category": "Category",
        "function": "Function",
        "supplier": "Supplier",
        "cost": "Cost",
        "benefits": "Benefits",
        "description": "Description",
    },
    "th": {
        "canonical_code": "รหัสสาร",
        "display_name": "ชื่อการค้า",
        "alt_name": "ชื่อ INCI",
        "category": "หมวดหมู่",
        "function": "หน้าที่",
        "supplier": "ซัพพลายเออร์",
        "cost": "ราคา",
        "benefits": "ประโยชน์",
        "description": "รายละเอียด",
    },
}

# Script check deciding whether a record "has content" in a language.
_LANGUAGE_DETECTORS: dict[str, Callable[[str], bool]] = {
    "en": contains_latin,
    "th": contains_thai,
}

_LABELLED_FIELDS = (
    "canonical_code",
    "display_name",
    "alt_name",
    "category",
    "function",
    "supplier",
    "benefits",
    "description",
)


@dataclass(slots=True)
class ChunkerConfig:
    max_chunk_size: int = 500
    chunk_overlap: int = 50
    languages: tuple[str, ...] = ("en", "th")
    chunk_weights: dict[ChunkType, float] = field(default_factory=lambda: dict(DEFAULT_CHUNK_WEIGHTS))

    def __post_init__(self) -> None:
        if self.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive.")
        if not 0 <= self.chunk_overlap < self.max_chunk_size:
            raise ValueError("chunk_overlap must be non-negative and smaller than max_chunk_size.")
        missing = set(ChunkType) - set(self.chunk_weights)
        if missing:
            raise ValueError(f"Missing chunk weights for: {sorted(t.value for t in missing)}")
        for chunk_type, weight in self.chunk_weights.items():
            if not 0.0 <= weight <= 1.0:
                raise ValueError(f"Chunk weight for {chunk_type.value} must be within [0, 1].")
        unknown = [lang for lang in self.languages if lang not in FIELD_LABELS]
        if unknown:
            raise ValueError(f"No field labels for languages: {unknown}")


@dataclass(slots=True)
class ChunkStats:
    total: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    average_length: float = 0.0
    by_weight: dict[float, int] = field(default_factory=dict)


def _join(values: Sequence[str]) -> str:
    return ", ".join(value for value in values if value)


def split_text(text: str, max_length: int, overlap: int) -> list[str]:
    """Split text into windows of `max_length` characters sharing `overlap` characters."""

    if len(text) <= max_length:
        return [text]
    step = max_length - overlap
    windows: list[str] = []
    for start in range(0, len(text), step):
        window = text[start : start + max_length].strip()
        if window:
            windows.append(window)
        if start + max_length >= len(text):
            break
    return windows


class RecordChunker:
    """Deterministic record -> chunk list transformation."""

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        self._config = config or ChunkerConfig()

    @property
    def config(self) -> ChunkerConfig:
        return self._config

    def chunk(self, record: CatalogRecord) -> list[Chunk]:
        self._validate(record)
        chunks: list[Chunk] = []
        chunks.extend(self._primary_identifier(record))
        chunks.extend(self._code_only(record))
        chunks.extend(self._technical(record))
        chunks.extend(self._commercial(record))
        chunks.extend(self._descriptive(record))
        chunks.extend(self._combined_context(record))
        chunks.extend(self._localized(record))
        logger.debug("Record %s produced %d chunks", record.id, len(chunks))
        return chunks

    @staticmethod
    def _validate(record: CatalogRecord) -> None:
        if not record.id or not record.id.strip():
            raise MalformedRecord(None, "missing id")
        if not record.canonical_code and not record.display_name:
            raise MalformedRecord(record.id, "missing both canonical_code and display_name")

    def _make(
        self,
        record: CatalogRecord,
        chunk_type: ChunkType,
        text: str,
        suffix: str | int = 0,
        language: str | None = None,
    ) -> Chunk:
        return Chunk(
            id=f"{record.id}:{chunk_type.value}:{suffix}",
            source_record_id=record.id,
            chunk_type=chunk_type,
            text=text,
            priority_weight=self._config.chunk_weights[chunk_type],
            language=language,
        )

    def _primary_identifier(self, record: CatalogRecord) -> list[Chunk]:
        labels = FIELD_LABELS["en"]
        parts = []
        if record.canonical_code:
            parts.append(f"{labels['canonical_code']}: {record.canonical_code}")
        if record.display_name:
            parts.append(f"{labels['display_name']}: {record.display_name}")
        if record.alt_name:
            parts.append(f"{labels['alt_name']}: {record.alt_name}")
        return [self._make(record, ChunkType.PRIMARY_IDENTIFIER, ". ".join(parts))]

    def _code_only(self, record: CatalogRecord) -> list[Chunk]:
        if not record.canonical_code:
            return []
        text = " ".join(part for part in (record.canonical_code, record.display_name) if part)
        return [self._make(record, ChunkType.CODE_ONLY, text)]

    def _technical(self, record: CatalogRecord) -> list[Chunk]:
        if not (record.alt_name or record.category or record.function):
            return []
        labels = FIELD_LABELS["en"]
        parts = []
        if record.alt_name:
            parts.append(f"{labels['alt_name']}: {record.alt_name}")
        if record.category:
            parts.append(f"{labels['category']}: {_join(record.category)}")
        if record.function:
            parts.append(f"{labels['function']}: {_join(record.function)}")
        return [self._make(record, ChunkType.TECHNICAL, ". ".join(parts))]

    def _commercial(self, record: CatalogRecord) -> list[Chunk]:
        # A commercial chunk needs more than the identifier itself.
        if not (record.supplier or record.cost):
            return []
        labels = FIELD_LABELS["en"]
        parts = []
        if record.canonical_code:
            parts.append(f"{labels['canonical_code']}: {record.canonical_code}")
        elif record.display_name:
            parts.append(f"{labels['display_name']}: {record.display_name}")
        if record.supplier:
            parts.append(f"{labels['supplier']}: {record.supplier}")
        if record.cost:
            parts.append(f"{labels['cost']}: {record.cost}")
        return [self._make(record, ChunkType.COMMERCIAL, ". ".join(parts))]

    def _descriptive(self, record: CatalogRecord) -> list[Chunk]:
        if not (record.benefits or record.description):
            return []
        labels = FIELD_LABELS["en"]
        parts = []
        if record.benefits:
            parts.append(f"{labels['benefits']}: {_join(record.benefits)}")
        if record.description:
            parts.append(collapse_whitespace(record.description))
        text = ". ".join(parts)
        windows = split_text(text, self._config.max_chunk_size, self._config.chunk_overlap)
        return [self._make(record, ChunkType.DESCRIPTIVE, window, index) for index, window in enumerate(windows)]

    def _combined_context(self, record: CatalogRecord) -> list[Chunk]:
        values = [
            record.canonical_code,
            record.display_name,
            record.alt_name,
            _join(record.category),
            _join(record.function),
            _join(record.benefits),
            record.supplier,
            record.cost,
            collapse_whitespace(record.description) if record.description else None,
        ]
        text = ". ".join(value for value in values if value)
        limit = self._config.max_chunk_size
        if len(text) > limit:
            text = text[: max(limit - 3, 0)].rstrip() + "..."
        return [self._make(record, ChunkType.COMBINED_CONTEXT, text)]

    def _labelled_values(self, record: CatalogRecord) -> list[tuple[str, str]]:
        values: list[tuple[str, str]] = []
        for field_name in _LABELLED_FIELDS:
            value = getattr(record, field_name)
            if isinstance(value, list):
                value = _join(value)
            if value:
                values.append((field_name, collapse_whitespace(value)))
        return values

    def _localized(self, record: CatalogRecord) -> list[Chunk]:
        values = self._labelled_values(record)
        if not values:
            return []
        content = " ".join(value for _, value in values)
        chunks = []
        for language in self._config.languages:
            detector = _LANGUAGE_DETECTORS.get(language)
            if detector is not None and not detector(content):
                continue
            labels = FIELD_LABELS[language]
            text = " ".join(f"{labels[name]}: {value}" for name, value in values)
            chunks.append(self._make(record, ChunkType.LOCALIZED, text, language, language=language))
        return chunks

    @staticmethod
    def chunk_stats(chunks: Sequence[Chunk]) -> ChunkStats:
        if not chunks:
            return ChunkStats()
        by_type = Counter(chunk.chunk_type.value for chunk in chunks)
        by_weight = Counter(chunk.priority_weight for chunk in chunks)
        return ChunkStats(
            total=len(chunks),
            by_type=dict(sorted(by_type.items())),
            average_length=sum(len(chunk.text) for chunk in chunks) / len(chunks),
            by_weight=dict(sorted(by_weight.items(), reverse=True)),
        )


__all__ = [
    "ChunkStats",
    "ChunkerConfig",
    "DEFAULT_CHUNK_WEIGHTS",
    "FIELD_LABELS",
    "RecordChunker",
    "split_text",
]
