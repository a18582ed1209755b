"""Heuristic query classification for Thai/English catalog queries.

No trained model is involved: structured codes are found with an ordered list
of regular expressions, while property and name-lookup intents are scored
from two keyword dictionaries (English and Thai).
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from application.services.text_normalization import (
    collapse_whitespace,
    contains_thai,
    normalize_code,
    normalize_query,
    script_ratios,
)
from domain.entities import ExtractedEntities, QueryClassification, QueryIntent, StrategyName

logger = logging.getLogger(__name__)

_BOUNDARY_L = r"(?<![A-Za-z0-9])"
_BOUNDARY_R = r"(?![A-Za-z0-9])"


@dataclass(slots=True)
class ClassifierConfig:
    max_expanded_queries: int = 5
    min_query_length: int = 2
    exact_code_confidence: float = 0.9
    low_confidence_threshold: float = 0.3
    max_keyword_confidence: float = 0.85
    keyword_base_confidence: float = 0.3
    vocabulary_confidence: float = 0.4
    unmatched_confidence: float = 0.1
    candidate_name_weight: float = 0.3


@dataclass(slots=True, frozen=True)
class CodePattern:
    name: str
    regex: re.Pattern[str]
    weight: float


@dataclass(slots=True, frozen=True)
class KeywordEntry:
    term: str
    kind: str  # "property" or "name"
    weight: float
    canonical: str | None = None


# Order matters: the first detector that fires decides the intent.
CODE_PATTERNS: tuple[CodePattern, ...] = (
    CodePattern("rm_code", re.compile(_BOUNDARY_L + r"[Rr][Mm][-_]?\d{6}" + _BOUNDARY_R), 1.0),
    CodePattern(
        "rc_code",
        re.compile(_BOUNDARY_L + r"[Rr][Cc](?=[A-Za-z0-9]*\d)[A-Za-z0-9]{6,}" + _BOUNDARY_R),
        1.0,
    ),
    CodePattern("rd_code", re.compile(_BOUNDARY_L + r"[Rr][Dd][A-Za-z]{2,}\d{3,}" + _BOUNDARY_R), 1.0),
    CodePattern("material_code", re.compile(_BOUNDARY_L + r"[A-Z]{2,4}[-_]?\d{3,6}" + _BOUNDARY_R), 0.95),
)

ENGLISH_KEYWORDS: tuple[KeywordEntry, ...] = (
    KeywordEntry("moisturizing", "property", 0.3, "moisturizing"),
    KeywordEntry("moisturising", "property", 0.3, "moisturizing"),
    KeywordEntry("moisturizer", "property", 0.3, "moisturizing"),
    KeywordEntry("moisture", "property", 0.25, "moisturizing"),
    KeywordEntry("hydrating", "property", 0.3, "hydrating"),
    KeywordEntry("hydration", "property", 0.3, "hydrating"),
    KeywordEntry("anti-aging", "property", 0.3, "anti-aging"),
    KeywordEntry("anti aging", "property", 0.3, "anti-aging"),
    KeywordEntry("antiaging", "property", 0.3, "anti-aging"),
    KeywordEntry("anti-wrinkle", "property", 0.3, "anti-aging"),
    KeywordEntry("whitening", "property", 0.3, "whitening"),
    KeywordEntry("brightening", "property", 0.3, "brightening"),
    KeywordEntry("smoothing", "property", 0.3, "smoothing"),
    KeywordEntry("firming", "property", 0.3, "firming"),
    KeywordEntry("soothing", "property", 0.3, "soothing"),
    KeywordEntry("antioxidant", "property", 0.3, "antioxidant"),
    KeywordEntry("anti-acne", "property", 0.3, "anti-acne"),
    KeywordEntry("exfoliating", "property", 0.3, "exfoliating"),
    KeywordEntry("uv protection", "property", 0.3, "uv protection"),
    KeywordEntry("benefit", "property", 0.15),
    KeywordEntry("benefits", "property", 0.15),
    KeywordEntry("property", "property", 0.15),
    KeywordEntry("function", "property", 0.15),
    KeywordEntry("code for", "name", 0.35),
    KeywordEntry("code of", "name", 0.35),
    KeywordEntry("material code", "name", 0.3),
    KeywordEntry("rm code", "name", 0.3),
    KeywordEntry("trade name", "name", 0.3),
    KeywordEntry("inci name", "name", 0.3),
    KeywordEntry("what is", "name", 0.2),
    KeywordEntry("look up", "name", 0.2),
    KeywordEntry("lookup", "name", 0.2),
    KeywordEntry("called", "name", 0.2),
)

THAI_KEYWORDS: tuple[KeywordEntry, ...] = (
    KeywordEntry("ความชุ่มชื้น", "property", 0.3, "moisturizing"),
    KeywordEntry("ชุ่มชื้น", "property", 0.3, "moisturizing"),
    KeywordEntry("ต้านริ้วรอย", "property", 0.3, "anti-aging"),
    KeywordEntry("ลดริ้วรอย", "property", 0.3, "anti-aging"),
    KeywordEntry("กระจ่างใส", "property", 0.3, "brightening"),
    KeywordEntry("ผิวขาว", "property", 0.3, "whitening"),
    KeywordEntry("บำรุง", "property", 0.25, "nourishing"),
    KeywordEntry("ปลอบประโลม", "property", 0.3, "soothing"),
    KeywordEntry("กระชับ", "property", 0.3, "firming"),
    KeywordEntry("เรียบเนียน", "property", 0.3, "smoothing"),
    KeywordEntry("ต้านอนุมูลอิสระ", "property", 0.3, "antioxidant"),
    KeywordEntry("ลดสิว", "property", 0.3, "anti-acne"),
    KeywordEntry("กันแดด", "property", 0.3, "uv protection"),
    KeywordEntry("ผลัดเซลล์ผิว", "property", 0.3, "exfoliating"),
    KeywordEntry("ประโยชน์", "property", 0.15),
    KeywordEntry("คุณสมบัติ", "property", 0.15),
    KeywordEntry("รหัสของ", "name", 0.35),
    KeywordEntry("รหัสสาร", "name", 0.3),
    KeywordEntry("รหัสวัตถุดิบ", "name", 0.3),
    KeywordEntry("ชื่อการค้า", "name", 0.3),
    KeywordEntry("ชื่อทางการค้า", "name", 0.3),
    KeywordEntry("ชื่อสากล", "name", 0.3),
    KeywordEntry("ชื่อทางเคมี", "name", 0.3),
    KeywordEntry("คืออะไร", "name", 0.2),
    KeywordEntry("ชื่ออะไร", "name", 0.2),
)

# Material vocabulary lifts a bare "generic" query above the try-everything threshold.
MATERIAL_VOCABULARY: tuple[str, ...] = (
    "extract",
    "acid",
    "vitamin",
    "oil",
    "powder",
    "ingredient",
    "raw material",
    "peptide",
    "butter",
    "วัตถุดิบ",
    "สารสกัด",
    "สารออกฤทธิ์",
    "ส่วนผสม",
)

# Thai terms substituted with their Latin equivalent to build an expanded variant.
THAI_TO_LATIN: dict[str, str] = {
    "รหัสวัตถุดิบ": "material code",
    "รหัสสาร": "material code",
    "ชื่อทางการค้า": "trade name",
    "ชื่อการค้า": "trade name",
    "ซัพพลายเออร์": "supplier",
    "วัตถุดิบ": "raw material",
    "สารสกัด": "extract",
    "ราคา": "price",
    "ประโยชน์": "benefit",
    "สูตร": "formulation",
}
for _entry in THAI_KEYWORDS:
    if _entry.canonical:
        THAI_TO_LATIN.setdefault(_entry.term, _entry.canonical)

_NAME_TAIL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:code|name)\s+(?:for|of)\s+(?P<name>.+)$", re.IGNORECASE),
    re.compile(r"(?:รหัส(?:สาร|วัตถุดิบ)?ของ|ชื่อ(?:การค้า|ทางการค้า|สากล|ทางเคมี)ของ)\s*(?P<name>.+)$"),
    re.compile(r"^(?P<name>.+?)\s*(?:คืออะไร|ชื่ออะไร)$"),
)
_CAPITALIZED_SPAN = re.compile(r"\b[A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)+\b")
_EXTRACT_NAME = re.compile(r"\b[A-Za-z]+\s+extract\b", re.IGNORECASE)
_QUOTED = re.compile(r"\"([^\"]+)\"|'([^']+)'|“([^”]+)”")
_TRAILING_PUNCT = " ?!.,:;\"'“”"
_MEANINGFUL = re.compile(r"[^\W_]")

_INTENT_STRATEGIES: dict[QueryIntent, tuple[StrategyName, ...]] = {
    QueryIntent.EXACT_CODE: (StrategyName.EXACT, StrategyName.METADATA),
    QueryIntent.NAME_SEARCH: (StrategyName.FUZZY, StrategyName.SEMANTIC),
    QueryIntent.PROPERTY_SEARCH: (StrategyName.SEMANTIC, StrategyName.METADATA),
    QueryIntent.GENERIC: (StrategyName.SEMANTIC,),
}
_ALL_STRATEGIES = (StrategyName.EXACT, StrategyName.METADATA, StrategyName.FUZZY, StrategyName.SEMANTIC)


def _dedupe(items: list[str], *, fold: bool = True) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        key = item.casefold() if fold else item
        if item and key not in seen:
            seen.add(key)
            out.append(item)
    return out


def detect_language(text: str) -> str:
    thai_ratio, latin_ratio = script_ratios(text)
    if thai_ratio > 0.3 and latin_ratio > 0.1:
        return "mixed"
    if thai_ratio > 0.3:
        return "thai"
    return "english"


def extract_codes(text: str) -> list[str]:
    codes: list[str] = []
    for pattern in CODE_PATTERNS:
        codes.extend(normalize_code(match.group(0)) for match in pattern.regex.finditer(text))
    return _dedupe(codes)


def _compile_term(term: str) -> re.Pattern[str]:
    # Thai is written without spaces between words, so Thai terms match as substrings.
    if contains_thai(term):
        return re.compile(re.escape(term))
    return re.compile(r"\b" + re.escape(term).replace(r"\ ", r"\s+") + r"\b")


_KEYWORD_PATTERNS = [(entry, _compile_term(entry.term)) for entry in (*ENGLISH_KEYWORDS, *THAI_KEYWORDS)]
_VOCABULARY_PATTERNS = [(term, _compile_term(term)) for term in MATERIAL_VOCABULARY]


def extract_property_tags(text: str) -> list[str]:
    """Return the canonical property tags mentioned anywhere in `text`."""

    normalized = normalize_query(text)
    tags: list[str] = []
    for entry, regex in _KEYWORD_PATTERNS:
        if entry.kind == "property" and entry.canonical and entry.canonical not in tags and regex.search(normalized):
            tags.append(entry.canonical)
    return tags


class QueryClassifier:
    """Classify a query into intent, entities, expansions and strategies."""

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        self._config = config or ClassifierConfig()
        self._keyword_patterns = _KEYWORD_PATTERNS
        self._vocabulary_patterns = _VOCABULARY_PATTERNS

    @property
    def config(self) -> ClassifierConfig:
        return self._config

    def classify(self, query: str) -> QueryClassification:
        cfg = self._config
        raw = query or ""
        stripped = collapse_whitespace(raw)
        normalized = normalize_query(raw)
        language = detect_language(stripped)

        if len(normalized) < cfg.min_query_length or not _MEANINGFUL.search(normalized):
            return QueryClassification(
                query=raw,
                normalized_query=normalized,
                intent=QueryIntent.GENERIC,
                confidence=0.0,
                extracted_entities=ExtractedEntities(),
                expanded_queries=(raw,),
                recommended_strategies=(StrategyName.SEMANTIC,),
                language=language,
            )

        patterns: list[str] = []
        code_hit = self._detect_code(stripped)
        codes = extract_codes(stripped)
        names = self._extract_names(stripped)
        property_weight, name_weight, properties = self._score_keywords(normalized, patterns)

        if code_hit is not None:
            patterns.insert(0, f"code:{code_hit.name}")
            intent = QueryIntent.EXACT_CODE
            confidence = max(cfg.exact_code_confidence, code_hit.weight)
        else:
            if names:
                name_weight += cfg.candidate_name_weight
                patterns.append("name:candidate")
            if name_weight == 0 and property_weight == 0:
                intent = QueryIntent.GENERIC
                confidence = cfg.unmatched_confidence
                vocabulary = [term for term, regex in self._vocabulary_patterns if regex.search(normalized)]
                if vocabulary:
                    confidence = cfg.vocabulary_confidence
                    patterns.extend(f"vocabulary:{term}" for term in vocabulary)
            else:
                # Ties go to name lookups.
                intent = QueryIntent.NAME_SEARCH if name_weight >= property_weight else QueryIntent.PROPERTY_SEARCH
                winning = max(name_weight, property_weight)
                confidence = min(cfg.max_keyword_confidence, cfg.keyword_base_confidence + winning)

        strategies = _INTENT_STRATEGIES[intent]
        if intent is QueryIntent.GENERIC and confidence < cfg.low_confidence_threshold:
            strategies = _ALL_STRATEGIES

        entities = ExtractedEntities(codes=tuple(codes), names=tuple(names), properties=tuple(properties))
        classification = QueryClassification(
            query=raw,
            normalized_query=normalized,
            intent=intent,
            confidence=round(confidence, 4),
            extracted_entities=entities,
            expanded_queries=tuple(self._expand(raw, normalized, names, codes)),
            recommended_strategies=strategies,
            language=language,
            detected_patterns=tuple(patterns),
        )
        logger.debug(
            "Classified %r as %s (confidence %.2f, strategies %s)",
            raw,
            intent.value,
            classification.confidence,
            [s.value for s in strategies],
        )
        return classification

    def _detect_code(self, text: str) -> CodePattern | None:
        for pattern in CODE_PATTERNS:
            if pattern.regex.search(text):
                return pattern
        return None

    def _score_keywords(self, normalized: str, patterns: list[str]) -> tuple[float, float, list[str]]:
        property_weight = 0.0
        name_weight = 0.0
        properties: list[str] = []
        for entry, regex in self._keyword_patterns:
            if not regex.search(normalized):
                continue
            if entry.kind == "property":
                if entry.canonical and entry.canonical in properties:
                    continue
                property_weight += entry.weight
                if entry.canonical:
                    properties.append(entry.canonical)
                patterns.append(f"property:{entry.canonical or entry.term}")
            else:
                name_weight += entry.weight
                patterns.append(f"name_phrase:{entry.term}")
        return property_weight, name_weight, properties

    def _extract_names(self, text: str) -> list[str]:
        without_codes = text
        for pattern in CODE_PATTERNS:
            without_codes = pattern.regex.sub(" ", without_codes)
        without_codes = collapse_whitespace(without_codes)

        names: list[str] = []
        for match in _QUOTED.finditer(without_codes):
            names.append(next(group for group in match.groups() if group))
        names.extend(match.group(0) for match in _CAPITALIZED_SPAN.finditer(without_codes))
        names.extend(match.group(0) for match in _EXTRACT_NAME.finditer(without_codes))
        for pattern in _NAME_TAIL_PATTERNS:
            match = pattern.search(without_codes)
            if match:
                names.append(match.group("name"))
                break

        cleaned = [collapse_whitespace(name).strip(_TRAILING_PUNCT) for name in names]
        return _dedupe([name for name in cleaned if len(name) > 2 and not self._is_keyword(name)])

    def _is_keyword(self, text: str) -> bool:
        folded = normalize_query(text)
        return any(folded == entry.term for entry, _ in self._keyword_patterns) or folded in MATERIAL_VOCABULARY

    def _expand(self, raw: str, normalized: str, names: list[str], codes: list[str]) -> list[str]:
        variants = [raw, normalized]
        substituted = normalized
        for term in sorted(THAI_TO_LATIN, key=len, reverse=True):
            if term in substituted:
                substituted = substituted.replace(term, f" {THAI_TO_LATIN[term]} ")
        if substituted != normalized:
            variants.append(collapse_whitespace(substituted))
        variants.extend(names)
        variants.extend(codes)

        expanded = [raw]
        for variant in _dedupe(variants[1:], fold=False):
            if variant != raw and variant not in expanded:
                expanded.append(variant)
        return expanded[: max(1, self._config.max_expanded_queries)]


__all__ = [
    "CODE_PATTERNS",
    "ClassifierConfig",
    "CodePattern",
    "ENGLISH_KEYWORDS",
    "KeywordEntry",
    "QueryClassifier",
    "THAI_KEYWORDS",
    "detect_language",
    "extract_codes",
    "extract_property_tags",
]
