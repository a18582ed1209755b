"""Script-aware text helpers shared by classification, chunking and matching."""
from __future__ import annotations

import re

_THAI_CHAR = re.compile(r"[\u0E00-\u0E7F]")
_LATIN_CHAR = re.compile(r"[A-Za-z\u00C0-\u024F]")
_LATIN_RUN = re.compile(r"[A-Za-z\u00C0-\u024F]+")
_WHITESPACE = re.compile(r"\s+")
_CODE_SEPARATORS = re.compile(r"[-_\s]")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def casefold_latin(text: str) -> str:
    """Lower-case Latin letters only; Thai and other scripts stay as they are."""

    return _LATIN_RUN.sub(lambda match: match.group(0).lower(), text)


def normalize_query(text: str) -> str:
    return casefold_latin(collapse_whitespace(text))


def normalize_code(code: str) -> str:
    return _CODE_SEPARATORS.sub("", code).upper()


def normalize_tag(text: str) -> str:
    return collapse_whitespace(text).casefold()


def contains_thai(text: str) -> bool:
    return bool(_THAI_CHAR.search(text))


def contains_latin(text: str) -> bool:
    return bool(_LATIN_CHAR.search(text))


def is_code_fragment(text: str) -> bool:
    """Enough of a material code to substring-match: three or more ASCII characters mixing letters and digits."""

    code = normalize_code(text)
    return (
        len(code) >= 3
        and code.isascii()
        and code.isalnum()
        and any(char.isdigit() for char in code)
        and any(char.isalpha() for char in code)
    )


def script_ratios(text: str) -> tuple[float, float]:
    """Return (thai_ratio, latin_ratio) over the characters of `text`."""

    if not text:
        return 0.0, 0.0
    thai = len(_THAI_CHAR.findall(text))
    latin = len(_LATIN_CHAR.findall(text))
    return thai / len(text), latin / len(text)


__all__ = [
    "casefold_latin",
    "collapse_whitespace",
    "contains_latin",
    "contains_thai",
    "is_code_fragment",
    "normalize_code",
    "normalize_query",
    "normalize_tag",
    "script_ratios",
]
