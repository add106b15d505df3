"""
Text Utilities for the Retrieval Engine
Script detection, identifier grammar, tokenization and query normalization
"""
import re
import unicodedata

from stakeholder_rag.types import Language


# Hiragana, katakana (incl. prolonged sound mark) and common kanji
JAPANESE_PATTERN = re.compile(r"[ぁ-ん]+|[ァ-ヴー]+|[一-龠]+")
LATIN_PATTERN = re.compile(r"[a-zA-Z]+")
KATAKANA_RUN_PATTERN = re.compile(r"[ァ-ヴー]{3,}")

# Structured identifiers: assurance-case element codes (G1, S12, C3, J4)
# and dashed codes (REQ-102, HAZ-7). ASCII boundaries so that "G1は" matches.
ELEMENT_CODE_PATTERN = re.compile(r"(?<![A-Za-z0-9])([GgSsCcJj]\d+)(?![A-Za-z0-9])")
DASHED_CODE_PATTERN = re.compile(r"(?<![A-Za-z0-9])([A-Za-z]+-\d+)(?![A-Za-z0-9])")

LATIN_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


def normalize_text(text: str) -> str:
    """Normalize text: NFKC (full-width → ASCII), clean whitespace"""
    text = unicodedata.normalize("NFKC", text)
    return " ".join(text.split())


def normalize_query(query: str) -> str:
    """Whitespace-normalize a query string (case is preserved)"""
    return " ".join((query or "").split())


def contains_japanese(text: str) -> bool:
    return bool(JAPANESE_PATTERN.search(text or ""))


def detect_language(text: str) -> Language:
    """
    Classify text by script.

    Text without any Japanese characters (including empty text) counts as
    the alternate language.
    """
    has_japanese = contains_japanese(text)
    has_latin = bool(LATIN_PATTERN.search(text or ""))

    if has_japanese and has_latin:
        return Language.MIXED
    if has_japanese:
        return Language.PRIMARY
    return Language.ALTERNATE


def is_technical_term(text: str) -> bool:
    """Acronym-like terms such as CI/CD are left untranslated"""
    return bool(re.fullmatch(r"[A-Z/\-]+", text or "")) or "/" in (text or "")


def extract_identifiers(text: str) -> list[str]:
    """Structured identifier tokens, upper-cased, in first-seen order"""
    seen: dict[str, None] = {}
    for pattern in (ELEMENT_CODE_PATTERN, DASHED_CODE_PATTERN):
        for match in pattern.findall(text or ""):
            seen.setdefault(match.upper(), None)
    return list(seen)


def tokenize_latin(text: str, min_len: int = 2) -> list[str]:
    """Lower-cased alphanumeric tokens (with repeats, in order)"""
    tokens = LATIN_TOKEN_PATTERN.findall(normalize_text(text).lower())
    return [t for t in tokens if len(t) >= min_len]


def extract_katakana_runs(text: str) -> list[str]:
    """Katakana loanwords of 3+ characters (with repeats)"""
    return KATAKANA_RUN_PATTERN.findall(text or "")


def truncate_text(text: str, max_chars: int = 1600) -> str:
    """Truncate text at word boundary"""
    if len(text) <= max_chars:
        return text

    # Find last space before limit
    truncated = text[:max_chars]
    last_space = truncated.rfind(' ')

    if last_space > max_chars * 0.8:  # If space is reasonably close to end
        return truncated[:last_space] + "..."

    return truncated + "..."
