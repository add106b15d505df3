"""
Query Enhancer
Expands one stakeholder profile (role + concerns) into an ordered list of
search queries. Earlier queries are the more literal ones.

Japanese is the primary language. When the profile is written in Japanese,
one English query is appended after the cap so that English documents are
reached too.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from stakeholder_rag.dictionaries import (
    COMMON_ROLE_TRANSLATIONS,
    CONCERN_CONCRETIZATION,
    CONCERN_KEYWORDS_TO_ENGLISH,
    CONCERN_PATTERN_QUERIES,
    CONCERN_SYNONYMS_EN,
    CONCERN_SYNONYMS_JA,
    CONCERN_TRANSLATIONS,
    DEFAULT_ENGLISH_QUERY,
    ENGLISH_QUERY_TEMPLATES,
    FIELD_DETECTION_KEYWORDS,
    FIELD_ENGLISH_TEMPLATES,
    FIELD_SYNONYMS,
    FIELD_TERMS_EN,
    FIELD_TERMS_JA,
    PRIORITY_KEYWORDS_EN,
    PRIORITY_KEYWORDS_JA,
    ROLE_SPECIFIC_TERMS,
    ROLE_SYNONYMS_EN,
    ROLE_SYNONYMS_JA,
    TECHNICAL_DOMAIN_QUERY_PREFIX,
)
from stakeholder_rag.strategies import TECHNICAL_STAKEHOLDER_IDS
from stakeholder_rag.text_utils import (
    contains_japanese,
    detect_language,
    is_technical_term,
    normalize_query,
)
from stakeholder_rag.types import Language, StakeholderProfile

logger = logging.getLogger("stakeholder_rag.query_enhancer")

CUSTOM_STAKEHOLDER_PREFIX = "custom_"


@dataclass
class EnhancementConfig:
    """Query expansion switches"""
    max_queries: int = 5
    include_alternate_language: bool = True
    include_synonyms: bool = True
    include_role_specific_terms: bool = True


def score_concern(concern: str) -> int:
    """Japanese keyword hits count double, English hits once"""
    concern_lower = concern.lower()
    score = sum(2 for keyword in PRIORITY_KEYWORDS_JA if keyword in concern)
    score += sum(1 for keyword in PRIORITY_KEYWORDS_EN if keyword in concern_lower)
    return score


def prioritize_concerns(concerns: Iterable[str], max_count: int = 3) -> list[str]:
    """Top concerns by keyword score (stable for equal scores)"""
    return sorted(concerns, key=score_concern, reverse=True)[:max_count]


class _QueryList:
    """Ordered, whitespace-normalized, duplicate-free query accumulator"""

    def __init__(self):
        self.items: list[str] = []

    def add(self, *queries: str):
        for query in queries:
            query = normalize_query(query)
            if query and query not in self.items:
                self.items.append(query)

    def __len__(self):
        return len(self.items)


class QueryEnhancer:
    """
    Stakeholder-aware query expansion.

    Pipeline: clean role → concretize concerns → prioritize → base templates
    → translated variants → synonyms → role-specific terms → cap (+1 English).
    Ids starting with ``custom_`` take a field-driven path instead.
    """

    def enhance(
        self,
        profile: StakeholderProfile,
        config: Optional[EnhancementConfig] = None,
    ) -> list[str]:
        config = config or EnhancementConfig()

        if profile.id.startswith(CUSTOM_STAKEHOLDER_PREFIX):
            queries = self._enhance_custom(profile, config)
        else:
            queries = self._enhance_standard(profile, config)

        logger.debug(f"🔍 Enhanced queries for '{profile.id}': {queries}")
        return queries

    # =========================================================================
    # Standard stakeholders
    # =========================================================================

    def _enhance_standard(
        self, profile: StakeholderProfile, config: EnhancementConfig
    ) -> list[str]:
        role_lang = detect_language(profile.role)
        concerns_lang = detect_language(" ".join(profile.concerns))

        role = self.clean_role(profile.role, concerns_lang if profile.concerns else None)
        concerns = prioritize_concerns(
            [self.concretize_concern(c) for c in profile.concerns]
        )

        queries = _QueryList()
        queries.add(*self._base_queries(role, concerns))

        if Language.ALTERNATE in (role_lang, concerns_lang):
            queries.add(*self._translated_queries(profile.role, role, concerns, role_lang, concerns_lang))

        if config.include_synonyms:
            queries.add(*self._synonym_queries(role, concerns))

        if config.include_role_specific_terms:
            queries.add(*self._role_specific_queries(profile))

        return self._finalize(queries.items, profile, config, role_lang, concerns_lang)

    def _base_queries(self, role: str, concerns: list[str]) -> list[str]:
        joined = " ".join(concerns)
        if len(concerns) >= 3:
            return [f"{role} {joined}", joined, " ".join(concerns[:2])]
        if len(concerns) == 2:
            return [f"{role} {joined}", joined, f"{role} {concerns[0]}"]
        if len(concerns) == 1:
            return [f"{role} {concerns[0]}", concerns[0]]
        return [role]

    def _translated_queries(
        self,
        raw_role: str,
        role: str,
        concerns: list[str],
        role_lang: Language,
        concerns_lang: Language,
    ) -> list[str]:
        queries = []

        if concerns_lang in (Language.ALTERNATE, Language.MIXED):
            translated = [self.translate_concern(c) for c in concerns]
            if translated != concerns:
                queries.append(f"{role} {' '.join(translated)}")
                queries.append(" ".join(translated))

        if role_lang == Language.ALTERNATE:
            translated_role = self.translate_role(raw_role)
            if translated_role != role:
                queries.append(f"{translated_role} {' '.join(concerns)}")

        return queries

    def _synonym_queries(self, role: str, concerns: list[str]) -> list[str]:
        queries = []
        main_concern = concerns[0] if concerns else ""
        role_lower = role.lower()

        for key, synonyms in ROLE_SYNONYMS_JA.items():
            if key in role:
                queries.append(f"{synonyms[0]} {main_concern}")
        for key, synonyms in ROLE_SYNONYMS_EN.items():
            if key in role_lower:
                queries.append(f"{synonyms[0]} {main_concern}")

        for concern in concerns:
            concern_lower = concern.lower()
            for key, synonyms in CONCERN_SYNONYMS_JA.items():
                if key in concern:
                    queries.append(f"{role} {synonyms[0]}")
            for key, synonyms in CONCERN_SYNONYMS_EN.items():
                if key in concern_lower:
                    queries.append(f"{role} {synonyms[0]}")

        return queries

    def _role_specific_queries(self, profile: StakeholderProfile) -> list[str]:
        terms = ROLE_SPECIFIC_TERMS.get(profile.id)
        if not terms:
            return []

        main_concern = profile.concerns[0] if profile.concerns else ""
        queries = [f"{terms[0]} {main_concern}"]
        if profile.id in TECHNICAL_STAKEHOLDER_IDS:
            queries.append(f"{TECHNICAL_DOMAIN_QUERY_PREFIX} {main_concern}")
        return queries

    # =========================================================================
    # Custom stakeholders
    # =========================================================================

    def _enhance_custom(
        self, profile: StakeholderProfile, config: EnhancementConfig
    ) -> list[str]:
        role_lang = detect_language(profile.role)
        concerns_lang = detect_language(" ".join(profile.concerns))

        field = detect_field(profile.role)
        role = self.clean_role(profile.role, concerns_lang if profile.concerns else None)
        concerns = prioritize_concerns(profile.concerns)
        joined = " ".join(concerns)

        queries = _QueryList()
        queries.add(f"{role} {joined}", joined)

        if Language.ALTERNATE in (role_lang, concerns_lang):
            queries.add(*self._translated_queries(profile.role, role, concerns, role_lang, concerns_lang))

        if field:
            queries.add(*self._field_queries(field, concerns))

        queries.add(*self._concern_pattern_queries(profile.concerns))

        if config.include_synonyms and field in FIELD_SYNONYMS:
            main_concern = concerns[0] if concerns else ""
            queries.add(f"{FIELD_SYNONYMS[field][0]} {main_concern}")

        logger.debug(f"🧩 Custom stakeholder '{profile.id}' field={field}")
        return self._finalize(queries.items, profile, config, role_lang, concerns_lang)

    def _field_queries(self, field: str, concerns: list[str]) -> list[str]:
        if detect_language(" ".join(concerns)) == Language.ALTERNATE:
            terms = FIELD_TERMS_EN.get(field, [])
        else:
            terms = FIELD_TERMS_JA.get(field, [])
        if not terms:
            return []

        main_concern = concerns[0] if concerns else ""
        second = " ".join(terms[1:3])
        return [f"{terms[0]} {main_concern}", second]

    def _concern_pattern_queries(self, concerns: Iterable[str]) -> list[str]:
        queries = []
        for concern in concerns:
            concern_lower = concern.lower()
            for keywords, query in CONCERN_PATTERN_QUERIES:
                if any(k in concern_lower for k in keywords):
                    queries.append(query)
        return queries

    # =========================================================================
    # Cap and cross-language query
    # =========================================================================

    def _finalize(
        self,
        queries: list[str],
        profile: StakeholderProfile,
        config: EnhancementConfig,
        role_lang: Language,
        concerns_lang: Language,
    ) -> list[str]:
        capped = queries[: max(config.max_queries, 0)]

        # Any Japanese in role or concerns (mixed included) counts
        japanese_profile = role_lang != Language.ALTERNATE or concerns_lang != Language.ALTERNATE
        if config.include_alternate_language and japanese_profile:
            alternate = normalize_query(self.alternate_language_query(profile))
            if alternate and alternate not in capped:
                capped.append(alternate)

        return capped

    def alternate_language_query(self, profile: StakeholderProfile) -> str:
        """English query for a Japanese profile: per-stakeholder template, else derived"""
        template = ENGLISH_QUERY_TEMPLATES.get(profile.id)
        if template:
            return template

        field = detect_field(profile.role)
        if field in FIELD_ENGLISH_TEMPLATES:
            return FIELD_ENGLISH_TEMPLATES[field]

        text = " ".join(profile.concerns)
        words = [en for ja, en in CONCERN_KEYWORDS_TO_ENGLISH.items() if ja in text]
        if words:
            return " ".join(dict.fromkeys(words))
        return DEFAULT_ENGLISH_QUERY

    # =========================================================================
    # Role / concern normalization
    # =========================================================================

    def clean_role(self, role: str, concerns_lang: Optional[Language] = None) -> str:
        """
        Pick one alternative from "English / 日本語" roles, else map known
        English roles to Japanese. Unknown roles pass through.
        """
        role = role or ""
        if "/" in role:
            parts = [p.strip() for p in role.split("/") if p.strip()]
            if not parts:
                return ""
            if concerns_lang == Language.ALTERNATE:
                latin = next((p for p in parts if not contains_japanese(p)), None)
                if latin:
                    return latin
            japanese = next((p for p in parts if contains_japanese(p)), None)
            if japanese:
                return japanese
            return max(parts, key=len)

        cleaned = " ".join(
            role.replace("-", " ").replace("(", " ").replace(")", " ").split()
        )
        return self.translate_role(cleaned)

    def translate_role(self, role: str) -> str:
        """English role → Japanese via the translation table (also "X team" / "X division")"""
        role_lower = role.strip().lower()
        for english, japanese in COMMON_ROLE_TRANSLATIONS.items():
            if role_lower in (english, f"{english} team", f"{english} division"):
                return japanese
        return role

    def concretize_concern(self, concern: str) -> str:
        """Abstract concern phrase → concrete keywords (identity when unknown)"""
        return CONCERN_CONCRETIZATION.get(concern, concern)

    def translate_concern(self, concern: str) -> str:
        """English concern → Japanese; exact match first, then the first substring hit"""
        concern_lower = concern.lower()
        if concern_lower in CONCERN_TRANSLATIONS:
            return CONCERN_TRANSLATIONS[concern_lower]

        if is_technical_term(concern):
            return concern

        for english, japanese in CONCERN_TRANSLATIONS.items():
            if english in concern_lower:
                return concern_lower.replace(english, japanese, 1)

        return concern


def detect_field(role: str) -> Optional[str]:
    """Business field of a free-text role (first match wins)"""
    role_lower = (role or "").lower()
    for field, keywords in FIELD_DETECTION_KEYWORDS.items():
        if any(keyword in role_lower for keyword in keywords):
            return field
    return None


def debug_query_enhancement(
    profile: StakeholderProfile,
    config: Optional[EnhancementConfig] = None,
    enhancer: Optional[QueryEnhancer] = None,
) -> list[str]:
    """Log the enhancement of one profile; returns the queries"""
    queries = (enhancer or QueryEnhancer()).enhance(profile, config)
    original = f"{profile.role} {' '.join(profile.concerns)}"
    logger.info(f"🔍 Query enhancement for '{profile.id}'")
    logger.info(f"   Original ({len(original)} chars): {original}")
    for idx, query in enumerate(queries, 1):
        logger.info(f"   {idx}. {query} ({len(query)} chars)")
    return queries
