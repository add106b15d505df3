"""
Stakeholder Strategies
One table maps a stakeholder id to its retrieval policy (K sizing and query
weights). Unknown ids go through a single keyword classifier on role/id.
"""
import logging
from dataclasses import dataclass
from enum import Enum

from stakeholder_rag.types import KSizingConfig, StakeholderProfile

logger = logging.getLogger("stakeholder_rag.strategies")


class StakeholderClass(str, Enum):
    TECHNICAL = "technical"
    EXECUTIVE = "executive"
    RISK_QUALITY = "risk_quality"
    DEFAULT = "default"


@dataclass(frozen=True)
class StakeholderStrategy:
    """
    Retrieval policy for one stakeholder

    Query weights: the first `lead_count` queries get `lead_weight`, the rest
    get `tail_weight`. Earlier queries are the more literal ones.
    """
    stakeholder_class: StakeholderClass
    k_sizing: KSizingConfig
    lead_weight: float = 1.0
    lead_count: int = 1
    tail_weight: float = 1.0

    def weights(self, query_count: int) -> list[float]:
        return [
            self.lead_weight if idx < self.lead_count else self.tail_weight
            for idx in range(query_count)
        ]


# Presets for stakeholders whose id is not in the table
CLASS_PRESETS: dict[StakeholderClass, StakeholderStrategy] = {
    StakeholderClass.TECHNICAL: StakeholderStrategy(
        StakeholderClass.TECHNICAL, KSizingConfig(0.5, 20, 100),
        lead_weight=1.4, lead_count=1, tail_weight=1.0,
    ),
    StakeholderClass.EXECUTIVE: StakeholderStrategy(
        StakeholderClass.EXECUTIVE, KSizingConfig(0.25, 8, 40),
        lead_weight=1.2, lead_count=2, tail_weight=0.9,
    ),
    StakeholderClass.RISK_QUALITY: StakeholderStrategy(
        StakeholderClass.RISK_QUALITY, KSizingConfig(0.45, 18, 100),
        lead_weight=1.4, lead_count=1, tail_weight=1.0,
    ),
    StakeholderClass.DEFAULT: StakeholderStrategy(
        StakeholderClass.DEFAULT, KSizingConfig(0.35, 12, 60),
    ),
}

# Predefined stakeholders
_TECHNICAL = StakeholderStrategy(
    StakeholderClass.TECHNICAL, KSizingConfig(0.55, 22, 120),
    lead_weight=1.5, lead_count=1, tail_weight=1.0,
)
_EXECUTIVE = StakeholderStrategy(
    StakeholderClass.EXECUTIVE, KSizingConfig(0.25, 8, 40),
    lead_weight=1.2, lead_count=2, tail_weight=0.8,
)
_PRODUCT = StakeholderStrategy(
    StakeholderClass.DEFAULT, KSizingConfig(0.4, 15, 80),
    lead_weight=1.2, lead_count=1, tail_weight=1.0,
)

STAKEHOLDER_STRATEGIES: dict[str, StakeholderStrategy] = {
    "technical-fellows": _TECHNICAL,
    "architect": _TECHNICAL,
    "r-and-d": _TECHNICAL,
    "cxo": _EXECUTIVE,
    "business": _EXECUTIVE,
    "product": _PRODUCT,
}

TECHNICAL_STAKEHOLDER_IDS = frozenset(
    sid for sid, s in STAKEHOLDER_STRATEGIES.items()
    if s.stakeholder_class is StakeholderClass.TECHNICAL
)

# Checked in order; first class with a hit wins
CLASSIFIER_KEYWORDS: list[tuple[StakeholderClass, tuple[str, ...]]] = [
    (StakeholderClass.TECHNICAL, (
        "技術", "開発", "エンジニア", "アーキテクト", "研究",
        "engineer", "developer", "architect", "technical", "tech", "dev", "r-and-d",
    )),
    (StakeholderClass.EXECUTIVE, (
        "経営", "社長", "役員", "営業",
        "cxo", "executive", "exec", "director", "ceo", "cto", "cfo", "business",
    )),
    (StakeholderClass.RISK_QUALITY, (
        "リスク", "セキュリティ", "品質",
        "risk", "security", "quality", "qa",
    )),
]


def classify_profile(profile: StakeholderProfile) -> StakeholderClass:
    """Keyword classification on role (and id) for stakeholders not in the table"""
    haystack = f"{profile.role} {profile.id}".lower()
    for stakeholder_class, keywords in CLASSIFIER_KEYWORDS:
        if any(keyword in haystack for keyword in keywords):
            return stakeholder_class
    return StakeholderClass.DEFAULT


def resolve_strategy(profile: StakeholderProfile) -> StakeholderStrategy:
    """Table lookup by id, falling back to the classifier presets"""
    strategy = STAKEHOLDER_STRATEGIES.get(profile.id)
    if strategy is not None:
        return strategy

    stakeholder_class = classify_profile(profile)
    logger.debug(f"🧭 Stakeholder '{profile.id}' classified as {stakeholder_class.value}")
    return CLASS_PRESETS[stakeholder_class]


def get_weights_for_stakeholder(profile: StakeholderProfile, query_count: int) -> list[float]:
    """Per-query RRF weights, aligned with the enhancer's query order"""
    return resolve_strategy(profile).weights(query_count)
