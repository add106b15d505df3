"""
Tests for Stakeholder Query Enhancement
"""
import pytest

from stakeholder_rag.dictionaries import ENGLISH_QUERY_TEMPLATES, FIELD_ENGLISH_TEMPLATES
from stakeholder_rag.query_enhancer import (
    EnhancementConfig,
    QueryEnhancer,
    detect_field,
    prioritize_concerns,
)
from stakeholder_rag.text_utils import detect_language
from stakeholder_rag.types import Language, StakeholderProfile


# Predefined stakeholders, as shipped in both languages
STAKEHOLDERS_JA = [
    StakeholderProfile("cxo", "CxO / 経営層", ["戦略的整合性", "企業価値への影響", "リスク管理", "ステークホルダーへの説明責任"]),
    StakeholderProfile("technical-fellows", "Technical Fellows / 技術専門家", ["技術的な卓越性", "ベストプラクティスの適用", "長期的な技術戦略", "技術的イノベーション"]),
    StakeholderProfile("architect", "Architect / アーキテクト", ["システム設計の整合性", "スケーラビリティ", "技術的負債", "アーキテクチャの保守性"]),
    StakeholderProfile("business", "Business Division / 事業部門", ["ビジネスインパクト", "ROIと収益性", "市場シェア", "事業リスク"]),
    StakeholderProfile("product", "Product Division / 製品部門", ["製品の品質と安全性", "市場競争力", "ユーザビリティ", "製品化のタイムライン"]),
    StakeholderProfile("r-and-d", "R&D Division / 研究開発部門", ["技術的な実現可能性", "開発リソースの効率性", "イノベーションの機会", "技術的リスクと課題"]),
]

STAKEHOLDERS_EN = [
    StakeholderProfile("cxo", "CxO / Executive", ["Strategic alignment", "Corporate value impact", "Risk management", "Stakeholder accountability"]),
    StakeholderProfile("technical-fellows", "Technical Fellows", ["Technical excellence", "Best practice adoption", "Long-term tech strategy", "Technical innovation"]),
    StakeholderProfile("architect", "Architect", ["System design integrity", "Scalability", "Technical debt", "Architecture maintainability"]),
    StakeholderProfile("business", "Business Division", ["Business impact", "ROI and profitability", "Market share", "Business risk"]),
    StakeholderProfile("product", "Product Division", ["Product quality and safety", "Market competitiveness", "Usability", "Product launch timeline"]),
    StakeholderProfile("r-and-d", "R&D Division", ["Technical feasibility", "Development resource efficiency", "Innovation opportunities", "Technical risks and challenges"]),
]

OTHER_PROFILES = [
    StakeholderProfile("custom_qa", "品質保証部 マネージャー", ["品質向上", "コスト"]),
    StakeholderProfile("custom_sec", "Security Team", ["risk", "cost reduction"]),
    StakeholderProfile("custom_none", "Observer", []),
    StakeholderProfile("product", "", []),
    StakeholderProfile("", "", []),
]

ALL_PROFILES = STAKEHOLDERS_JA + STAKEHOLDERS_EN + OTHER_PROFILES


@pytest.fixture
def enhancer():
    return QueryEnhancer()


class TestQueryListContract:
    """No empties, no duplicates, cap + 1"""

    @pytest.mark.parametrize("profile", ALL_PROFILES, ids=lambda p: f"{p.id}:{p.role}")
    def test_no_empty_or_duplicate(self, enhancer, profile):
        queries = enhancer.enhance(profile)

        assert all(q.strip() for q in queries)
        assert len(queries) == len(set(queries))

    @pytest.mark.parametrize("profile", ALL_PROFILES, ids=lambda p: f"{p.id}:{p.role}")
    @pytest.mark.parametrize("max_queries", [1, 2, 5])
    def test_cap_plus_one(self, enhancer, profile, max_queries):
        queries = enhancer.enhance(profile, EnhancementConfig(max_queries=max_queries))

        assert len(queries) <= max_queries + 1
        if len(queries) == max_queries + 1:
            assert queries[-1] == enhancer.alternate_language_query(profile)

    @pytest.mark.parametrize("profile", STAKEHOLDERS_JA, ids=lambda p: p.id)
    def test_japanese_profile_gets_english_query(self, enhancer, profile):
        queries = enhancer.enhance(profile)

        assert queries[-1] == ENGLISH_QUERY_TEMPLATES[profile.id]
        assert len(queries) == 6

    @pytest.mark.parametrize("profile", STAKEHOLDERS_EN, ids=lambda p: p.id)
    def test_english_profile_has_no_extra_query(self, enhancer, profile):
        queries = enhancer.enhance(profile)

        assert len(queries) <= 5
        assert ENGLISH_QUERY_TEMPLATES[profile.id] not in queries

    def test_alternate_language_can_be_disabled(self, enhancer):
        config = EnhancementConfig(include_alternate_language=False)
        queries = enhancer.enhance(STAKEHOLDERS_JA[1], config)

        assert len(queries) == 5
        assert ENGLISH_QUERY_TEMPLATES["technical-fellows"] not in queries

    def test_empty_profile(self, enhancer):
        assert enhancer.enhance(StakeholderProfile("", "", [])) == []


class TestStandardPipeline:
    """Template and expansion stages"""

    def test_technical_fellows_japanese(self, enhancer):
        queries = enhancer.enhance(STAKEHOLDERS_JA[1])

        # concretized + prioritized: 技術品質 設計品質 / 技術方針 技術選定 / 技術改善 最適化
        assert queries[:5] == [
            "技術専門家 技術品質 設計品質 技術方針 技術選定 技術改善 最適化",
            "技術品質 設計品質 技術方針 技術選定 技術改善 最適化",
            "技術品質 設計品質 技術方針 技術選定",
            "技術者 技術品質 設計品質",
            "技術専門家 クオリティ",
        ]

    def test_one_concern_templates(self, enhancer):
        profile = StakeholderProfile("someone", "Observer", ["安全"])
        config = EnhancementConfig(include_synonyms=False, include_alternate_language=False)

        assert enhancer.enhance(profile, config) == ["Observer 安全", "安全"]

    def test_two_concern_templates(self, enhancer):
        profile = StakeholderProfile("someone", "監査役", ["監査", "報告"])
        config = EnhancementConfig(include_alternate_language=False)

        assert enhancer.enhance(profile, config) == ["監査役 監査 報告", "監査 報告", "監査役 監査"]

    def test_role_specific_terms(self, enhancer):
        profile = StakeholderProfile("architect", "アーキテクト", ["未知の関心"])
        config = EnhancementConfig(max_queries=10, include_synonyms=False)
        queries = enhancer.enhance(profile, config)

        assert "設計 未知の関心" in queries
        assert "GSN アシュアランスケース 未知の関心" in queries

    def test_role_specific_terms_disabled(self, enhancer):
        profile = StakeholderProfile("architect", "アーキテクト", ["未知の関心"])
        config = EnhancementConfig(max_queries=10, include_role_specific_terms=False)
        queries = enhancer.enhance(profile, config)

        assert not any(q.startswith("GSN") for q in queries)

    def test_english_concerns_are_translated(self, enhancer):
        profile = StakeholderProfile("architect", "Architect", ["Scalability", "Technical debt"])
        queries = enhancer.enhance(profile)

        assert "Architect Scalability Technical debt" in queries
        assert "スケーラビリティ Technical debt" in queries


class TestCustomStakeholders:
    """Field-driven path for custom_ ids"""

    def test_field_queries(self, enhancer):
        profile = OTHER_PROFILES[0]
        queries = enhancer.enhance(profile)

        assert queries[0] == "品質保証部 マネージャー 品質向上 コスト"
        assert "品質保証 品質向上" in queries
        assert "品質向上 不具合削減 テスト" in queries
        assert queries[-1] == FIELD_ENGLISH_TEMPLATES["quality"]
        assert len(queries) == 6

    def test_english_custom_profile(self, enhancer):
        profile = OTHER_PROFILES[1]
        queries = enhancer.enhance(profile)

        # Role mapped through the translation table
        assert queries[0].startswith("セキュリティチーム")
        assert len(queries) <= 5

    def test_detect_field(self):
        assert detect_field("品質保証部") == "quality"
        assert detect_field("Sales Manager") == "sales"
        assert detect_field("DevOps engineer") == "devops"
        assert detect_field("Observer") is None


class TestNormalization:
    """Role cleaning, concern mapping, prioritization"""

    def test_clean_role_slash(self, enhancer):
        assert enhancer.clean_role("CxO / 経営層", Language.PRIMARY) == "経営層"
        assert enhancer.clean_role("CxO / 経営層", Language.ALTERNATE) == "CxO"
        assert enhancer.clean_role("CxO / 経営層") == "経営層"
        assert enhancer.clean_role("Business / Business Division") == "Business Division"

    def test_clean_role_translation(self, enhancer):
        assert enhancer.clean_role("Security Team") == "セキュリティチーム"
        assert enhancer.clean_role("qa team") == "QAチーム"
        assert enhancer.clean_role("Sales Division") == "営業"
        assert enhancer.clean_role("Unknown-Role (temp)") == "Unknown Role temp"

    def test_translate_concern(self, enhancer):
        assert enhancer.translate_concern("Cost reduction") == "コスト削減"
        assert enhancer.translate_concern("Risk management plan") == "リスク管理 plan"
        assert enhancer.translate_concern("CI/CD") == "CI/CD"

    def test_concretize_concern(self, enhancer):
        assert enhancer.concretize_concern("市場競争力") == "競争力 差別化 市場価値"

    @pytest.mark.parametrize("concern", ["未知の関心事", "zzz unknown phrase", "", "G1"])
    def test_unknown_concern_round_trip(self, enhancer, concern):
        assert enhancer.translate_concern(enhancer.concretize_concern(concern)) == concern

    def test_prioritize_concerns(self):
        concerns = ["広報", "安全 リスク", "cost", "採用"]

        assert prioritize_concerns(concerns) == ["安全 リスク", "cost", "広報"]
        assert prioritize_concerns(concerns, max_count=1) == ["安全 リスク"]
        assert prioritize_concerns([]) == []

    def test_detect_language(self):
        assert detect_language("リスク管理") == Language.PRIMARY
        assert detect_language("risk management") == Language.ALTERNATE
        assert detect_language("ROIと収益性") == Language.MIXED
        assert detect_language("") == Language.ALTERNATE
