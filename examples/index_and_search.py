"""
Example: Index sample assurance-case passages and retrieve per stakeholder
"""
import sys

from stakeholder_rag import StakeholderProfile, retrieve_for_stakeholder
from stakeholder_rag.qdrant_store import QdrantStore
from stakeholder_rag.types import PassageRef


# Sample passages to index
SAMPLE_PASSAGES = [
    PassageRef(
        text="""G1: 自動運転システムは運用設計領域(ODD)内で十分に安全である。
        S1: ハザード分析の結果ごとに議論を分割する。""",
        metadata={"sourceFile": "safety_case.pdf", "chunkIndex": 0},
    ),
    PassageRef(
        text="""G2: 歩行者の誤検知によるリスクは許容レベルまで低減されている。
        Sn1: センサーフュージョンの検証テスト結果(REQ-102)。""",
        metadata={"sourceFile": "safety_case.pdf", "chunkIndex": 1},
    ),
    PassageRef(
        text="""アーキテクチャ概要: 認識・判断・制御の3層構成。冗長化により単一故障での
        機能喪失を防ぐ。技術的負債として旧ECUとのインタフェースが残る。""",
        metadata={"sourceFile": "architecture.pdf", "chunkIndex": 0},
    ),
    PassageRef(
        text="""事業計画: 初年度の開発コストは予算内に収まる見込み。ROIは3年目に黒字化。
        市場投入のスケジュールは安全認証の取得時期に依存する。""",
        metadata={"sourceFile": "business_plan.pdf", "chunkIndex": 0},
    ),
    PassageRef(
        text="""The hazard log lists 42 hazards. HAZ-7 (sensor blindness in heavy rain)
        remains open and is tracked as a residual risk for the safety review.""",
        metadata={"sourceFile": "hazard_log.pdf", "chunkIndex": 0},
    ),
    PassageRef(
        text="""品質保証計画: 単体テスト・結合テストのカバレッジ目標は90%。
        不具合の傾向分析を四半期ごとに経営層へ報告する。""",
        metadata={"sourceFile": "qa_plan.pdf", "chunkIndex": 0},
    ),
]

STAKEHOLDERS = [
    StakeholderProfile("cxo", "CxO / 経営層", ["戦略的整合性", "企業価値への影響", "リスク管理", "ステークホルダーへの説明責任"]),
    StakeholderProfile("technical-fellows", "Technical Fellows / 技術専門家", ["技術的な卓越性", "ベストプラクティスの適用", "長期的な技術戦略", "技術的イノベーション"]),
    StakeholderProfile("architect", "Architect / アーキテクト", ["システム設計の整合性", "スケーラビリティ", "技術的負債", "アーキテクチャの保守性"]),
    StakeholderProfile("custom_qa", "品質保証部 マネージャー", ["品質向上", "コスト"]),
]


def main():
    print("=" * 60)
    print("Stakeholder Retrieval Fusion - Example")
    print("=" * 60)

    # 1. Index passages
    print("\n📦 Indexing passages in Qdrant...")
    store = QdrantStore()
    store.upsert_passages(SAMPLE_PASSAGES)
    total = store.stats()["total_documents"]
    print(f"✅ Total in Qdrant: {total} passages (hybrid={store.hybrid_enabled})")

    # 2. Retrieve for each stakeholder
    for profile in STAKEHOLDERS:
        print("\n" + "=" * 60)
        print(f"👤 Stakeholder: {profile.role} ({profile.id})")
        print("=" * 60)

        result = retrieve_for_stakeholder(profile, store, corpus_size=total)
        stats = result.statistics

        print("\n🔍 Queries:")
        for idx, query in enumerate(result.queries, 1):
            print(f"    {idx}. {query}")

        print(f"\n📊 Results: {len(result)} passages "
              f"(target K={stats.target_k}, achievement={stats.achievement_rate:.0%}, "
              f"phases={stats.phases})")
        print(f"⏱️  Timings: retrieve={stats.timings.get('retrieve_ms', 0):.1f}ms, "
              f"fuse={stats.timings.get('fuse_ms', 0):.1f}ms, "
              f"total={stats.timings.get('search_total_ms', 0):.1f}ms")

        for rank, passage in enumerate(result.passages, 1):
            print(f"\n[{rank}] {passage.source_file} (chunk {passage.metadata.get('chunkIndex')})")
            print(f"    RRF score: {passage.rrf_score:.4f} | coverage: {passage.query_coverage}/{len(result.queries)}")
            print(f"    Text: {' '.join(passage.text.split())[:150]}...")

        if stats.notes:
            print(f"\n📝 Notes: {stats.notes}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(1)
