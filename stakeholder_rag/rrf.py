"""
RRF (Reciprocal Rank Fusion) Implementation
Combines the ranked lists of several reformulated queries into one ranking
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from stakeholder_rag.adapters import Hit, RetrievalAdapter, supports_hybrid
from stakeholder_rag.config import get_settings
from stakeholder_rag.errors import InvalidInputError, QueryRetrievalFailed
from stakeholder_rag.k_sizing import ceil_product
from stakeholder_rag.sparse_encoder import SparseVectorEncoder
from stakeholder_rag.text_utils import extract_identifiers
from stakeholder_rag.types import (
    FusionResult,
    FusionStatistics,
    PassageRef,
    RetrievalQuery,
    ScoredPassage,
)

logger = logging.getLogger("stakeholder_rag.rrf")

QueryLike = Union[RetrievalQuery, str]


def rrf_score_single(rank: int, k: int = 60, weight: float = 1.0) -> float:
    """Weighted RRF contribution for a 0-based rank"""
    return weight / (k + rank + 1)


def default_search_k(k: int, min_search_k: int = 20, multiplier: float = 1.5) -> int:
    """Candidates fetched per query: max(min_search_k, ceil(k * multiplier))"""
    return max(min_search_k, ceil_product(k, multiplier))


@dataclass
class QueryOutcome:
    """Ranked list returned by one query task"""
    hits: list[Hit]
    hybrid_fallback: bool = False
    encoding_degraded: bool = False
    used_hybrid: bool = False


@dataclass
class FusionRecord:
    """
    Best 1-based rank of one passage per query index.

    A record map can be shared across several fuse() calls over the same
    query list; each id then keeps its best rank per query and the RRF
    score is recomputed from those ranks.
    """
    passage: PassageRef
    ranks: dict[int, int] = field(default_factory=dict)
    raw_scores: dict[int, float] = field(default_factory=dict)
    score: float = 0.0

    @property
    def min_rank(self) -> int:
        return min(self.ranks.values())

    def observe(self, query_idx: int, rank: int, raw_score: float):
        current = self.ranks.get(query_idx)
        if current is None or rank < current:
            self.ranks[query_idx] = rank
            self.raw_scores[query_idx] = raw_score

    def rescore(self, queries: list[RetrievalQuery], rrf_constant: int) -> float:
        self.score = sum(
            rrf_score_single(rank - 1, rrf_constant, queries[idx].weight)
            for idx, rank in sorted(self.ranks.items())
        )
        return self.score

    def by_query_text(self, queries: list[RetrievalQuery]) -> tuple[dict[str, int], dict[str, float]]:
        """Ranks and raw scores keyed by query text (duplicate texts keep the best rank)"""
        ranks: dict[str, int] = {}
        scores: dict[str, float] = {}
        for idx, rank in sorted(self.ranks.items()):
            text = queries[idx].text
            if text not in ranks or rank < ranks[text]:
                ranks[text] = rank
                scores[text] = self.raw_scores[idx]
        return ranks, scores


class RRFFusionEngine:
    """
    Multi-query retrieval + weighted RRF.

    Each query runs as its own task on a bounded thread pool and returns its
    own ranked list; the lists are merged afterwards in query order, so the
    output never depends on completion order.
    """

    def __init__(
        self,
        adapter: RetrievalAdapter,
        encoder: Optional[SparseVectorEncoder] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()

        self.adapter = adapter
        self.hybrid_capable = supports_hybrid(adapter)
        self._encoder = encoder
        self.max_workers = max_workers or settings.max_workers
        self.timeout = timeout if timeout is not None else settings.fusion_timeout_s
        self.min_search_k = settings.min_search_k
        self.search_k_multiplier = settings.search_k_multiplier
        self.rrf_constant = settings.default_rrf_k

    @property
    def encoder(self) -> SparseVectorEncoder:
        if self._encoder is None:
            self._encoder = SparseVectorEncoder()
        return self._encoder

    def search_k_for(self, k: int) -> int:
        return default_search_k(k, self.min_search_k, self.search_k_multiplier)

    def fuse(
        self,
        queries: Sequence[QueryLike],
        k: int,
        search_k: Optional[int] = None,
        rrf_constant: Optional[int] = None,
        use_hybrid: bool = True,
        records: Optional[dict[str, FusionRecord]] = None,
    ) -> FusionResult:
        """
        Retrieve for every query and fuse by RRF

        Args:
            queries: Weighted queries (plain strings get weight 1.0)
            k: Number of passages to return
            search_k: Candidates per query (default max(20, ceil(k * 1.5)))
            rrf_constant: RRF constant (default 60)
            use_hybrid: Use hybrid search when the adapter supports it
            records: Record map carried over from earlier calls with the same
                queries; updated in place and fused as a whole

        Returns:
            FusionResult with at most k passages. Failed queries contribute
            nothing; if every query fails the result is flagged (and empty
            unless `records` already held passages).
        """
        start_time = time.time()
        if k is None or k < 0:
            raise InvalidInputError(f"k must be >= 0, got {k}")

        weighted = [q if isinstance(q, RetrievalQuery) else RetrievalQuery(q) for q in queries]
        search_k = search_k or self.search_k_for(k)
        rrf_constant = rrf_constant if rrf_constant is not None else self.rrf_constant
        hybrid = use_hybrid and self.hybrid_capable

        stats = FusionStatistics(queries_total=len(weighted))
        if k == 0 or not weighted:
            stats.timings["total_ms"] = (time.time() - start_time) * 1000
            return FusionResult(passages=[], statistics=stats, queries=[q.text for q in weighted], k=k)

        logger.info(
            f"🎯 RRF fusion {'(hybrid)' if hybrid else '(dense only)'}: "
            f"{len(weighted)} queries, K={k}, search_k={search_k}, rrf_k={rrf_constant}"
        )

        t0 = time.time()
        outcomes = self._run_queries(weighted, search_k, hybrid, stats)
        stats.timings["retrieve_ms"] = (time.time() - t0) * 1000

        t0 = time.time()
        records = {} if records is None else records
        self._accumulate(outcomes, records)
        for record in records.values():
            record.rescore(weighted, rrf_constant)
        ranked = sorted(
            records.items(),
            key=lambda item: (-item[1].score, item[1].min_rank, item[0]),
        )
        passages = []
        for doc_id, record in ranked[:k]:
            ranks, raw_scores = record.by_query_text(weighted)
            passages.append(ScoredPassage(
                id=doc_id,
                text=record.passage.text,
                metadata=dict(record.passage.metadata),
                rrf_score=record.score,
                per_query_rank=ranks,
                per_query_score=raw_scores,
            ))
        stats.timings["fuse_ms"] = (time.time() - t0) * 1000

        compute_statistics(passages, stats)
        stats.total_unique_documents = len(records)
        stats.all_queries_failed = stats.queries_failed == stats.queries_total
        stats.timings["total_ms"] = (time.time() - start_time) * 1000

        if stats.all_queries_failed:
            logger.warning(
                f"⚠️ All {stats.queries_total} queries failed; "
                f"returning {len(passages)} previously merged passages"
            )
        else:
            logger.info(
                f"✅ RRF fused {len(records)} unique documents → returning {len(passages)} "
                f"({stats.queries_failed} failed, {stats.hybrid_fallbacks} hybrid fallbacks)"
            )

        return FusionResult(
            passages=passages,
            statistics=stats,
            queries=[q.text for q in weighted],
            k=k,
        )

    def _run_queries(
        self,
        queries: list[RetrievalQuery],
        search_k: int,
        hybrid: bool,
        stats: FusionStatistics,
    ) -> list[Optional[QueryOutcome]]:
        """Run query tasks under the overall deadline; None for failed queries"""
        outcomes: list[Optional[QueryOutcome]] = [None] * len(queries)

        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(queries))),
            thread_name_prefix="rrf-query",
        )
        futures = {
            executor.submit(self._retrieve, query.text, search_k, hybrid): idx
            for idx, query in enumerate(queries)
        }

        done, not_done = wait(futures, timeout=self.timeout)
        if not_done:
            stats.timed_out = True
            stats.add_note(f"Deadline of {self.timeout}s hit; {len(not_done)} queries unfinished")
            logger.warning(
                f"⏱️ Fusion deadline ({self.timeout}s) reached: fusing "
                f"{len(done)}/{len(queries)} finished queries"
            )
            executor.shutdown(wait=False, cancel_futures=True)
        else:
            executor.shutdown(wait=True)

        for future, idx in futures.items():
            if future in not_done:
                stats.queries_failed += 1
                continue
            try:
                outcome = future.result()
            except QueryRetrievalFailed as e:
                stats.queries_failed += 1
                logger.warning(f"⚠️ Query {idx + 1} failed: {e}")
                continue
            outcomes[idx] = outcome
            stats.hybrid_fallbacks += int(outcome.hybrid_fallback)
            stats.encoding_degraded = stats.encoding_degraded or outcome.encoding_degraded

        return outcomes

    def _retrieve(self, query: str, search_k: int, hybrid: bool) -> QueryOutcome:
        """
        One query's ranked list: hybrid when possible, dense otherwise

        Raises:
            QueryRetrievalFailed: dense search failed
        """
        outcome = QueryOutcome(hits=[])

        if hybrid:
            try:
                sparse = self.encoder.encode(query)
                outcome.encoding_degraded = sparse.degraded
                dense = self.adapter.embed_query(query)
                outcome.hits = self.adapter.hybrid_search(dense, sparse, search_k)[:search_k]
                outcome.used_hybrid = True
                return outcome
            except Exception as e:
                logger.warning(f"⚠️ Hybrid search failed for '{query[:50]}', falling back to dense: {e}")
                outcome.hybrid_fallback = True

        try:
            outcome.hits = self.adapter.dense_search(query, search_k)[:search_k]
        except Exception as e:
            raise QueryRetrievalFailed(query, e) from e
        return outcome

    @staticmethod
    def _accumulate(
        outcomes: list[Optional[QueryOutcome]],
        records: dict[str, FusionRecord],
    ):
        for query_idx, outcome in enumerate(outcomes):
            if outcome is None:
                continue

            seen: set[str] = set()
            for rank, (passage, score) in enumerate(outcome.hits):
                doc_id = passage.stable_id()
                # A backend repeating a passage does not vote twice
                if doc_id in seen:
                    continue
                seen.add(doc_id)

                record = records.get(doc_id)
                if record is None:
                    record = records[doc_id] = FusionRecord(passage=passage)
                record.observe(query_idx, rank + 1, float(score or 0.0))


def fuse(
    queries: Sequence[QueryLike],
    k: int,
    search_k: Optional[int] = None,
    rrf_constant: int = 60,
    adapter: Optional[RetrievalAdapter] = None,
    **engine_kwargs,
) -> FusionResult:
    """One-shot fusion with a throwaway engine"""
    if adapter is None:
        raise InvalidInputError("adapter is required")
    engine = RRFFusionEngine(adapter, **engine_kwargs)
    return engine.fuse(queries, k, search_k=search_k, rrf_constant=rrf_constant)


def compute_statistics(
    passages: list[ScoredPassage],
    stats: Optional[FusionStatistics] = None,
) -> FusionStatistics:
    """Average score / coverage and per-file counts of the returned passages"""
    stats = stats or FusionStatistics()
    stats.no_results = not passages
    stats.documents_by_file = {}

    if not passages:
        stats.average_score = 0.0
        stats.average_coverage = 0.0
        stats.total_unique_documents = 0
        return stats

    for passage in passages:
        source = passage.source_file
        stats.documents_by_file[source] = stats.documents_by_file.get(source, 0) + 1

    stats.average_score = sum(p.rrf_score for p in passages) / len(passages)
    stats.average_coverage = sum(p.query_coverage for p in passages) / len(passages)
    stats.total_unique_documents = len(passages)
    return stats


def debug_fusion_results(result: FusionResult, top_n: int = 5):
    """Log statistics and a breakdown of the top passages"""
    stats = result.statistics
    query_count = len(result.queries)

    logger.info("=" * 50)
    logger.info("📊 RRF Debug Information")
    logger.info(f"  - Total documents: {len(result.passages)}")
    logger.info(f"  - Average RRF score: {stats.average_score:.4f}")
    logger.info(f"  - Average query coverage: {stats.average_coverage:.2f}/{query_count}")

    logger.info("📁 Documents by file:")
    for source, count in stats.documents_by_file.items():
        logger.info(f"  - {source}: {count} chunks")

    logger.info(f"🏆 Top {top_n} documents:")
    for idx, passage in enumerate(result.passages[:top_n], 1):
        chunk_index = passage.metadata.get("chunkIndex", "N/A")
        logger.info(f"  {idx}. {passage.source_file} (chunk {chunk_index})")
        logger.info(f"     RRF score: {passage.rrf_score:.4f}")
        logger.info(f"     Query coverage: {passage.query_coverage}/{query_count} queries")
        identifiers = extract_identifiers(passage.text)
        if identifiers:
            more = "..." if len(identifiers) > 5 else ""
            logger.info(f"     Identifiers: {', '.join(identifiers[:5])}{more}")
    logger.info("=" * 50)
