"""
Adaptive Stakeholder Retrieval Pipeline
K sizing + Query Enhancement + Weighted RRF + Phase Widening

Pipeline:
1. Compute target K from corpus size and stakeholder
2. Clamp to the effective request size
3. Expand the profile into weighted queries
4. Fuse per-query rankings (hybrid when the backend supports it)
5. If short of K, widen the search window (and drop to dense-only if
   hybrid never worked) for another phase
"""
import logging
import time
from typing import Callable, Optional

from stakeholder_rag.adapters import RetrievalAdapter
from stakeholder_rag.config import Settings, get_settings
from stakeholder_rag.errors import InvalidInputError
from stakeholder_rag.k_sizing import ceil_product, compute_k, effective_request_size, log_k_achievement_rate
from stakeholder_rag.query_enhancer import EnhancementConfig, QueryEnhancer
from stakeholder_rag.rrf import FusionRecord, RRFFusionEngine
from stakeholder_rag.sparse_encoder import SparseVectorEncoder
from stakeholder_rag.strategies import get_weights_for_stakeholder
from stakeholder_rag.text_utils import truncate_text
from stakeholder_rag.types import (
    BackendKind,
    FusionResult,
    FusionStatistics,
    RetrievalQuery,
    StakeholderProfile,
)

logger = logging.getLogger("stakeholder_rag.retriever")


class AdaptiveController:
    """
    Single entry point for stakeholder retrieval.

    Never retries a failed query inside a phase; a later phase re-issues
    every query with a wider window. Rankings are merged across phases, so
    a passage seen in an earlier phase is never lost to a later failure.
    """

    def __init__(
        self,
        enhancer: Optional[QueryEnhancer] = None,
        sizer: Optional[Callable[..., int]] = None,
        settings: Optional[Settings] = None,
        encoder: Optional[SparseVectorEncoder] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.settings = settings or get_settings()
        self.enhancer = enhancer or QueryEnhancer()
        self.sizer = sizer or compute_k
        self._encoder = encoder
        self.max_workers = max_workers or self.settings.max_workers
        self.timeout = timeout if timeout is not None else self.settings.fusion_timeout_s

    def build_queries(
        self,
        profile: StakeholderProfile,
        config: EnhancementConfig,
    ) -> list[RetrievalQuery]:
        """Enhanced queries with the stakeholder's RRF weights"""
        texts = self.enhancer.enhance(profile, config)
        weights = get_weights_for_stakeholder(profile, len(texts))
        return [RetrievalQuery(text, weight) for text, weight in zip(texts, weights)]

    def search(
        self,
        profile: StakeholderProfile,
        corpus_size: int,
        backend_kind: Optional[BackendKind] = None,
        adapter: Optional[RetrievalAdapter] = None,
        max_queries: Optional[int] = None,
        include_alternate_language: Optional[bool] = None,
        include_synonyms: Optional[bool] = None,
        include_role_specific_terms: Optional[bool] = None,
    ) -> FusionResult:
        """
        Retrieve passages for a stakeholder

        Args:
            profile: Stakeholder profile
            corpus_size: Number of passages in the collection
            backend_kind: Backend family (default: the adapter's)
            adapter: Vector-store backend
            max_queries / include_*: Query enhancement switches

        Returns:
            FusionResult with at most the effective request size of passages
        """
        start_time = time.time()
        if adapter is None:
            raise InvalidInputError("adapter is required")
        backend_kind = backend_kind or adapter.backend_kind

        target_k = self.sizer(
            corpus_size, profile, backend_kind,
            memory_constrained_factor=self.settings.memory_constrained_factor,
        )
        request_k = effective_request_size(
            target_k, corpus_size, self.settings.corpus_request_ratio
        )

        config = EnhancementConfig(
            max_queries=max_queries if max_queries is not None else self.settings.max_queries,
            include_alternate_language=_default(include_alternate_language, True),
            include_synonyms=_default(include_synonyms, True),
            include_role_specific_terms=_default(include_role_specific_terms, True),
        )
        queries = self.build_queries(profile, config)

        logger.info(
            f"🎯 Adaptive search: stakeholder={profile.id} corpus={corpus_size} "
            f"backend={backend_kind.value} target_k={target_k} request_k={request_k} "
            f"queries={len(queries)} weights=[{', '.join(f'{q.weight:.1f}' for q in queries)}]"
        )

        if request_k == 0 or not queries:
            result = FusionResult(
                passages=[],
                statistics=FusionStatistics(queries_total=len(queries)),
                queries=[q.text for q in queries],
                k=request_k,
            )
            result.statistics.add_note("Empty corpus: nothing to retrieve")
        else:
            engine = RRFFusionEngine(
                adapter,
                encoder=self._encoder,
                max_workers=self.max_workers,
                timeout=self.timeout,
            )
            result = self._run_phases(engine, queries, request_k, corpus_size)

        stats = result.statistics
        stats.target_k = target_k
        stats.achievement_rate = log_k_achievement_rate(len(result), target_k, profile.id)
        stats.timings["search_total_ms"] = (time.time() - start_time) * 1000
        return result

    def _run_phases(
        self,
        engine: RRFFusionEngine,
        queries: list[RetrievalQuery],
        request_k: int,
        corpus_size: int,
    ) -> FusionResult:
        max_phases = max(1, self.settings.max_phases)
        search_k = engine.search_k_for(request_k)
        use_hybrid = engine.hybrid_capable

        # Shared across phases: a passage found in any phase keeps its best rank
        records: dict[str, FusionRecord] = {}
        result: Optional[FusionResult] = None
        every_phase_failed = True
        phase = 0
        notes: list[str] = []

        while phase < max_phases:
            phase += 1
            result = engine.fuse(
                queries, request_k, search_k=search_k, use_hybrid=use_hybrid, records=records
            )
            stats = result.statistics
            every_phase_failed = every_phase_failed and stats.all_queries_failed
            logger.info(
                f"🔁 Phase {phase}: {len(result)}/{request_k} passages "
                f"(search_k={search_k}, {'hybrid' if use_hybrid else 'dense'})"
            )

            if len(result) >= request_k:
                break
            if stats.all_queries_failed:
                notes.append(f"Phase {phase}: all queries failed, stopping")
                break
            if search_k >= corpus_size:
                notes.append(f"Phase {phase}: search window already covers the corpus")
                break
            if phase >= max_phases:
                break

            # Hybrid never worked: later phases go straight to dense
            if use_hybrid and stats.hybrid_fallbacks + stats.queries_failed >= stats.queries_total:
                use_hybrid = False
                notes.append(f"Phase {phase}: hybrid unavailable, switching to dense-only")

            widened = max(search_k + 1, ceil_product(search_k, self.settings.phase_widen_factor))
            notes.append(f"Phase {phase}: {len(result)}/{request_k} passages, widening search_k {search_k} → {widened}")
            search_k = widened

        result.statistics.phases = phase
        result.statistics.all_queries_failed = every_phase_failed
        for note in notes:
            result.statistics.add_note(note)
        if phase > 1:
            result.statistics.add_note(f"Merged {len(records)} unique passages over {phase} phases")
        return result


def _default(value: Optional[bool], fallback: bool) -> bool:
    return fallback if value is None else value


# Convenience function
def retrieve_for_stakeholder(
    profile: StakeholderProfile,
    adapter: RetrievalAdapter,
    corpus_size: Optional[int] = None,
    backend_kind: Optional[BackendKind] = None,
    **kwargs,
) -> FusionResult:
    """
    Convenience function for stakeholder retrieval

    Reads the corpus size from adapter.stats() when not given.
    For repeated calls, consider reusing an AdaptiveController instance.
    """
    if corpus_size is None:
        corpus_size = int(adapter.stats().get("total_documents", 0))
    controller = AdaptiveController()
    return controller.search(
        profile,
        corpus_size,
        backend_kind=backend_kind,
        adapter=adapter,
        **kwargs,
    )


def format_context_for_llm(result: FusionResult, max_chars_per_passage: int = 1600) -> str:
    """Format fused passages for an LLM prompt"""
    if not result.passages:
        return ""

    parts = []
    for rank, passage in enumerate(result.passages, start=1):
        chunk_index = passage.metadata.get("chunkIndex")
        header = f"[{rank}] {passage.source_file}"
        if chunk_index is not None:
            header += f" (chunk {chunk_index})"
        parts.append(f"{header}\n{truncate_text(passage.text, max_chars_per_passage)}")

    return "\n\n---\n\n".join(parts)
