"""
Stakeholder RAG - Adaptive Retrieval Fusion
Query Enhancement + Dynamic K + Hybrid (Dense + Sparse) Search + Weighted RRF
"""
from stakeholder_rag.types import (
    BackendKind,
    FusionResult,
    FusionStatistics,
    KSizingConfig,
    PassageRef,
    RetrievalQuery,
    ScoredPassage,
    SparseVector,
    StakeholderProfile,
)
from stakeholder_rag.adapters import AdapterRegistry, HybridCapable, InMemoryAdapter, RetrievalAdapter
from stakeholder_rag.k_sizing import compute_k, effective_request_size
from stakeholder_rag.query_enhancer import EnhancementConfig, QueryEnhancer
from stakeholder_rag.rrf import RRFFusionEngine, fuse
from stakeholder_rag.retriever import AdaptiveController, format_context_for_llm, retrieve_for_stakeholder
from stakeholder_rag.sparse_encoder import SparseVectorEncoder

__all__ = [
    "AdapterRegistry",
    "AdaptiveController",
    "BackendKind",
    "EnhancementConfig",
    "FusionResult",
    "FusionStatistics",
    "HybridCapable",
    "InMemoryAdapter",
    "KSizingConfig",
    "PassageRef",
    "QueryEnhancer",
    "RRFFusionEngine",
    "RetrievalAdapter",
    "RetrievalQuery",
    "ScoredPassage",
    "SparseVector",
    "SparseVectorEncoder",
    "StakeholderProfile",
    "compute_k",
    "effective_request_size",
    "format_context_for_llm",
    "fuse",
    "retrieve_for_stakeholder",
]
__version__ = "1.0.0"
