"""
Retrieval Adapters
Contract every vector-store backend satisfies, the reference in-memory
backend, and a registry of live backends keyed by namespace.
"""
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

import numpy as np

from stakeholder_rag.config import get_settings
from stakeholder_rag.types import BackendKind, PassageRef, SparseVector

logger = logging.getLogger("stakeholder_rag.adapters")

Hit = tuple[PassageRef, float]


class RetrievalAdapter(ABC):
    """Abstract base class for vector-store backends"""

    backend_kind: BackendKind = BackendKind.STANDARD

    @abstractmethod
    def dense_search(self, query: str, k: int) -> list[Hit]:
        """
        Semantic search

        Args:
            query: Query text
            k: Maximum number of results

        Returns:
            At most k (passage, score) pairs, best first. Empty is valid.
        """
        pass

    @abstractmethod
    def stats(self, collection_id: Optional[str] = None) -> dict[str, Any]:
        """Collection statistics; must include "total_documents" """
        pass


class HybridCapable(ABC):
    """Optional capability: one query blending dense and sparse vectors"""

    @abstractmethod
    def embed_query(self, query: str) -> list[float]:
        pass

    @abstractmethod
    def hybrid_search(
        self,
        dense_vector: list[float],
        sparse_vector: SparseVector,
        k: int,
    ) -> list[Hit]:
        """
        Same shape as dense_search. May raise HybridSearchUnavailable (or
        anything else); callers fall back to dense_search.
        """
        pass


def supports_hybrid(adapter: RetrievalAdapter) -> bool:
    return isinstance(adapter, HybridCapable)


class LazyEmbedder:
    """SentenceTransformer loaded on first use"""

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name or get_settings().embed_model
        self._model = None
        self._lock = threading.Lock()

    def _ensure_model(self):
        if self._model is not None:
            return
        with self._lock:
            if self._model is None:
                from sentence_transformers import SentenceTransformer
                self._model = SentenceTransformer(self.model_name)
                logger.info(f"✅ Loaded embedding model: {self.model_name}")

    def encode(self, texts, convert_to_numpy: bool = True):
        self._ensure_model()
        return self._model.encode(texts, convert_to_numpy=convert_to_numpy)


class InMemoryAdapter(RetrievalAdapter):
    """
    Dense-only reference backend: brute-force cosine similarity over an
    in-process matrix. No top-k pruning, hence MEMORY_CONSTRAINED.
    """

    backend_kind = BackendKind.MEMORY_CONSTRAINED

    def __init__(self, embedder=None, passages: Optional[Iterable[PassageRef]] = None):
        self._embedder = embedder or LazyEmbedder()
        self._lock = threading.Lock()
        self._passages: list[PassageRef] = []
        self._matrix: Optional[np.ndarray] = None
        if passages:
            self.add_passages(passages)

    def __len__(self) -> int:
        return len(self._passages)

    def add_passages(self, passages: Iterable[PassageRef]) -> int:
        """Embed and store passages; returns how many were added"""
        passages = [p for p in passages if p.text and p.text.strip()]
        if not passages:
            return 0

        embeddings = np.asarray(
            self._embedder.encode([p.text for p in passages], convert_to_numpy=True),
            dtype=np.float32,
        )
        embeddings = _normalize_rows(embeddings)

        with self._lock:
            self._passages.extend(passages)
            if self._matrix is None:
                self._matrix = embeddings
            else:
                self._matrix = np.vstack([self._matrix, embeddings])

        logger.info(f"📦 In-memory store: added {len(passages)} passages (total {len(self._passages)})")
        return len(passages)

    def dense_search(self, query: str, k: int) -> list[Hit]:
        with self._lock:
            passages = list(self._passages)
            matrix = self._matrix

        if k <= 0 or matrix is None or not passages:
            return []

        query_vec = np.asarray(
            self._embedder.encode([query], convert_to_numpy=True), dtype=np.float32
        )
        query_vec = _normalize_rows(query_vec)[0]

        similarities = matrix @ query_vec
        # Stable sort keeps insertion order for equal scores
        order = np.argsort(-similarities, kind="stable")[:k]
        return [(passages[i], float(similarities[i])) for i in order]

    def stats(self, collection_id: Optional[str] = None) -> dict[str, Any]:
        return {"total_documents": len(self._passages), "backend": self.backend_kind.value}


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms


def namespace_for(stakeholder_id: str, user_identifier: Optional[str] = None) -> str:
    """Registry key: stakeholder id, scoped to a user when given"""
    if not user_identifier:
        return stakeholder_id
    return f"{stakeholder_id}_{user_identifier}"


class AdapterRegistry:
    """
    Live backends keyed by namespace.

    Passed explicitly to whoever needs it. Adapters live until evicted or
    cleared; the registry never creates one except through get_or_create.
    """

    def __init__(self):
        self._adapters: dict[str, RetrievalAdapter] = {}
        self._lock = threading.Lock()

    def __contains__(self, namespace: str) -> bool:
        return namespace in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    def register(self, namespace: str, adapter: RetrievalAdapter) -> RetrievalAdapter:
        """Register (or replace) the adapter for a namespace"""
        with self._lock:
            if namespace in self._adapters:
                logger.info(f"🔁 Replacing adapter for namespace '{namespace}'")
            self._adapters[namespace] = adapter
        return adapter

    def get(self, namespace: str) -> Optional[RetrievalAdapter]:
        return self._adapters.get(namespace)

    def get_or_create(
        self,
        namespace: str,
        factory: Callable[[], RetrievalAdapter],
    ) -> RetrievalAdapter:
        """Return the namespace's adapter, creating it once with factory()"""
        with self._lock:
            adapter = self._adapters.get(namespace)
            if adapter is None:
                adapter = factory()
                self._adapters[namespace] = adapter
                logger.info(f"🆕 Created adapter for namespace '{namespace}'")
            return adapter

    def evict(self, namespace: str) -> Optional[RetrievalAdapter]:
        """Drop a namespace; returns the evicted adapter (None if absent)"""
        with self._lock:
            adapter = self._adapters.pop(namespace, None)
        if adapter is not None:
            logger.info(f"🗑️ Evicted adapter for namespace '{namespace}'")
        return adapter

    def clear(self):
        with self._lock:
            count = len(self._adapters)
            self._adapters.clear()
        logger.info(f"🗑️ Cleared {count} adapters")

    def namespaces(self) -> list[str]:
        return sorted(self._adapters)
