"""
Qdrant Vector Store for Hybrid Retrieval
Named dense + sparse vectors in one collection; hybrid queries are fused
server-side with RRF over two prefetches.
"""
import logging
import uuid
from typing import Any, Optional

from qdrant_client import QdrantClient
from qdrant_client import models

from stakeholder_rag.adapters import Hit, HybridCapable, LazyEmbedder, RetrievalAdapter
from stakeholder_rag.config import get_settings
from stakeholder_rag.errors import HybridSearchUnavailable
from stakeholder_rag.sparse_encoder import SparseVectorEncoder
from stakeholder_rag.types import BackendKind, PassageRef, SparseVector

logger = logging.getLogger("stakeholder_rag.qdrant_store")


class QdrantStore(RetrievalAdapter, HybridCapable):
    """Qdrant vector store for dense and hybrid retrieval"""

    backend_kind = BackendKind.STANDARD

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        collection_name: Optional[str] = None,
        client: Optional[QdrantClient] = None,
        embedder=None,
        sparse_encoder: Optional[SparseVectorEncoder] = None,
        embed_dim: Optional[int] = None,
    ):
        settings = get_settings()

        self.url = url or settings.qdrant_url
        self.api_key = api_key or settings.qdrant_api_key
        self.collection_name = collection_name or settings.collection_name
        self.dense_name = settings.dense_vector_name
        self.sparse_name = settings.sparse_vector_name
        self.embed_dim = embed_dim or settings.embed_dim

        self.client = client or QdrantClient(url=self.url, api_key=self.api_key)
        self._embedder = embedder or LazyEmbedder(settings.embed_model)
        self._sparse_encoder = sparse_encoder or SparseVectorEncoder()

        self.hybrid_enabled = True
        self._ensure_collection()

    def _ensure_collection(self):
        """Create collection if it doesn't exist"""
        if self.client.collection_exists(self.collection_name):
            info = self.client.get_collection(self.collection_name)
            sparse_config = info.config.params.sparse_vectors or {}
            self.hybrid_enabled = self.sparse_name in sparse_config
            if not self.hybrid_enabled:
                logger.warning(
                    f"⚠️ Collection '{self.collection_name}' has no sparse vector "
                    f"'{self.sparse_name}'; hybrid search disabled"
                )
            return

        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config={
                self.dense_name: models.VectorParams(
                    size=self.embed_dim,
                    distance=models.Distance.COSINE,
                )
            },
            sparse_vectors_config={
                self.sparse_name: models.SparseVectorParams(),
            },
        )
        logger.info(f"✅ Created Qdrant collection: {self.collection_name}")

    # =========================================================================
    # Encoding
    # =========================================================================

    def embed_query(self, query: str) -> list[float]:
        return self._embedder.encode([query], convert_to_numpy=True)[0].tolist()

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return self._embedder.encode(texts, convert_to_numpy=True).tolist()

    # =========================================================================
    # Indexing
    # =========================================================================

    def upsert_passages(self, passages: list[PassageRef], batch_size: int = 100) -> int:
        """
        Upsert passages with dense and sparse vectors

        Point ids are derived from the passage's stable id, so re-indexing
        the same chunk overwrites it.
        """
        total = 0

        for i in range(0, len(passages), batch_size):
            batch = passages[i:i + batch_size]
            embeddings = self.embed_texts([p.text for p in batch])

            points = []
            for passage, embedding in zip(batch, embeddings):
                passage_id = passage.stable_id()
                sparse = self._sparse_encoder.encode(passage.text)
                points.append(models.PointStruct(
                    id=str(uuid.uuid5(uuid.NAMESPACE_URL, passage_id)),
                    vector={
                        self.dense_name: embedding,
                        self.sparse_name: models.SparseVector(
                            indices=sparse.indices, values=sparse.values
                        ),
                    },
                    payload={
                        "passage_id": passage_id,
                        "text": passage.text,
                        "metadata": dict(passage.metadata),
                    },
                ))

            self.client.upsert(collection_name=self.collection_name, points=points)
            total += len(batch)
            logger.info(f"📦 Upserted {total}/{len(passages)} passages")

        return total

    # =========================================================================
    # Search
    # =========================================================================

    def dense_search(self, query: str, k: int) -> list[Hit]:
        if k <= 0:
            return []
        results = self.client.query_points(
            collection_name=self.collection_name,
            query=self.embed_query(query),
            using=self.dense_name,
            limit=k,
            with_payload=True,
        ).points
        return self._to_hits(results)

    def hybrid_search(
        self,
        dense_vector: list[float],
        sparse_vector: SparseVector,
        k: int,
    ) -> list[Hit]:
        if not self.hybrid_enabled:
            raise HybridSearchUnavailable(
                f"Collection '{self.collection_name}' has no sparse vectors"
            )
        if k <= 0:
            return []
        if not sparse_vector.indices:
            raise HybridSearchUnavailable("Empty sparse vector")

        results = self.client.query_points(
            collection_name=self.collection_name,
            prefetch=[
                models.Prefetch(query=dense_vector, using=self.dense_name, limit=k),
                models.Prefetch(
                    query=models.SparseVector(
                        indices=sparse_vector.indices, values=sparse_vector.values
                    ),
                    using=self.sparse_name,
                    limit=k,
                ),
            ],
            query=models.FusionQuery(fusion=models.Fusion.RRF),
            limit=k,
            with_payload=True,
        ).points
        return self._to_hits(results)

    def _to_hits(self, results) -> list[Hit]:
        hits = []
        for result in results:
            payload = result.payload or {}
            hits.append((
                PassageRef(
                    text=payload.get("text", ""),
                    metadata=dict(payload.get("metadata") or {}),
                    id=payload.get("passage_id") or str(result.id),
                ),
                float(result.score) if result.score else 0.0,
            ))
        return hits

    def stats(self, collection_id: Optional[str] = None) -> dict[str, Any]:
        collection = collection_id or self.collection_name
        total = self.client.count(collection_name=collection, exact=True).count
        return {
            "total_documents": total,
            "collection": collection,
            "hybrid_enabled": self.hybrid_enabled,
        }
