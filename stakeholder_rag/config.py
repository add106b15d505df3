"""
Configuration for the Stakeholder Retrieval Engine
Loads from environment variables with sensible defaults
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Configuration loaded from environment variables"""

    # Qdrant
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    collection_name: str = "stakeholder_chunks"
    dense_vector_name: str = "dense"
    sparse_vector_name: str = "sparse"

    # Embedding Model (Bi-Encoder) - multilingual, corpus is mostly Japanese
    embed_model: str = "intfloat/multilingual-e5-base"
    embed_dim: int = 768

    # Fusion
    default_rrf_k: int = 60
    min_search_k: int = 20
    search_k_multiplier: float = 1.5
    max_workers: int = 4
    fusion_timeout_s: float | None = 30.0

    # Adaptive phases
    max_phases: int = 2
    phase_widen_factor: float = 1.5

    # K sizing
    corpus_request_ratio: float = 0.8
    memory_constrained_factor: float = 0.4

    # Query enhancement
    max_queries: int = 5

    # Sparse encoding
    sparse_bucket_count: int = 1_000_000
    enable_morphological_analyzer: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "STAKEHOLDER_RAG_"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Convenience accessors
def get_qdrant_url() -> str:
    return get_settings().qdrant_url

def get_qdrant_api_key() -> str | None:
    return get_settings().qdrant_api_key

def get_collection_name() -> str:
    return get_settings().collection_name

def get_embed_model() -> str:
    return get_settings().embed_model

def get_rrf_constant() -> int:
    return get_settings().default_rrf_k
