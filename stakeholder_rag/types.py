"""
Type definitions for the Stakeholder Retrieval Engine
"""
import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class BackendKind(str, Enum):
    """Vector store family, used to cap K for stores without top-k pruning"""
    STANDARD = "standard"
    MEMORY_CONSTRAINED = "memory_constrained"


class Language(str, Enum):
    """Script classification of a piece of text"""
    PRIMARY = "ja"      # Japanese script (kana / kanji)
    ALTERNATE = "en"    # Latin script only
    MIXED = "mixed"


@dataclass(frozen=True)
class StakeholderProfile:
    """Who the report is for: stable id, free-text role, ordered concerns"""
    id: str
    role: str
    concerns: tuple[str, ...] = ()

    def __post_init__(self):
        # Accept lists from callers, store an immutable tuple
        object.__setattr__(self, "id", self.id or "")
        object.__setattr__(self, "role", self.role or "")
        object.__setattr__(
            self, "concerns", tuple(c for c in (self.concerns or ()) if c is not None)
        )


@dataclass(frozen=True)
class RetrievalQuery:
    """A reformulated query string and its fusion weight"""
    text: str
    weight: float = 1.0

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Query weight must be >= 0, got {self.weight}")


@dataclass(frozen=True)
class KSizingConfig:
    """Target fraction of the corpus to retrieve, clamped to [min_k, max_k]"""
    ratio: float
    min_k: int
    max_k: int


@dataclass
class PassageRef:
    """Passage payload crossing the adapter boundary"""
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    def stable_id(self) -> str:
        """
        Identity used for de-duplication: backend id, else
        "{sourceFile}#{chunkIndex}", else a hash of the first 100 characters
        """
        if self.id:
            return str(self.id)
        source = self.metadata.get("sourceFile")
        chunk_index = self.metadata.get("chunkIndex")
        if source is not None and chunk_index is not None:
            return f"{source}#{chunk_index}"
        digest = hashlib.sha1((self.text or "")[:100].encode("utf-8")).hexdigest()
        return f"sha1:{digest}"


@dataclass
class SparseVector:
    """Sparse keyword vector: parallel index/value lists"""
    indices: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    degraded: bool = False

    def __len__(self) -> int:
        return len(self.indices)

    def as_dict(self) -> dict[int, float]:
        return dict(zip(self.indices, self.values))


@dataclass(frozen=True)
class ScoredPassage:
    """A fused passage. Never mutated after it leaves the fusion engine."""
    id: str
    text: str
    metadata: dict[str, Any]
    rrf_score: float
    per_query_rank: dict[str, int]
    per_query_score: dict[str, float] = field(default_factory=dict)

    @property
    def query_coverage(self) -> int:
        return len(self.per_query_rank)

    @property
    def min_rank(self) -> int:
        return min(self.per_query_rank.values()) if self.per_query_rank else 0

    @property
    def source_file(self) -> str:
        return str(
            self.metadata.get("sourceFile")
            or self.metadata.get("fileName")
            or "unknown"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "text": self.text,
            "metadata": dict(self.metadata),
            "rrf_score": self.rrf_score,
            "per_query_rank": dict(self.per_query_rank),
            "per_query_score": dict(self.per_query_score),
            "query_coverage": self.query_coverage,
        }


@dataclass
class FusionStatistics:
    """Observability data for one fusion / adaptive search call"""
    average_score: float = 0.0
    average_coverage: float = 0.0
    documents_by_file: dict[str, int] = field(default_factory=dict)
    total_unique_documents: int = 0

    # Failure accounting
    queries_total: int = 0
    queries_failed: int = 0
    all_queries_failed: bool = False
    no_results: bool = True
    hybrid_fallbacks: int = 0
    encoding_degraded: bool = False
    timed_out: bool = False

    # Adaptive controller
    phases: int = 0
    target_k: int = 0
    achievement_rate: float = 0.0

    timings: dict[str, float] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)

    def add_note(self, note: str):
        self.notes.append(note)

    def to_dict(self) -> dict:
        return {
            "average_score": self.average_score,
            "average_coverage": self.average_coverage,
            "documents_by_file": dict(self.documents_by_file),
            "total_unique_documents": self.total_unique_documents,
            "queries_total": self.queries_total,
            "queries_failed": self.queries_failed,
            "all_queries_failed": self.all_queries_failed,
            "no_results": self.no_results,
            "hybrid_fallbacks": self.hybrid_fallbacks,
            "encoding_degraded": self.encoding_degraded,
            "timed_out": self.timed_out,
            "phases": self.phases,
            "target_k": self.target_k,
            "achievement_rate": self.achievement_rate,
            "timings": dict(self.timings),
            "notes": list(self.notes),
        }


@dataclass
class FusionResult:
    """Ordered passages (best first) plus fusion statistics"""
    passages: list[ScoredPassage] = field(default_factory=list)
    statistics: FusionStatistics = field(default_factory=FusionStatistics)
    queries: list[str] = field(default_factory=list)
    k: int = 0

    def __len__(self) -> int:
        return len(self.passages)

    @property
    def content(self) -> str:
        """Passage texts joined for a generation prompt"""
        return "\n\n---\n\n".join(p.text for p in self.passages)

    def to_dict(self) -> dict:
        return {
            "passages": [p.to_dict() for p in self.passages],
            "statistics": self.statistics.to_dict(),
            "queries": list(self.queries),
            "k": self.k,
        }
