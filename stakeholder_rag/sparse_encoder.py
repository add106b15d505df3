"""
Sparse Vector Encoder
Keyword signal for hybrid search: identifiers, Latin tokens and Japanese
content words hashed into a fixed bucket space.
"""
import hashlib
import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from stakeholder_rag.config import get_settings
from stakeholder_rag.dictionaries import IMPORTANT_KEYWORDS, JAPANESE_KEYWORDS
from stakeholder_rag.errors import AnalyzerUnavailable
from stakeholder_rag.text_utils import (
    DASHED_CODE_PATTERN,
    ELEMENT_CODE_PATTERN,
    extract_identifiers,
    extract_katakana_runs,
    tokenize_latin,
)
from stakeholder_rag.types import SparseVector

logger = logging.getLogger("stakeholder_rag.sparse_encoder")

IDENTIFIER_WEIGHT = 3.0
TOKEN_WEIGHT = 1.0
KATAKANA_RUN_WEIGHT = 1.5
CONTENT_POS = ("名詞", "動詞", "形容詞")


def _build_janome_tokenizer():
    from janome.tokenizer import Tokenizer
    return Tokenizer()


class AnalyzerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DEGRADED = "degraded"


class AnalyzerHandle:
    """
    Lazily built morphological analyzer.

    Built at most once (double-checked under a lock). A failed build moves
    the handle to DEGRADED for good; callers then encode without it.
    Read-only after construction.
    """

    def __init__(self, factory: Optional[Callable[[], Any]] = None):
        self._factory = factory or _build_janome_tokenizer
        self._lock = threading.Lock()
        self._analyzer = None
        self._state = AnalyzerState.UNINITIALIZED
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> AnalyzerState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def get(self):
        """
        Return the analyzer.

        Raises:
            AnalyzerUnavailable: the build failed (now or earlier)
        """
        if self._state is AnalyzerState.UNINITIALIZED:
            with self._lock:
                if self._state is AnalyzerState.UNINITIALIZED:
                    self._build()

        if self._state is AnalyzerState.DEGRADED:
            raise AnalyzerUnavailable(f"Morphological analyzer unavailable: {self._error}")
        return self._analyzer

    def _build(self):
        logger.info("🔤 Initializing morphological analyzer...")
        try:
            self._analyzer = self._factory()
        except Exception as e:
            self._error = e
            self._state = AnalyzerState.DEGRADED
            logger.warning(f"⚠️ Morphological analyzer build failed, encoding degrades: {e}")
            return
        self._state = AnalyzerState.READY
        logger.info("✅ Morphological analyzer ready")


_default_analyzer = AnalyzerHandle()


def get_default_analyzer() -> AnalyzerHandle:
    """Process-wide analyzer handle"""
    return _default_analyzer


def token_bucket(token: str, bucket_count: int = 1_000_000) -> int:
    """Stable bucket for a token; collisions merge weights"""
    digest = hashlib.sha1(token.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % bucket_count


class SparseVectorEncoder:
    """
    Text → sparse keyword vector.

    Weights:
    - identifiers (G1, S12, REQ-102): 3.0 per occurrence, keyed upper-case
    - Latin tokens (len >= 2): 1.0 per occurrence + IMPORTANT_KEYWORDS bonus
    - Japanese nouns/verbs/adjectives by base form: 1.0 + JAPANESE_KEYWORDS bonus

    Values are divided by the maximum weight so everything is in (0, 1].
    """

    def __init__(
        self,
        analyzer: Optional[AnalyzerHandle] = None,
        bucket_count: Optional[int] = None,
        use_analyzer: Optional[bool] = None,
    ):
        settings = get_settings()
        self.analyzer = analyzer or get_default_analyzer()
        self.bucket_count = bucket_count or settings.sparse_bucket_count
        self.use_analyzer = (
            settings.enable_morphological_analyzer if use_analyzer is None else use_analyzer
        )

    def bucket(self, token: str) -> int:
        return token_bucket(token, self.bucket_count)

    def encode(self, text: str) -> SparseVector:
        text = text or ""
        weights: dict[int, float] = {}
        degraded = False

        self._add_identifiers(text, weights)
        self._add_latin_tokens(text, weights)

        if self.use_analyzer:
            try:
                self._add_morphological_tokens(text, weights)
            except AnalyzerUnavailable:
                degraded = True
                self._add_keyword_fallback(text, weights)
            except Exception as e:
                logger.warning(f"⚠️ Morphological analysis failed, using keyword fallback: {e}")
                degraded = True
                self._add_keyword_fallback(text, weights)
        else:
            self._add_keyword_fallback(text, weights)

        return self._normalize(text, weights, degraded)

    def _accumulate(self, weights: dict[int, float], token: str, weight: float):
        index = self.bucket(token)
        weights[index] = weights.get(index, 0.0) + weight

    def _add_identifiers(self, text: str, weights: dict[int, float]):
        for pattern in (ELEMENT_CODE_PATTERN, DASHED_CODE_PATTERN):
            for code in pattern.findall(text):
                self._accumulate(weights, code.upper(), IDENTIFIER_WEIGHT)

    def _add_latin_tokens(self, text: str, weights: dict[int, float]):
        for token in tokenize_latin(text):
            self._accumulate(weights, token, TOKEN_WEIGHT + IMPORTANT_KEYWORDS.get(token, 0.0))

    def _add_morphological_tokens(self, text: str, weights: dict[int, float]):
        tokenizer = self.analyzer.get()
        for token in tokenizer.tokenize(text):
            pos = token.part_of_speech.split(",")[0]
            if pos not in CONTENT_POS:
                continue
            word = token.base_form
            if word == "*" or len(word) < 2:
                continue
            self._accumulate(
                weights, word.lower(), TOKEN_WEIGHT + JAPANESE_KEYWORDS.get(word, 0.0)
            )

    def _add_keyword_fallback(self, text: str, weights: dict[int, float]):
        """Direct keyword matching plus katakana loanwords"""
        for keyword, weight in JAPANESE_KEYWORDS.items():
            if keyword in text:
                self._accumulate(weights, keyword, weight)
        for word in extract_katakana_runs(text):
            self._accumulate(weights, word, KATAKANA_RUN_WEIGHT)

    def _normalize(self, text: str, weights: dict[int, float], degraded: bool) -> SparseVector:
        # Sparse backends reject empty vectors
        if not weights:
            return SparseVector(
                indices=[self.bucket(text[:100] or "fallback")],
                values=[1.0],
                degraded=degraded,
            )

        max_value = max(max(weights.values()), 1.0)
        return SparseVector(
            indices=list(weights.keys()),
            values=[w / max_value for w in weights.values()],
            degraded=degraded,
        )


def debug_sparse_vector(vector: SparseVector, text: str):
    """Log a short summary of an encoded vector"""
    logger.debug(
        f"🔎 Sparse vector: text_len={len(text)} dims={len(vector)} "
        f"max={max(vector.values, default=0):.4f} min={min(vector.values, default=0):.4f} "
        f"degraded={vector.degraded}"
    )
    identifiers = extract_identifiers(text)
    if identifiers:
        logger.debug(f"   Identifiers: {', '.join(identifiers)}")
