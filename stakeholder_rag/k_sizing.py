"""
Dynamic K Sizing
Target result count from corpus size and stakeholder profile
"""
import logging
import math

from stakeholder_rag.errors import InvalidInputError
from stakeholder_rag.strategies import resolve_strategy
from stakeholder_rag.types import BackendKind, KSizingConfig, StakeholderProfile

logger = logging.getLogger("stakeholder_rag.k_sizing")

# Backends without efficient top-k pruning get a smaller ceiling
MEMORY_CONSTRAINED_FACTOR = 0.4
# Never request (near-)exhaustive retrieval
CORPUS_REQUEST_RATIO = 0.8


def ceil_product(value: float, factor: float) -> int:
    """ceil(value * factor) without float noise (100 * 0.55 == 55.00000000000001)"""
    return math.ceil(round(value * factor, 9))


def floor_product(value: float, factor: float) -> int:
    return math.floor(round(value * factor, 9))


def effective_max_k(
    sizing: KSizingConfig,
    backend_kind: BackendKind = BackendKind.STANDARD,
    memory_constrained_factor: float = MEMORY_CONSTRAINED_FACTOR,
) -> int:
    if backend_kind == BackendKind.MEMORY_CONSTRAINED:
        return max(sizing.min_k, int(sizing.max_k * memory_constrained_factor))
    return sizing.max_k


def compute_k(
    corpus_size: int,
    profile: StakeholderProfile,
    backend_kind: BackendKind = BackendKind.STANDARD,
    memory_constrained_factor: float = MEMORY_CONSTRAINED_FACTOR,
) -> int:
    """
    Compute target K for a stakeholder.

    K = clamp(ceil(corpus_size * ratio), min_k, effective_max_k).
    The result can exceed a tiny corpus (min_k wins); callers clamp the
    actual request with effective_request_size().

    Raises:
        InvalidInputError: corpus_size < 0
    """
    if corpus_size is None or corpus_size < 0:
        raise InvalidInputError(f"corpus_size must be >= 0, got {corpus_size}")

    sizing = resolve_strategy(profile).k_sizing
    target = ceil_product(corpus_size, sizing.ratio)
    max_k = effective_max_k(sizing, backend_kind, memory_constrained_factor)
    k = min(max(target, sizing.min_k), max_k)

    logger.debug(
        f"📊 Dynamic K: corpus={corpus_size} stakeholder={profile.id} "
        f"ratio={sizing.ratio} target={target} min_k={sizing.min_k} "
        f"max_k={max_k} ({backend_kind.value}) → K={k}"
    )
    return k


def effective_request_size(
    k: int,
    corpus_size: int,
    ratio: float = CORPUS_REQUEST_RATIO,
) -> int:
    """
    Caller-side clamp: min(K, floor(corpus_size * ratio)).

    At least 1 for a non-empty corpus, 0 for an empty one.
    """
    if corpus_size < 0:
        raise InvalidInputError(f"corpus_size must be >= 0, got {corpus_size}")
    if corpus_size == 0 or k <= 0:
        return 0
    return max(1, min(k, floor_product(corpus_size, ratio)))


def achievement_rate(returned: int, target: int) -> float:
    """Returned / target in [0, 1]; 0 when target is 0"""
    if target <= 0:
        return 0.0
    return min(1.0, returned / target)


def log_k_achievement_rate(returned: int, target: int, stakeholder_id: str) -> float:
    rate = achievement_rate(returned, target)
    logger.info(
        f"📊 K achievement: {returned}/{target} ({rate * 100:.1f}%) "
        f"stakeholder={stakeholder_id}"
    )
    if target > 0 and rate < 0.5:
        logger.warning(
            f"⚠️ K achievement below 50% for '{stakeholder_id}'; "
            f"check the number of documents in the knowledge base"
        )
    return rate
