"""
Error taxonomy for the retrieval engine

Only InvalidInputError ever reaches callers. The others are raised at the
adapter / analyzer seams and recovered inside the engine, where they end up
as FusionStatistics flags.
"""


class StakeholderRagError(Exception):
    """Base class for engine errors"""


class InvalidInputError(StakeholderRagError, ValueError):
    """Rejected input (e.g. negative corpus size)"""


class QueryRetrievalFailed(StakeholderRagError):
    """One query's adapter call failed; the query contributes nothing"""

    def __init__(self, query: str, cause: BaseException):
        super().__init__(f"Retrieval failed for query '{query[:50]}': {cause}")
        self.query = query
        self.cause = cause


class HybridSearchUnavailable(StakeholderRagError):
    """Backend cannot serve a hybrid query; caller falls back to dense search"""


class AnalyzerUnavailable(StakeholderRagError):
    """Morphological analyzer could not be built; encoding degrades"""
