"""Matching failure taxonomy.

ProviderFailure / IndexFailure are hard failures of a whole match attempt and
are never retried here; the caller owns retry policy. Timeouts are distinct
subclasses so they are not confused with "no match".

No-match is not an error for ``match_with_fallback``; only the strict
``match`` raises NoConfidentMatch. Dangling catalog references are never
raised at all.
"""

from src.models.matching import ScoredPattern


class MatchingError(Exception):
    """Base class carrying an HTTP-style status and a machine code."""

    status_code: int = 500
    code: str = "MATCHING_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ProviderFailure(MatchingError):
    """The embedding provider failed (network, auth, quota, bad response)."""

    status_code = 503
    code = "EMBEDDING_PROVIDER_FAILED"


class ProviderTimeout(ProviderFailure):
    status_code = 504
    code = "EMBEDDING_PROVIDER_TIMEOUT"


class IndexFailure(MatchingError):
    """A vector index query failed."""

    status_code = 503
    code = "VECTOR_INDEX_FAILED"


class IndexTimeout(IndexFailure):
    status_code = 504
    code = "VECTOR_INDEX_TIMEOUT"


class NoConfidentMatch(MatchingError):
    """Raised by the strict ``match`` when nothing clears the thresholds."""

    status_code = 422
    code = "PATTERN_MATCH_FAILED"

    def __init__(
        self,
        message: str = "Could not match question to any known pattern. Try rephrasing the question.",
        *,
        alternatives: list[ScoredPattern] | None = None,
    ) -> None:
        super().__init__(message)
        self.alternatives = alternatives or []
