"""Matching Pydantic models — match options, results and reporter shapes.

MatchResult is ephemeral: it is produced per call by the tiered matcher and
never persisted.

Threshold ordering is validated when options are built:
- pattern_threshold >= alternatives_floor
- question_threshold > pattern_threshold (question tier is strictly
  higher precision than the pattern tier)
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field, model_validator

from src.models.catalog import Pattern
from src.models.common import JeetBase, Similarity

ExtractedValues = dict[str, float | list[float]]

DEFAULT_QUESTION_THRESHOLD = 0.85
DEFAULT_PATTERN_THRESHOLD = 0.55
DEFAULT_ALTERNATIVES_FLOOR = 0.3
DEFAULT_TOP_K = 5


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MatchTier(StrEnum):
    """Which lookup produced the match."""

    QUESTION = "question"
    PATTERN = "pattern"


class MatchState(StrEnum):
    """States of the tiered matcher, in visiting order."""

    START = "START"
    NORMALIZED = "NORMALIZED"
    EMBEDDED = "EMBEDDED"
    QUESTION_LOOKUP = "QUESTION_LOOKUP"
    PATTERN_LOOKUP = "PATTERN_LOOKUP"
    CONFIDENT = "CONFIDENT"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    DONE = "DONE"


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class MatchOptions(JeetBase, frozen=True):
    """Per-call matcher configuration."""

    question_threshold: Similarity = DEFAULT_QUESTION_THRESHOLD
    pattern_threshold: Similarity = DEFAULT_PATTERN_THRESHOLD
    alternatives_floor: Similarity = DEFAULT_ALTERNATIVES_FLOOR
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1, le=50)
    skip_question_match: bool = False

    @model_validator(mode="after")
    def _check_threshold_order(self) -> MatchOptions:
        if self.pattern_threshold < self.alternatives_floor:
            msg = (
                f"pattern_threshold ({self.pattern_threshold}) must be >= "
                f"alternatives_floor ({self.alternatives_floor})"
            )
            raise ValueError(msg)
        if self.question_threshold <= self.pattern_threshold:
            msg = (
                f"question_threshold ({self.question_threshold}) must exceed "
                f"pattern_threshold ({self.pattern_threshold})"
            )
            raise ValueError(msg)
        return self

    def with_overrides(self, **overrides: Any) -> MatchOptions:
        """Return a validated copy; ``None`` values keep the current setting."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return MatchOptions.model_validate(data)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ScoredPattern(JeetBase):
    """A pattern together with its similarity to the query."""

    pattern: Pattern
    similarity: Similarity


class PatternMatch(JeetBase):
    pattern_id: str
    confidence: Similarity
    pattern: Pattern


class MatchResult(JeetBase):
    """Outcome of one pass of the tiered matcher.

    ``match`` is None on no-match; ``alternatives`` is then still populated
    with whatever the pattern tier found above the floor.
    """

    match: PatternMatch | None = None
    matched_via: MatchTier | None = None
    matched_question_id: str | None = None
    alternatives: list[ScoredPattern] = Field(default_factory=list)
    normalized_text: str = ""
    trace: list[MatchState] = Field(default_factory=list)

    @property
    def is_confident(self) -> bool:
        return self.match is not None


# ---------------------------------------------------------------------------
# Caller-facing shapes
# ---------------------------------------------------------------------------


class AlternativeSummary(JeetBase):
    """Slim "did you mean" entry."""

    pattern_id: str
    name: str
    name_hi: str = ""
    similarity: float
    trick_one_liner: str | None = None


class MatchResponse(JeetBase):
    match: PatternMatch | None = None
    matched_via: MatchTier | None = None
    matched_question_id: str | None = None
    alternatives: list[ScoredPattern] = Field(default_factory=list)
