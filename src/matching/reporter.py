"""Confidence/alternatives reporter.

Pure packaging of a MatchResult into the caller-facing shape. No threshold
logic lives here, so a full chat pipeline and a match-only endpoint share
the matcher without duplicating decisions.
"""

from src.models.matching import (
    AlternativeSummary,
    MatchResponse,
    MatchResult,
    ScoredPattern,
)


def build_match_response(
    result: MatchResult,
    *,
    max_alternatives: int | None = None,
) -> MatchResponse:
    """Select the caller-facing fields of a match result."""
    alternatives = result.alternatives
    if max_alternatives is not None:
        alternatives = alternatives[:max_alternatives]
    return MatchResponse(
        match=result.match,
        matched_via=result.matched_via,
        matched_question_id=result.matched_question_id,
        alternatives=list(alternatives),
    )


def summarize_alternative(scored: ScoredPattern) -> AlternativeSummary:
    pattern = scored.pattern
    return AlternativeSummary(
        pattern_id=pattern.id,
        name=pattern.name,
        name_hi=pattern.name_hi,
        similarity=scored.similarity,
        trick_one_liner=pattern.trick.one_liner if pattern.trick else None,
    )


def summarize_alternatives(
    result: MatchResult,
    limit: int = 3,
) -> list[AlternativeSummary]:
    """Slim "did you mean" entries, best first."""
    return [summarize_alternative(a) for a in result.alternatives[:limit]]
