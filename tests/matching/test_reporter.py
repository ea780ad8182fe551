"""Tests for packaging match results for callers."""

from src.matching.reporter import (
    build_match_response,
    summarize_alternatives,
)
from src.models.matching import (
    MatchResult,
    MatchTier,
    PatternMatch,
    ScoredPattern,
)


def _result(make_pattern, *, confident: bool) -> MatchResult:
    best = make_pattern("pct_decrease", name_hi="प्रतिशत कमी", one_liner="Use 1/5 for 20%")
    other = make_pattern("successive_change")
    third = make_pattern("profit_loss")
    alternatives = [
        ScoredPattern(pattern=best, similarity=0.72),
        ScoredPattern(pattern=other, similarity=0.41),
        ScoredPattern(pattern=third, similarity=0.33),
    ]
    return MatchResult(
        match=(
            PatternMatch(pattern_id=best.id, confidence=0.72, pattern=best)
            if confident else None
        ),
        matched_via=MatchTier.PATTERN if confident else None,
        alternatives=alternatives,
        normalized_text="The price of salt decreases by X%",
    )


class TestBuildMatchResponse:
    def test_copies_caller_fields(self, make_pattern) -> None:
        result = _result(make_pattern, confident=True)
        resp = build_match_response(result)

        assert resp.match == result.match
        assert resp.matched_via == MatchTier.PATTERN
        assert resp.matched_question_id is None
        assert resp.alternatives == result.alternatives

    def test_no_match_keeps_alternatives(self, make_pattern) -> None:
        resp = build_match_response(_result(make_pattern, confident=False))
        assert resp.match is None
        assert len(resp.alternatives) == 3

    def test_max_alternatives_truncates(self, make_pattern) -> None:
        resp = build_match_response(
            _result(make_pattern, confident=False), max_alternatives=1,
        )
        assert [a.pattern.id for a in resp.alternatives] == ["pct_decrease"]

    def test_result_is_not_mutated(self, make_pattern) -> None:
        result = _result(make_pattern, confident=False)
        build_match_response(result, max_alternatives=0)
        assert len(result.alternatives) == 3


class TestSummarizeAlternatives:
    def test_slim_entries_best_first(self, make_pattern) -> None:
        summaries = summarize_alternatives(_result(make_pattern, confident=False), limit=2)

        assert [s.pattern_id for s in summaries] == ["pct_decrease", "successive_change"]
        assert summaries[0].name_hi == "प्रतिशत कमी"
        assert summaries[0].trick_one_liner == "Use 1/5 for 20%"
        assert summaries[0].similarity == 0.72
        assert summaries[1].trick_one_liner is None

    def test_empty(self) -> None:
        assert summarize_alternatives(MatchResult()) == []
