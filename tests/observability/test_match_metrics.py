"""Tests for matching instrumentation metrics.

Structured MatchEvent storage and the aggregate summary.
"""

from src.observability.metrics import (
    MatchEvent,
    MatchMetricsStore,
    MatchOutcome,
    get_metrics_store,
)


class TestMatchEvent:
    def test_event_has_id_and_timestamp(self) -> None:
        e1 = MatchEvent(outcome=MatchOutcome.PATTERN, confidence=0.7)
        e2 = MatchEvent(outcome=MatchOutcome.PATTERN, confidence=0.7)
        assert e1.event_id != e2.event_id
        assert e1.timestamp.tzinfo is not None


class TestMatchMetricsStore:
    def test_empty_summary(self) -> None:
        summary = MatchMetricsStore().summary()
        assert summary.total == 0
        assert summary.by_outcome == {}
        assert summary.avg_confidence is None

    def test_summary(self) -> None:
        store = MatchMetricsStore()
        store.record(MatchEvent(outcome=MatchOutcome.QUESTION, confidence=0.9))
        store.record(MatchEvent(outcome=MatchOutcome.PATTERN, confidence=0.6, alternatives=3))
        store.record(MatchEvent(
            outcome=MatchOutcome.NO_MATCH,
            alternatives=2,
            dangling_references=["pattern:gone", "question:q9"],
        ))
        store.record(MatchEvent(outcome=MatchOutcome.PROVIDER_FAILURE))

        summary = store.summary()
        assert summary.total == 4
        assert summary.by_outcome == {
            "QUESTION": 1, "PATTERN": 1, "NO_MATCH": 1, "PROVIDER_FAILURE": 1,
        }
        assert summary.dangling_references == 2
        assert summary.avg_confidence == 0.75
        assert store.dangling_references() == ["pattern:gone", "question:q9"]

    def test_clear(self) -> None:
        store = MatchMetricsStore()
        store.record(MatchEvent(outcome=MatchOutcome.NO_MATCH))
        store.clear()
        assert store.get_all() == []
        assert store.summary().total == 0

    def test_retained_events_are_capped(self) -> None:
        store = MatchMetricsStore(max_events=10)
        for i in range(25):
            store.record(MatchEvent(
                outcome=MatchOutcome.PATTERN,
                confidence=0.6,
                dangling_references=[f"pattern:p{i}"],
            ))

        assert len(store.get_all()) == 10
        assert store.dangling_references()[0] == "pattern:p15"
        summary = store.summary()
        assert summary.total == 25
        assert summary.by_outcome == {"PATTERN": 25}
        assert summary.dangling_references == 25
        assert summary.avg_confidence == 0.6

    def test_process_store_is_shared(self) -> None:
        assert get_metrics_store() is get_metrics_store()
