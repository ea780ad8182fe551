"""Matching instrumentation metrics.

Track per-call outcomes of the tiered matcher:
- Which tier produced the match (question / pattern) or no-match
- Confidence of the winning similarity
- Dangling catalog references encountered (index hit whose record or
  pattern no longer resolves)
- Hard failures (provider / index)

Store as structured MatchEvent objects. Deterministic, in-memory; production
may forward these to a persistent sink.
"""

from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from src.models.common import new_uuid7, utc_now

DEFAULT_MAX_EVENTS = 1000


class MatchOutcome(StrEnum):
    QUESTION = "QUESTION"
    PATTERN = "PATTERN"
    NO_MATCH = "NO_MATCH"
    PROVIDER_FAILURE = "PROVIDER_FAILURE"
    INDEX_FAILURE = "INDEX_FAILURE"


@dataclass
class MatchEvent:
    """Structured record of one matching call."""

    outcome: MatchOutcome
    confidence: float | None = None
    alternatives: int = 0
    dangling_references: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    event_id: UUID = field(default_factory=new_uuid7)
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class MatchMetricsSummary:
    total: int = 0
    by_outcome: dict[str, int] = field(default_factory=dict)
    dangling_references: int = 0
    avg_confidence: float | None = None


class MatchMetricsStore:
    """In-memory match metrics store.

    Aggregates are running counters over every recorded event; only the most
    recent ``max_events`` events are kept for inspection.
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS) -> None:
        self._events: deque[MatchEvent] = deque(maxlen=max_events)
        self._counts: Counter[str] = Counter()
        self._dangling_total = 0
        self._confidence_sum = 0.0
        self._confidence_count = 0

    def record(self, event: MatchEvent) -> None:
        """Record a match event."""
        self._events.append(event)
        self._counts[event.outcome.value] += 1
        self._dangling_total += len(event.dangling_references)
        if event.confidence is not None:
            self._confidence_sum += event.confidence
            self._confidence_count += 1

    def get_all(self) -> list[MatchEvent]:
        """Retained events, oldest first."""
        return list(self._events)

    def dangling_references(self) -> list[str]:
        """Dangling record ids in the retained events, in encounter order."""
        return [ref for e in self._events for ref in e.dangling_references]

    def summary(self) -> MatchMetricsSummary:
        return MatchMetricsSummary(
            total=sum(self._counts.values()),
            by_outcome=dict(self._counts),
            dangling_references=self._dangling_total,
            avg_confidence=(
                round(self._confidence_sum / self._confidence_count, 4)
                if self._confidence_count else None
            ),
        )

    def clear(self) -> None:
        self._events.clear()
        self._counts.clear()
        self._dangling_total = 0
        self._confidence_sum = 0.0
        self._confidence_count = 0


_default_store = MatchMetricsStore()


def get_metrics_store() -> MatchMetricsStore:
    """Process-wide store used by the API layer."""
    return _default_store
