"""Tiered semantic matcher.

Decides which catalog pattern a free-form question belongs to, using vector
similarity only. One pass per call, no internal retries:

    START → NORMALIZED → EMBEDDED → QUESTION_LOOKUP
          → DONE                              (question hit)
          → PATTERN_LOOKUP → CONFIDENT       → DONE
                           → LOW_CONFIDENCE  → DONE

Question tier: nearest previously-seen question with similarity >=
question_threshold. Near-duplicates (reused exam questions) short-circuit the
coarser search and carry no alternatives.

Pattern tier: top_k pattern prototypes above alternatives_floor. The best one
wins if it clears pattern_threshold; either way the ranked list is returned
as alternatives so a low-confidence signal is never silently dropped.

Dependencies (provider, both indexes, catalog) are constructor-injected.
Each suspension point has its own timeout; cancellation propagates as-is.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from src.embeddings.base import EmbeddingProvider
from src.index.base import IndexHit, VectorIndex
from src.matching.errors import (
    IndexFailure,
    IndexTimeout,
    MatchingError,
    NoConfidentMatch,
    ProviderFailure,
    ProviderTimeout,
)
from src.matching.normalizer import normalize_for_embedding
from src.models.catalog import Pattern, Question
from src.models.matching import (
    MatchOptions,
    MatchResult,
    MatchState,
    MatchTier,
    PatternMatch,
    ScoredPattern,
)
from src.observability.metrics import MatchEvent, MatchMetricsStore, MatchOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LOG_TEXT_CHARS = 80


class CatalogReader(Protocol):
    """Resolves index record ids into full records. Absence is a miss."""

    async def get_pattern_by_id(self, pattern_id: str) -> Pattern | None: ...

    async def get_question_by_id(self, question_id: str) -> Question | None: ...


def _clamp(similarity: float) -> float:
    return min(1.0, max(0.0, similarity))


@dataclass
class _MatchRun:
    """Mutable per-call state. Never shared between calls."""

    options: MatchOptions
    trace: list[MatchState] = field(default_factory=lambda: [MatchState.START])
    normalized_text: str = ""
    dangling: list[str] = field(default_factory=list)

    def advance(self, state: MatchState) -> None:
        self.trace.append(state)

    def finish(self, **fields) -> MatchResult:  # noqa: ANN003
        self.advance(MatchState.DONE)
        return MatchResult(
            normalized_text=self.normalized_text,
            trace=list(self.trace),
            **fields,
        )


class TieredMatcher:
    """Two-stage question → pattern matcher with ranked fallback."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        question_index: VectorIndex,
        pattern_index: VectorIndex,
        catalog: CatalogReader,
        *,
        defaults: MatchOptions | None = None,
        embed_timeout_s: float = 10.0,
        index_timeout_s: float = 5.0,
        metrics: MatchMetricsStore | None = None,
    ) -> None:
        self._provider = provider
        self._question_index = question_index
        self._pattern_index = pattern_index
        self._catalog = catalog
        self._defaults = defaults or MatchOptions()
        self._embed_timeout_s = embed_timeout_s
        self._index_timeout_s = index_timeout_s
        self._metrics = metrics

    @property
    def defaults(self) -> MatchOptions:
        return self._defaults

    # ----- Public operations -----

    async def match_with_fallback(
        self,
        text: str,
        options: MatchOptions | None = None,
    ) -> MatchResult:
        """Match with full details: question tier first, then patterns.

        Raises:
            ProviderFailure: embedding failed or timed out.
            IndexFailure: an index query or catalog lookup failed or timed out.
        """
        run = _MatchRun(options=options or self._defaults)
        started = time.perf_counter()
        try:
            result = await self._run(text, run)
        except ProviderFailure:
            self._record(run, MatchOutcome.PROVIDER_FAILURE, started)
            raise
        except IndexFailure:
            self._record(run, MatchOutcome.INDEX_FAILURE, started)
            raise

        if result.matched_via == MatchTier.QUESTION:
            outcome = MatchOutcome.QUESTION
        elif result.matched_via == MatchTier.PATTERN:
            outcome = MatchOutcome.PATTERN
        else:
            outcome = MatchOutcome.NO_MATCH
        self._record(run, outcome, started, result)
        return result

    async def match(
        self,
        text: str,
        options: MatchOptions | None = None,
    ) -> PatternMatch:
        """Strict variant: the confident match or NoConfidentMatch."""
        result = await self.match_with_fallback(text, options)
        if result.match is None:
            raise NoConfidentMatch(alternatives=result.alternatives)
        return result.match

    async def match_pattern_only(
        self,
        text: str,
        options: MatchOptions | None = None,
    ) -> MatchResult:
        """Skip the question tier; useful for testing pattern prototypes."""
        opts = (options or self._defaults).with_overrides(skip_question_match=True)
        return await self.match_with_fallback(text, opts)

    # ----- State machine -----

    async def _run(self, text: str, run: _MatchRun) -> MatchResult:
        run.normalized_text = normalize_for_embedding(text)
        run.advance(MatchState.NORMALIZED)
        logger.debug(
            "Normalized: %r", run.normalized_text[:_LOG_TEXT_CHARS],
        )

        vector = await self._embed(run.normalized_text)
        run.advance(MatchState.EMBEDDED)

        if not run.options.skip_question_match:
            run.advance(MatchState.QUESTION_LOOKUP)
            result = await self._question_tier(vector, run)
            if result is not None:
                return result

        run.advance(MatchState.PATTERN_LOOKUP)
        return await self._pattern_tier(vector, run)

    async def _question_tier(
        self,
        vector: list[float],
        run: _MatchRun,
    ) -> MatchResult | None:
        hits = await self._query(
            self._question_index,
            vector,
            top_k=1,
            min_similarity=run.options.question_threshold,
        )
        if not hits:
            return None

        hit = hits[0]
        question = await self._resolve(self._catalog.get_question_by_id(hit.record_id))
        if question is None:
            self._dangling(run, f"question:{hit.record_id}", "question record missing")
            return None

        pattern = await self._resolve(self._catalog.get_pattern_by_id(question.pattern_id))
        if pattern is None:
            self._dangling(
                run,
                f"question:{question.id}->pattern:{question.pattern_id}",
                "pattern_id does not resolve",
            )
            return None

        confidence = _clamp(hit.similarity)
        logger.info(
            "Matched via question: %s (%.2f) → %s",
            question.id, confidence, pattern.id,
        )
        return run.finish(
            match=PatternMatch(
                pattern_id=pattern.id,
                confidence=confidence,
                pattern=pattern,
            ),
            matched_via=MatchTier.QUESTION,
            matched_question_id=question.id,
            alternatives=[],
        )

    async def _pattern_tier(
        self,
        vector: list[float],
        run: _MatchRun,
    ) -> MatchResult:
        opts = run.options
        hits = await self._query(
            self._pattern_index,
            vector,
            top_k=opts.top_k,
            min_similarity=opts.alternatives_floor,
        )

        alternatives: list[ScoredPattern] = []
        for hit in sorted(hits, key=lambda h: h.similarity, reverse=True):
            pattern = await self._resolve(self._catalog.get_pattern_by_id(hit.record_id))
            if pattern is None:
                self._dangling(run, f"pattern:{hit.record_id}", "pattern record missing")
                continue
            alternatives.append(
                ScoredPattern(pattern=pattern, similarity=_clamp(hit.similarity)),
            )

        if not alternatives:
            run.advance(MatchState.LOW_CONFIDENCE)
            logger.info("No pattern above floor %.2f", opts.alternatives_floor)
            return run.finish(alternatives=[])

        best = alternatives[0]
        if best.similarity >= opts.pattern_threshold:
            run.advance(MatchState.CONFIDENT)
            logger.info(
                "Matched via pattern: %s (%.2f)", best.pattern.id, best.similarity,
            )
            return run.finish(
                match=PatternMatch(
                    pattern_id=best.pattern.id,
                    confidence=best.similarity,
                    pattern=best.pattern,
                ),
                matched_via=MatchTier.PATTERN,
                alternatives=alternatives,
            )

        run.advance(MatchState.LOW_CONFIDENCE)
        logger.info(
            "Low confidence match: %s (%.2f) - below threshold %.2f",
            best.pattern.id, best.similarity, opts.pattern_threshold,
        )
        return run.finish(alternatives=alternatives)

    # ----- Suspension points -----

    async def _embed(self, text: str) -> list[float]:
        try:
            vector = await asyncio.wait_for(
                self._provider.embed(text), timeout=self._embed_timeout_s,
            )
        except TimeoutError as exc:
            raise ProviderTimeout(
                f"{self._provider.name} did not respond within {self._embed_timeout_s}s",
            ) from exc
        except MatchingError:
            raise
        except Exception as exc:
            raise ProviderFailure(f"{self._provider.name} failed: {exc}") from exc

        if not vector:
            raise ProviderFailure(f"{self._provider.name} returned an empty vector")
        return list(vector)

    async def _query(
        self,
        index: VectorIndex,
        vector: Sequence[float],
        *,
        top_k: int,
        min_similarity: float,
    ) -> list[IndexHit]:
        try:
            return await asyncio.wait_for(
                index.query(vector, top_k, min_similarity),
                timeout=self._index_timeout_s,
            )
        except TimeoutError as exc:
            raise IndexTimeout(
                f"{index.name} did not respond within {self._index_timeout_s}s",
            ) from exc
        except MatchingError:
            raise
        except Exception as exc:
            raise IndexFailure(f"{index.name} query failed: {exc}") from exc

    async def _resolve(self, lookup: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(lookup, timeout=self._index_timeout_s)
        except TimeoutError as exc:
            raise IndexTimeout(
                f"Catalog lookup did not respond within {self._index_timeout_s}s",
            ) from exc
        except MatchingError:
            raise
        except Exception as exc:
            raise IndexFailure(f"Catalog lookup failed: {exc}") from exc

    # ----- Observability -----

    def _dangling(self, run: _MatchRun, ref: str, reason: str) -> None:
        run.dangling.append(ref)
        logger.warning("Dangling catalog reference %s (%s); falling through", ref, reason)

    def _record(
        self,
        run: _MatchRun,
        outcome: MatchOutcome,
        started: float,
        result: MatchResult | None = None,
    ) -> None:
        if self._metrics is None:
            return
        self._metrics.record(MatchEvent(
            outcome=outcome,
            confidence=result.match.confidence if result and result.match else None,
            alternatives=len(result.alternatives) if result else 0,
            dangling_references=list(run.dangling),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        ))
