"""Serialized bulk embedding for catalog (re)embedding jobs.

Calls the provider one text at a time with a small delay between calls to
respect provider rate limits. Outside the matcher's main path.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from src.embeddings.base import EmbeddingProvider
from src.matching.errors import ProviderFailure

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingJobReport:
    """Per-run success/failure tally."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


async def embed_serially(
    provider: EmbeddingProvider,
    items: Sequence[tuple[str, str]],
    on_vector: Callable[[str, list[float]], Awaitable[None]],
    *,
    delay_s: float = 0.1,
) -> EmbeddingJobReport:
    """Embed ``(record_id, text)`` pairs one by one.

    A ProviderFailure on one item is recorded and the job moves on; the
    delay is only applied between calls, not after the last one.
    """
    report = EmbeddingJobReport()

    for i, (record_id, text) in enumerate(items):
        try:
            vector = await provider.embed(text)
            await on_vector(record_id, vector)
        except ProviderFailure as exc:
            logger.warning("Embedding failed for %s: %s", record_id, exc.message)
            report.failed[record_id] = exc.message
        else:
            logger.info(
                "Embedded %s (%d dimensions)", record_id, len(vector),
            )
            report.succeeded.append(record_id)

        if delay_s > 0 and i < len(items) - 1:
            await asyncio.sleep(delay_s)

    return report
