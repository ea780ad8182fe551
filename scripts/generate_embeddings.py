"""Generate (or regenerate) catalog embeddings.

Patterns are embedded from their canonical signature text; questions from
their normalized English text. Calls are serialized with a small delay to
respect provider rate limits. A failure on one record is counted and the
run continues.

Usage:
    python -m scripts.generate_embeddings                  # only missing vectors
    python -m scripts.generate_embeddings --all            # clear and rebuild all
    python -m scripts.generate_embeddings --skip-questions
"""

import argparse
import asyncio
import sys
from collections.abc import Collection

from sqlalchemy.ext.asyncio import AsyncSession

from src.embeddings.base import EmbeddingProvider
from src.embeddings.batch import EmbeddingJobReport, embed_serially
from src.matching.normalizer import pattern_embedding_text, question_embedding_text
from src.repositories.catalog import PatternRepository, QuestionRepository

_PAGE_SIZE = 100


async def embed_patterns(
    session: AsyncSession,
    provider: EmbeddingProvider,
    *,
    delay_s: float = 0.1,
    limit: int = _PAGE_SIZE,
    exclude_ids: Collection[str] = (),
) -> EmbeddingJobReport:
    repo = PatternRepository(session)
    patterns = await repo.find_without_embedding(limit, exclude_ids=exclude_ids)
    items = [(p.id, pattern_embedding_text(p)) for p in patterns]
    return await embed_serially(
        provider, items, repo.update_embedding, delay_s=delay_s,
    )


async def embed_questions(
    session: AsyncSession,
    provider: EmbeddingProvider,
    *,
    delay_s: float = 0.1,
    limit: int = _PAGE_SIZE,
    exclude_ids: Collection[str] = (),
) -> EmbeddingJobReport:
    repo = QuestionRepository(session)
    questions = await repo.find_without_embedding(limit, exclude_ids=exclude_ids)
    items = [(q.id, question_embedding_text(q)) for q in questions]
    return await embed_serially(
        provider, items, repo.update_embedding, delay_s=delay_s,
    )


async def generate_embeddings(
    session: AsyncSession,
    provider: EmbeddingProvider,
    *,
    regenerate_all: bool = False,
    skip_patterns: bool = False,
    skip_questions: bool = False,
    delay_s: float = 0.1,
    limit: int = _PAGE_SIZE,
) -> dict[str, EmbeddingJobReport]:
    """Embed every record lacking a vector (or all of them).

    Each collection is processed page by page until nothing is left; records
    that already failed in this run are not retried.
    """
    patterns = PatternRepository(session)
    questions = QuestionRepository(session)
    if regenerate_all:
        await patterns.clear_embeddings()
        await questions.clear_embeddings()

    reports: dict[str, EmbeddingJobReport] = {}
    jobs = []
    if not skip_patterns:
        jobs.append(("patterns", embed_patterns))
    if not skip_questions:
        jobs.append(("questions", embed_questions))

    for label, job in jobs:
        total = EmbeddingJobReport()
        while True:
            page = await job(
                session, provider,
                delay_s=delay_s, limit=limit, exclude_ids=set(total.failed),
            )
            if page.success_count == 0 and page.failure_count == 0:
                break
            total.succeeded.extend(page.succeeded)
            total.failed.update(page.failed)
        reports[label] = total

    return reports


# ---------------------------------------------------------------------------
# CLI entry point: python -m scripts.generate_embeddings
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--all", dest="regenerate_all", action="store_true",
                        help="Clear and regenerate every embedding.")
    parser.add_argument("--skip-patterns", action="store_true")
    parser.add_argument("--skip-questions", action="store_true")
    return parser.parse_args(argv)


async def _run(argv: list[str]) -> int:
    from src.config.settings import get_settings
    from src.db.session import get_session_factory
    from src.embeddings.openai_provider import OpenAIEmbeddingProvider

    args = _parse_args(argv)
    settings = get_settings()
    provider = OpenAIEmbeddingProvider(
        api_key=settings.OPENAI_API_KEY,
        model=settings.EMBEDDING_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        timeout_s=settings.EMBEDDING_TIMEOUT_S,
    )

    async with get_session_factory()() as session:
        reports = await generate_embeddings(
            session,
            provider,
            regenerate_all=args.regenerate_all,
            skip_patterns=args.skip_patterns,
            skip_questions=args.skip_questions,
            delay_s=settings.EMBEDDING_BATCH_DELAY_S,
        )
        await session.commit()

    failed = 0
    for label, report in reports.items():
        print(f"{label:<10} {report.success_count:>5} success  "
              f"{report.failure_count:>5} failed")
        failed += report.failure_count
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(_run(sys.argv[1:])))
