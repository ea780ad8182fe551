"""FastAPI dependency injection factories for the matching stack.

Each request gets its own catalog snapshot (session-bound repositories and
vector indexes) and a matcher wired from settings. Tests override these via
``app.dependency_overrides``.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.settings import Settings, get_settings
from src.db.session import get_async_session
from src.embeddings.base import EmbeddingProvider
from src.embeddings.openai_provider import OpenAIEmbeddingProvider
from src.index.base import Collection
from src.index.catalog import CatalogVectorIndex
from src.matching.matcher import TieredMatcher
from src.observability.metrics import MatchMetricsStore, get_metrics_store
from src.repositories.catalog import PatternRepository, QuestionRepository, SqlCatalog

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


async def get_catalog(
    session: AsyncSession = Depends(get_async_session),
) -> SqlCatalog:
    return SqlCatalog(session)


# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------


async def get_embedding_provider(
    settings: Settings = Depends(get_settings),
) -> EmbeddingProvider:
    return OpenAIEmbeddingProvider(
        api_key=settings.OPENAI_API_KEY,
        model=settings.EMBEDDING_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        timeout_s=settings.EMBEDDING_TIMEOUT_S,
    )


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------


async def get_metrics() -> MatchMetricsStore:
    return get_metrics_store()


async def get_matcher(
    session: AsyncSession = Depends(get_async_session),
    provider: EmbeddingProvider = Depends(get_embedding_provider),
    settings: Settings = Depends(get_settings),
    metrics: MatchMetricsStore = Depends(get_metrics),
) -> TieredMatcher:
    questions = QuestionRepository(session)
    patterns = PatternRepository(session)
    return TieredMatcher(
        provider,
        CatalogVectorIndex(Collection.QUESTIONS, questions.list_embeddings),
        CatalogVectorIndex(Collection.PATTERNS, patterns.list_embeddings),
        SqlCatalog(session),
        defaults=settings.match_options(),
        embed_timeout_s=settings.EMBEDDING_TIMEOUT_S,
        index_timeout_s=settings.INDEX_TIMEOUT_S,
        metrics=metrics,
    )
