"""Shared pytest fixtures for the matching engine test suite.

Provides:
- db_engine: in-memory SQLite async engine with all tables
- db_session: SAVEPOINT-isolated async session (app commits don't leak)
- client: AsyncClient with the DB session and embedding provider overridden
- embeddings: a deterministic table-driven embedding provider
- make_pattern / make_question: catalog record builders
"""

import math
from collections.abc import Sequence

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.db.session import Base, get_async_session
import src.db.tables  # noqa: F401 — register ORM models on Base.metadata
from src.embeddings.base import EmbeddingProvider
from src.matching.errors import ProviderFailure
from src.matching.normalizer import normalize_for_embedding
from src.models.catalog import Pattern, PatternSignature, PatternTrick, Question, QuestionText


def _unit(similarity: float, axis: int = 1, dims: int = 4) -> list[float]:
    """Unit vector whose cosine with ``[1, 0, 0, ...]`` equals ``similarity``."""
    vec = [0.0] * dims
    vec[0] = similarity
    vec[axis] = math.sqrt(max(0.0, 1.0 - similarity * similarity))
    return vec


class TableEmbeddingProvider(EmbeddingProvider):
    """Looks the (normalized) text up in a table; unknown text fails."""

    def __init__(self, table: dict[str, Sequence[float]] | None = None) -> None:
        self.table = {normalize_for_embedding(k): list(v) for k, v in (table or {}).items()}
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return "table"

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        try:
            return self.table[text]
        except KeyError:
            raise ProviderFailure(f"no vector for {text!r}") from None

    def add(self, text: str, vector: Sequence[float]) -> None:
        self.table[normalize_for_embedding(text)] = list(vector)


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio, which the code under test uses."""
    return "asyncio"


@pytest.fixture
def unit():
    """Builder for unit vectors with a chosen cosine against the query axis."""
    return _unit


@pytest.fixture
def embeddings() -> TableEmbeddingProvider:
    return TableEmbeddingProvider()


@pytest.fixture
def make_pattern():
    def _make(
        pattern_id: str,
        *,
        name: str | None = None,
        embedding_text: str = "",
        variables: Sequence[str] = (),
        one_liner: str | None = None,
        **fields,  # noqa: ANN003
    ) -> Pattern:
        return Pattern(
            id=pattern_id,
            topic_id=fields.pop("topic_id", "percentage"),
            name=name or pattern_id.replace("_", " ").title(),
            signature=PatternSignature(
                embedding_text=embedding_text, variables=list(variables),
            ),
            trick=(
                PatternTrick(name="Trick", one_liner=one_liner)
                if one_liner else None
            ),
            **fields,
        )

    return _make


@pytest.fixture
def make_question():
    def _make(question_id: str, pattern_id: str, text: str, **fields) -> Question:  # noqa: ANN003
        return Question(
            id=question_id,
            pattern_id=pattern_id,
            topic_id=fields.pop("topic_id", "percentage"),
            text=QuestionText(en=text),
            **fields,
        )

    return _make


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a SAVEPOINT-isolated session.

    The outer transaction is never committed — it rolls back at teardown.
    Application code calling session.commit() triggers a SAVEPOINT release,
    which is then restarted so subsequent operations stay in the same
    outer transaction.
    """
    async with db_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        nested = await conn.begin_nested()

        @event.listens_for(session.sync_session, "after_transaction_end")
        def restart_savepoint(sync_session, transaction):  # noqa: ARG001
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = conn.sync_connection.begin_nested()

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture
async def client(db_session, embeddings):
    """AsyncClient with the session and embedding provider overridden."""
    from src.api.dependencies import get_embedding_provider, get_metrics
    from src.api.main import app
    from src.observability.metrics import MatchMetricsStore

    metrics = MatchMetricsStore()

    async def _override_session():
        yield db_session

    async def _override_provider():
        return embeddings

    async def _override_metrics():
        return metrics

    app.dependency_overrides[get_async_session] = _override_session
    app.dependency_overrides[get_embedding_provider] = _override_provider
    app.dependency_overrides[get_metrics] = _override_metrics

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
