"""Tests for PatternRepository, QuestionRepository and SqlCatalog."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.catalog import (
    ExamAppearance,
    OptionKey,
    QuestionOptions,
    QuestionSolution,
)
from src.repositories.catalog import (
    PatternRepository,
    QuestionRepository,
    SqlCatalog,
)


class TestPatternRepository:
    """Pattern storage and embedding bookkeeping."""

    @pytest.mark.anyio
    async def test_upsert_and_get(self, db_session: AsyncSession, make_pattern) -> None:
        repo = PatternRepository(db_session)
        p = make_pattern(
            "pct_decrease",
            name_hi="प्रतिशत कमी",
            embedding_text="price decreases by 20%",
            variables=["percent"],
            one_liner="20% = 1/5",
            tags=["percentage"],
        )
        await repo.upsert(p)

        fetched = await repo.get_pattern("pct_decrease")
        assert fetched is not None
        assert fetched.name_hi == "प्रतिशत कमी"
        assert fetched.signature.embedding_text == "price decreases by X%"
        assert fetched.signature.variables == ["percent"]
        assert fetched.trick is not None
        assert fetched.trick.one_liner == "20% = 1/5"
        assert fetched.teaching is None
        assert fetched.tags == ["percentage"]

    @pytest.mark.anyio
    async def test_get_nonexistent(self, db_session: AsyncSession) -> None:
        assert await PatternRepository(db_session).get_pattern("missing") is None

    @pytest.mark.anyio
    async def test_list_all_by_topic(self, db_session: AsyncSession, make_pattern) -> None:
        repo = PatternRepository(db_session)
        await repo.upsert(make_pattern("a", topic_id="ratio"))
        await repo.upsert(make_pattern("b", topic_id="percentage"))
        assert [p.id for p in await repo.list_all(topic_id="ratio")] == ["a"]
        assert len(await repo.list_all()) == 2

    @pytest.mark.anyio
    async def test_embedding_lifecycle(self, db_session: AsyncSession, make_pattern) -> None:
        repo = PatternRepository(db_session)
        await repo.upsert(make_pattern("a", embedding_text="salt price falls"))
        await repo.upsert(make_pattern("b", embedding_text="sugar price rises"))

        assert await repo.count_without_embedding() == 2
        assert await repo.update_embedding("a", [0.1, 0.2]) is True
        assert await repo.update_embedding("missing", [0.1, 0.2]) is False

        assert [p.id for p in await repo.find_without_embedding()] == ["b"]
        assert await repo.list_embeddings() == [("a", [0.1, 0.2])]

        await repo.clear_embeddings()
        assert await repo.count_without_embedding() == 2
        assert await repo.list_embeddings() == []

    @pytest.mark.anyio
    async def test_find_without_embedding_excludes(
        self, db_session: AsyncSession, make_pattern,
    ) -> None:
        repo = PatternRepository(db_session)
        for pid in ("a", "b", "c"):
            await repo.upsert(make_pattern(pid))
        found = await repo.find_without_embedding(10, exclude_ids={"b"})
        assert [p.id for p in found] == ["a", "c"]
        assert [p.id for p in await repo.find_without_embedding(1)] == ["a"]

    @pytest.mark.anyio
    async def test_signature_change_clears_embedding(
        self, db_session: AsyncSession, make_pattern,
    ) -> None:
        repo = PatternRepository(db_session)
        await repo.upsert(make_pattern("a", embedding_text="salt price falls by 10%"))
        await repo.update_embedding("a", [1.0, 0.0])

        # Same canonical text (numbers differ only) keeps the vector
        await repo.upsert(make_pattern("a", name="Renamed", embedding_text="salt price falls by 25%"))
        assert await repo.list_embeddings() == [("a", [1.0, 0.0])]

        await repo.upsert(make_pattern("a", embedding_text="sugar price rises"))
        assert await repo.list_embeddings() == []
        fetched = await repo.get_pattern("a")
        assert fetched.signature.embedding_text == "sugar price rises"


class TestQuestionRepository:
    """Question storage and embedding bookkeeping."""

    @pytest.mark.anyio
    async def test_upsert_and_get(
        self, db_session: AsyncSession, make_pattern, make_question,
    ) -> None:
        await PatternRepository(db_session).upsert(make_pattern("pct_decrease"))
        repo = QuestionRepository(db_session)
        q = make_question(
            "q1",
            "pct_decrease",
            "The price of salt decreases by 20%",
            options=QuestionOptions(a="20%", b="25%", c="30%", d="15%"),
            correct_option=OptionKey.B,
            solution=QuestionSolution(answer=25, answer_display="25%"),
            exam_history=[ExamAppearance(exam="SSC CGL", year=2019, tier=1)],
            is_pyq=True,
        )
        await repo.upsert(q)

        fetched = await repo.get_question("q1")
        assert fetched is not None
        assert fetched.text.en == "The price of salt decreases by 20%"
        assert fetched.correct_option == OptionKey.B
        assert fetched.options.b == "25%"
        assert fetched.solution.answer_display == "25%"
        assert fetched.exam_history[0].exam == "SSC CGL"
        assert fetched.source is None
        assert fetched.is_pyq is True

    @pytest.mark.anyio
    async def test_list_by_pattern_puts_pyqs_first(
        self, db_session: AsyncSession, make_pattern, make_question,
    ) -> None:
        await PatternRepository(db_session).upsert(make_pattern("p"))
        repo = QuestionRepository(db_session)
        await repo.upsert(make_question("q1", "p", "first"))
        await repo.upsert(make_question("q2", "p", "second", is_pyq=True))
        await repo.upsert(make_question("q3", "p", "third"))

        assert [q.id for q in await repo.list_by_pattern("p")] == ["q2", "q1", "q3"]
        assert len(await repo.list_by_pattern("p", limit=2)) == 2

    @pytest.mark.anyio
    async def test_text_change_clears_embedding(
        self, db_session: AsyncSession, make_pattern, make_question,
    ) -> None:
        await PatternRepository(db_session).upsert(make_pattern("p"))
        repo = QuestionRepository(db_session)
        await repo.upsert(make_question("q1", "p", "salt falls by 20%"))
        await repo.update_embedding("q1", [0.5, 0.5])

        await repo.upsert(make_question("q1", "p", "salt falls by 20%", difficulty=3))
        assert await repo.count_without_embedding() == 0

        await repo.upsert(make_question("q1", "p", "sugar rises by 20%"))
        assert await repo.count_without_embedding() == 1

    @pytest.mark.anyio
    async def test_delete(self, db_session: AsyncSession, make_pattern, make_question) -> None:
        await PatternRepository(db_session).upsert(make_pattern("p"))
        repo = QuestionRepository(db_session)
        await repo.upsert(make_question("q1", "p", "text"))
        assert await repo.delete("q1") is True
        assert await repo.delete("q1") is False
        assert await repo.get_question("q1") is None


class TestSqlCatalog:
    @pytest.mark.anyio
    async def test_resolves_and_misses(
        self, db_session: AsyncSession, make_pattern, make_question,
    ) -> None:
        await PatternRepository(db_session).upsert(make_pattern("p"))
        await QuestionRepository(db_session).upsert(make_question("q1", "p", "text"))
        catalog = SqlCatalog(db_session)

        assert (await catalog.get_pattern_by_id("p")).id == "p"
        assert (await catalog.get_question_by_id("q1")).pattern_id == "p"
        assert await catalog.get_pattern_by_id("nope") is None
        assert await catalog.get_question_by_id("nope") is None
