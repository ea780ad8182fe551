"""Catalog repositories — patterns and questions.

PatternRepository, QuestionRepository, and SqlCatalog (the read contract the
matcher resolves index hits through). Repositories only add()/flush();
commit belongs to the session owner.

Changing a pattern's signature text or a question's English text clears the
stored embedding so the next embedding run regenerates it.
"""

from collections.abc import Collection

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import PatternRow, QuestionRow
from src.models.catalog import Pattern, Question
from src.models.common import utc_now


def pattern_from_row(row: PatternRow) -> Pattern:
    return Pattern.model_validate({
        "id": row.id,
        "topic_id": row.topic_id,
        "name": row.name,
        "name_hi": row.name_hi or "",
        "slug": row.slug or "",
        "signature": row.signature or {},
        "trick": row.trick,
        "common_mistakes": row.common_mistakes or [],
        "teaching": row.teaching,
        "visual": row.visual,
        "prerequisites": row.prerequisites or {},
        "difficulty": row.difficulty,
        "frequency": row.frequency,
        "avg_time_seconds": row.avg_time_seconds,
        "tags": row.tags or [],
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    })


def question_from_row(row: QuestionRow) -> Question:
    return Question.model_validate({
        "id": row.id,
        "pattern_id": row.pattern_id,
        "topic_id": row.topic_id,
        "text": {"en": row.text_en, "hi": row.text_hi},
        "options": row.options,
        "correct_option": row.correct_option,
        "solution": row.solution,
        "source": row.source,
        "exam_history": row.exam_history or [],
        "difficulty": row.difficulty,
        "is_pyq": row.is_pyq,
        "is_variation": row.is_variation,
        "created_at": row.created_at,
    })


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------


class PatternRepository:
    """Repository for catalog patterns and their stored vectors."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, pattern: Pattern) -> PatternRow:
        data = pattern.model_dump(
            mode="json",
            exclude={"id", "created_at", "updated_at"},
        )
        row = await self.get(pattern.id)
        now = utc_now()

        if row is None:
            row = PatternRow(id=pattern.id, created_at=now, updated_at=now, **data)
            self._session.add(row)
        else:
            old_text = (row.signature or {}).get("embedding_text")
            for key, value in data.items():
                setattr(row, key, value)
            row.updated_at = now
            if old_text != pattern.signature.embedding_text:
                row.embedding = None

        await self._session.flush()
        await self._session.refresh(row)
        return row

    async def get(self, pattern_id: str) -> PatternRow | None:
        result = await self._session.execute(
            select(PatternRow).where(PatternRow.id == pattern_id),
        )
        return result.scalar_one_or_none()

    async def get_pattern(self, pattern_id: str) -> Pattern | None:
        row = await self.get(pattern_id)
        return pattern_from_row(row) if row is not None else None

    async def list_all(self, *, topic_id: str | None = None) -> list[Pattern]:
        stmt = select(PatternRow)
        if topic_id:
            stmt = stmt.where(PatternRow.topic_id == topic_id)
        stmt = stmt.order_by(PatternRow.difficulty, PatternRow.name)
        result = await self._session.execute(stmt)
        return [pattern_from_row(r) for r in result.scalars().all()]

    async def update_embedding(
        self, pattern_id: str, embedding: list[float],
    ) -> bool:
        result = await self._session.execute(
            update(PatternRow)
            .where(PatternRow.id == pattern_id)
            .values(embedding=list(embedding), updated_at=utc_now()),
        )
        await self._session.flush()
        return result.rowcount > 0

    async def clear_embeddings(self) -> None:
        await self._session.execute(update(PatternRow).values(embedding=None))
        await self._session.flush()

    async def find_without_embedding(
        self,
        limit: int = 100,
        *,
        exclude_ids: Collection[str] = (),
    ) -> list[Pattern]:
        stmt = select(PatternRow).where(PatternRow.embedding.is_(None))
        if exclude_ids:
            stmt = stmt.where(PatternRow.id.not_in(list(exclude_ids)))
        result = await self._session.execute(
            stmt.order_by(PatternRow.id).limit(limit),
        )
        return [pattern_from_row(r) for r in result.scalars().all()]

    async def count_without_embedding(self) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(PatternRow).where(
                PatternRow.embedding.is_(None),
            ),
        )
        return int(result.scalar_one())

    async def list_embeddings(self) -> list[tuple[str, list[float]]]:
        result = await self._session.execute(
            select(PatternRow.id, PatternRow.embedding)
            .where(PatternRow.embedding.is_not(None))
            .order_by(PatternRow.id),
        )
        return [(rid, list(vec)) for rid, vec in result.all()]


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


class QuestionRepository:
    """Repository for recorded questions and their stored vectors."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, question: Question) -> QuestionRow:
        values = {
            "pattern_id": question.pattern_id,
            "topic_id": question.topic_id,
            "text_en": question.text.en,
            "text_hi": question.text.hi,
            "options": _dump(question.options),
            "correct_option": (
                question.correct_option.value if question.correct_option else None
            ),
            "solution": _dump(question.solution),
            "source": _dump(question.source),
            "exam_history": [e.model_dump(mode="json") for e in question.exam_history],
            "difficulty": question.difficulty,
            "is_pyq": question.is_pyq,
            "is_variation": question.is_variation,
        }
        row = await self.get(question.id)

        if row is None:
            row = QuestionRow(id=question.id, created_at=utc_now(), **values)
            self._session.add(row)
        else:
            text_changed = row.text_en != question.text.en
            for key, value in values.items():
                setattr(row, key, value)
            if text_changed:
                row.embedding = None

        await self._session.flush()
        await self._session.refresh(row)
        return row

    async def get(self, question_id: str) -> QuestionRow | None:
        result = await self._session.execute(
            select(QuestionRow).where(QuestionRow.id == question_id),
        )
        return result.scalar_one_or_none()

    async def get_question(self, question_id: str) -> Question | None:
        row = await self.get(question_id)
        return question_from_row(row) if row is not None else None

    async def list_by_pattern(
        self,
        pattern_id: str,
        *,
        limit: int | None = None,
    ) -> list[Question]:
        stmt = (
            select(QuestionRow)
            .where(QuestionRow.pattern_id == pattern_id)
            .order_by(QuestionRow.is_pyq.desc(), QuestionRow.difficulty, QuestionRow.id)
        )
        if limit:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return [question_from_row(r) for r in result.scalars().all()]

    async def update_embedding(
        self, question_id: str, embedding: list[float],
    ) -> bool:
        result = await self._session.execute(
            update(QuestionRow)
            .where(QuestionRow.id == question_id)
            .values(embedding=list(embedding)),
        )
        await self._session.flush()
        return result.rowcount > 0

    async def clear_embeddings(self) -> None:
        await self._session.execute(update(QuestionRow).values(embedding=None))
        await self._session.flush()

    async def find_without_embedding(
        self,
        limit: int = 100,
        *,
        exclude_ids: Collection[str] = (),
    ) -> list[Question]:
        stmt = select(QuestionRow).where(QuestionRow.embedding.is_(None))
        if exclude_ids:
            stmt = stmt.where(QuestionRow.id.not_in(list(exclude_ids)))
        result = await self._session.execute(
            stmt.order_by(QuestionRow.id).limit(limit),
        )
        return [question_from_row(r) for r in result.scalars().all()]

    async def count_without_embedding(self) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(QuestionRow).where(
                QuestionRow.embedding.is_(None),
            ),
        )
        return int(result.scalar_one())

    async def list_embeddings(self) -> list[tuple[str, list[float]]]:
        result = await self._session.execute(
            select(QuestionRow.id, QuestionRow.embedding)
            .where(QuestionRow.embedding.is_not(None))
            .order_by(QuestionRow.id),
        )
        return [(rid, list(vec)) for rid, vec in result.all()]

    async def delete(self, question_id: str) -> bool:
        result = await self._session.execute(
            delete(QuestionRow).where(QuestionRow.id == question_id),
        )
        await self._session.flush()
        return result.rowcount > 0


def _dump(model) -> dict | None:  # noqa: ANN001
    return model.model_dump(mode="json") if model is not None else None


# ---------------------------------------------------------------------------
# Catalog read contract
# ---------------------------------------------------------------------------


class SqlCatalog:
    """Resolves index record ids into catalog records. Absence is a miss."""

    def __init__(self, session: AsyncSession) -> None:
        self._patterns = PatternRepository(session)
        self._questions = QuestionRepository(session)

    async def get_pattern_by_id(self, pattern_id: str) -> Pattern | None:
        return await self._patterns.get_pattern(pattern_id)

    async def get_question_by_id(self, question_id: str) -> Question | None:
        return await self._questions.get_question(question_id)
