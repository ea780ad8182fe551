"""SQLAlchemy ORM table models for the pattern catalog.

Uses FlexJSON (JSONB on Postgres, JSON on SQLite) for nested authoring
payloads and for stored embedding vectors. A NULL embedding means the row
has not been embedded yet and is invisible to vector search.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from src.db.session import Base

# JSONB on PostgreSQL, plain JSON on SQLite (for tests)
FlexJSON = JSONB().with_variant(JSON(), "sqlite")

# Python None stored as SQL NULL (not JSON null) so IS NULL filters work
NullableJSON = JSONB(none_as_null=True).with_variant(
    JSON(none_as_null=True), "sqlite",
)


class PatternRow(Base):
    """One solution template. Exactly one stored vector per pattern id."""

    __tablename__ = "patterns"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    topic_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    name_hi: Mapped[str] = mapped_column(String(255), default="")
    slug: Mapped[str] = mapped_column(String(255), default="")
    signature: Mapped[dict] = mapped_column(FlexJSON, nullable=False)
    trick: Mapped[dict | None] = mapped_column(NullableJSON, nullable=True)
    common_mistakes: Mapped[list] = mapped_column(FlexJSON, default=list)
    teaching: Mapped[dict | None] = mapped_column(NullableJSON, nullable=True)
    visual: Mapped[dict | None] = mapped_column(NullableJSON, nullable=True)
    prerequisites: Mapped[dict] = mapped_column(FlexJSON, default=dict)
    difficulty: Mapped[int] = mapped_column(Integer, default=2)
    frequency: Mapped[str] = mapped_column(String(20), default="medium")
    avg_time_seconds: Mapped[int] = mapped_column(Integer, default=60)
    tags: Mapped[list] = mapped_column(FlexJSON, default=list)
    embedding: Mapped[list | None] = mapped_column(NullableJSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class QuestionRow(Base):
    """A recorded question instance.

    pattern_id is a foreign key at authoring time; the matcher still treats
    an unresolvable pattern_id as a miss.
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    pattern_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("patterns.id"), nullable=False, index=True,
    )
    topic_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    text_en: Mapped[str] = mapped_column(Text, nullable=False)
    text_hi: Mapped[str | None] = mapped_column(Text, nullable=True)
    options: Mapped[dict | None] = mapped_column(NullableJSON, nullable=True)
    correct_option: Mapped[str | None] = mapped_column(String(1), nullable=True)
    solution: Mapped[dict | None] = mapped_column(NullableJSON, nullable=True)
    source: Mapped[dict | None] = mapped_column(NullableJSON, nullable=True)
    exam_history: Mapped[list] = mapped_column(FlexJSON, default=list)
    difficulty: Mapped[int] = mapped_column(Integer, default=2)
    is_pyq: Mapped[bool] = mapped_column(Boolean, default=False)
    is_variation: Mapped[bool] = mapped_column(Boolean, default=False)
    embedding: Mapped[list | None] = mapped_column(NullableJSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
