"""Pattern catalog tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "patterns",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column("topic_id", sa.String(100), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("name_hi", sa.String(255), server_default=""),
        sa.Column("slug", sa.String(255), server_default=""),
        sa.Column("signature", postgresql.JSONB, nullable=False),
        sa.Column("trick", postgresql.JSONB, nullable=True),
        sa.Column("common_mistakes", postgresql.JSONB, nullable=False),
        sa.Column("teaching", postgresql.JSONB, nullable=True),
        sa.Column("visual", postgresql.JSONB, nullable=True),
        sa.Column("prerequisites", postgresql.JSONB, nullable=False),
        sa.Column("difficulty", sa.Integer, server_default="2"),
        sa.Column("frequency", sa.String(20), server_default="medium"),
        sa.Column("avg_time_seconds", sa.Integer, server_default="60"),
        sa.Column("tags", postgresql.JSONB, nullable=False),
        sa.Column("embedding", postgresql.JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "questions",
        sa.Column("id", sa.String(100), primary_key=True),
        sa.Column(
            "pattern_id", sa.String(100),
            sa.ForeignKey("patterns.id"), nullable=False, index=True,
        ),
        sa.Column("topic_id", sa.String(100), nullable=False, index=True),
        sa.Column("text_en", sa.Text, nullable=False),
        sa.Column("text_hi", sa.Text, nullable=True),
        sa.Column("options", postgresql.JSONB, nullable=True),
        sa.Column("correct_option", sa.String(1), nullable=True),
        sa.Column("solution", postgresql.JSONB, nullable=True),
        sa.Column("source", postgresql.JSONB, nullable=True),
        sa.Column("exam_history", postgresql.JSONB, nullable=False),
        sa.Column("difficulty", sa.Integer, server_default="2"),
        sa.Column("is_pyq", sa.Boolean, server_default=sa.false()),
        sa.Column("is_variation", sa.Boolean, server_default=sa.false()),
        sa.Column("embedding", postgresql.JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("questions")
    op.drop_table("patterns")
