"""create topic scoring tables

Revision ID: 5b1f0c2ad7e3
Revises:
Create Date: 2026-10-18 09:12:40.318204

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1f0c2ad7e3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create topics, replies and the score job outbox."""
    op.create_table(
        "topic",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("node_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("hits", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("week_hits", sa.JSON(), nullable=False),
        sa.Column("day_hits", sa.JSON(), nullable=False),
        sa.Column("last_hit_update_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hits_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("day_score", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("week_score", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("replies_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_reply_id", sa.BigInteger(), nullable=True),
        sa.Column("replied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_topic_day_score", "topic", ["day_score"])
    op.create_index("ix_topic_week_score", "topic", ["week_score"])

    op.create_table(
        "reply",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), nullable=False),
        sa.Column("topic_id", sa.BigInteger(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["topic_id"], ["topic.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reply_topic_id_created_at", "reply", ["topic_id", "created_at"])

    op.create_table(
        "score_job",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), nullable=False),
        sa.Column("topic_id", sa.BigInteger(), nullable=False),
        sa.Column("reply_id", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.VARCHAR(length=20), nullable=False, server_default="pending"),
        sa.Column("retry_count", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_score_job_topic_id", "score_job", ["topic_id"])
    op.create_index("ix_score_job_status", "score_job", ["status"])


def downgrade() -> None:
    """Drop the scoring tables."""
    op.drop_index("ix_score_job_status", table_name="score_job")
    op.drop_index("ix_score_job_topic_id", table_name="score_job")
    op.drop_table("score_job")
    op.drop_index("ix_reply_topic_id_created_at", table_name="reply")
    op.drop_table("reply")
    op.drop_index("ix_topic_week_score", table_name="topic")
    op.drop_index("ix_topic_day_score", table_name="topic")
    op.drop_table("topic")
