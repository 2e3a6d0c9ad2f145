# src/topic_pulse/models/topic.py
"""SQLAlchemy model for discussion topics and their popularity state."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from topic_pulse.db.session import Base
from topic_pulse.db.time import utcnow

if TYPE_CHECKING:
    from .reply import Reply


class Topic(Base):
    """Discussion thread owning the rolling hit windows and derived scores.

    ``week_hits`` holds one count per UTC day and ``day_hits`` one count per
    UTC hour, oldest first. Both are rewritten as a unit together with
    ``last_hit_update_at`` and guarded by ``hits_version``.
    """

    __tablename__ = "topic"
    __table_args__ = (
        Index("ix_topic_day_score", "day_score"),
        Index("ix_topic_week_score", "week_score"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    node_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Lifetime page views.
    hits: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    week_hits: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    day_hits: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    last_hit_update_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    # Bumped on every hit write; compare-and-swap token for concurrent recorders.
    hits_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    day_score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    week_score: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    replies_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reply_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    replied_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    deleted: Mapped[bool] = mapped_column(default=False, nullable=False)

    replies: Mapped[list[Reply]] = relationship(
        "Reply",
        back_populates="topic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
