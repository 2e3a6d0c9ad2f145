# src/topic_pulse/models/reply.py
"""Models capturing replies posted to topics."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from topic_pulse.db.session import Base
from topic_pulse.db.time import utcnow

if TYPE_CHECKING:
    from .topic import Topic


class Reply(Base):
    """A reply in a topic; its creation time feeds the reply buckets."""

    __tablename__ = "reply"
    __table_args__ = (
        Index("ix_reply_topic_id_created_at", "topic_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    topic_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("topic.id", ondelete="CASCADE"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    # System events (ban, excellent, ...) are replies too but do not count as discussion.
    is_system: Mapped[bool] = mapped_column(default=False, nullable=False)
    deleted: Mapped[bool] = mapped_column(default=False, nullable=False)

    topic: Mapped[Topic] = relationship("Topic", back_populates="replies")
