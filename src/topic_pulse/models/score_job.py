"""SQLAlchemy model for deferred score recomputation work."""

from sqlalchemy import VARCHAR, BigInteger, Integer, SmallInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from topic_pulse.db.session import Base

SCORE_JOB_PENDING = "pending"
SCORE_JOB_DONE = "done"
SCORE_JOB_FAILED = "failed"


class ScoreJob(Base):
    """Outbox record asking a worker to recompute a topic's scores.

    Rows are written in the same transaction as the reply that triggers them,
    so workers only observe jobs for replies that have committed.
    """

    __tablename__ = "score_job"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    topic_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    reply_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(
        VARCHAR(20), nullable=False, default=SCORE_JOB_PENDING, index=True
    )  # 'pending', 'done', 'failed'
    retry_count: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
