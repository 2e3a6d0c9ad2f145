"""Data access helpers for topics, their replies and hit state."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topic_pulse.core.errors import PersistenceError
from topic_pulse.db.time import as_utc
from topic_pulse.models import Reply, Topic

__all__ = ["TopicRepository"]

logger = logging.getLogger(__name__)


@contextmanager
def _persistence(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into ``PersistenceError``."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("Persistence failure during %s: %s", operation, exc)
        raise PersistenceError(operation, str(exc)) from exc


class TopicRepository:
    """Thin wrapper around database access for topic scoring state."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, topic_id: int, *, fresh: bool = False) -> Topic | None:
        """Return a live (not soft-deleted) topic by identifier.

        With ``fresh`` the row overwrites any copy already held by the session.
        """
        stmt = select(Topic).where(Topic.id == topic_id, Topic.deleted.is_(False))
        if fresh:
            stmt = stmt.execution_options(populate_existing=True)
        with _persistence("load topic"):
            result = self.session.execute(stmt)
            return result.scalars().first()

    def get_reply(self, reply_id: int) -> Reply | None:
        """Return a reply by identifier."""
        with _persistence("load reply"):
            return self.session.get(Reply, reply_id)

    def reply_created_ats(self, topic_id: int, since: datetime) -> list[datetime]:
        """Return creation times of the topic's replies created at or after ``since``."""
        with _persistence("load replies"):
            result = self.session.execute(
                select(Reply.created_at)
                .where(
                    Reply.topic_id == topic_id,
                    Reply.deleted.is_(False),
                    Reply.created_at >= since,
                )
                .order_by(Reply.created_at.asc())
            )
            return [as_utc(created_at) for created_at in result.scalars()]

    def count_discussion_replies(self, topic_id: int) -> int:
        """Return how many non-system, non-deleted replies a topic has."""
        with _persistence("count replies"):
            result = self.session.execute(
                select(func.count())
                .select_from(Reply)
                .where(
                    Reply.topic_id == topic_id,
                    Reply.deleted.is_(False),
                    Reply.is_system.is_(False),
                )
            )
            return int(result.scalar_one())

    def compare_and_set_hits(
        self,
        topic: Topic,
        *,
        expected_version: int,
        week_hits: list[int],
        day_hits: list[int],
        last_update: datetime,
        num: int,
    ) -> bool:
        """Write new hit state only if nobody else did since ``expected_version``.

        Returns:
            True when the row was updated, False when the version moved on.
        """
        with _persistence("store hit state"):
            result = self.session.execute(
                update(Topic)
                .where(Topic.id == topic.id, Topic.hits_version == expected_version)
                .values(
                    week_hits=week_hits,
                    day_hits=day_hits,
                    last_hit_update_at=last_update,
                    hits=Topic.hits + num,
                    hits_version=expected_version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            self.session.flush()
            self.session.expire(topic)
            return result.rowcount == 1

    def store_scores(self, topic: Topic, *, day_score: int, week_score: int) -> Topic:
        """Overwrite both popularity scores on the topic."""
        with _persistence("store scores"):
            topic.day_score = day_score
            topic.week_score = week_score
            self.session.flush()
            return topic

    def list_by_day_score(self, limit: int) -> list[Topic]:
        """Return live topics ordered by descending day score."""
        return self._list_ranked(Topic.day_score, limit)

    def list_by_week_score(self, limit: int) -> list[Topic]:
        """Return live topics ordered by descending week score."""
        return self._list_ranked(Topic.week_score, limit)

    def _list_ranked(self, column, limit: int) -> list[Topic]:
        with _persistence("rank topics"):
            result = self.session.execute(
                select(Topic)
                .where(Topic.deleted.is_(False))
                .order_by(column.desc(), Topic.id.desc())
                .limit(limit)
            )
            return list(result.scalars())
