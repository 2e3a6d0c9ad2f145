"""Recompute a topic's day and week scores after a reply is committed."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topic_pulse.core.errors import PersistenceError
from topic_pulse.core.settings import settings
from topic_pulse.db.time import as_utc, utcnow
from topic_pulse.models import Topic
from topic_pulse.repositories.topic_repo import TopicRepository
from topic_pulse.schemas.topic import TopicScores
from topic_pulse.services.bucketing import bucket_replies, horizon_start
from topic_pulse.services.hits import get_last_day_hits_count, get_last_week_hits_count
from topic_pulse.services.rolling import TimeUnit
from topic_pulse.services.scoring import score

logger = logging.getLogger(__name__)


class ScoreUpdateService:
    """Service recomputing popularity scores from current topic state.

    Scores are always rebuilt from the stored hit windows and the replies in
    the database, never adjusted incrementally, so running an update twice
    (or out of order with another update of the same topic) converges on the
    same values.
    """

    def __init__(self, session: Session, repo: TopicRepository | None = None) -> None:
        self.session = session
        self.repo = repo or TopicRepository(session)

    def last_week_replies_count(self, topic: Topic, now: datetime) -> list[int]:
        """Return the topic's replies per UTC day over the last week, oldest first."""
        return self._replies_count(topic, settings.week_window_size, TimeUnit.DAY, now)

    def last_day_replies_count(self, topic: Topic, now: datetime) -> list[int]:
        """Return the topic's replies per UTC hour over the last day, oldest first."""
        return self._replies_count(topic, settings.day_window_size, TimeUnit.HOUR, now)

    def _replies_count(
        self,
        topic: Topic,
        horizon_units: int,
        unit: TimeUnit,
        now: datetime,
    ) -> list[int]:
        since = horizon_start(now, horizon_units, unit)
        created_ats = self.repo.reply_created_ats(topic.id, since)
        return bucket_replies(created_ats, horizon_units, unit, now)

    def compute(self, topic: Topic, now: datetime) -> TopicScores:
        """Compute both scores for ``topic`` without writing anything."""
        week_score = score(
            get_last_week_hits_count(topic),
            self.last_week_replies_count(topic, now),
            settings.reply_weight,
        )
        day_score = score(
            get_last_day_hits_count(topic),
            self.last_day_replies_count(topic, now),
            settings.reply_weight,
        )
        return TopicScores(topic_id=topic.id, day_score=day_score, week_score=week_score)

    def update_for_topic(self, topic_id: int, now: datetime | None = None) -> TopicScores | None:
        """Recompute and persist the scores of a topic.

        Args:
            topic_id: Topic to rescore.
            now: Reference time for the windows; defaults to the current time.

        Returns:
            The stored scores, or None when the topic no longer exists.

        Raises:
            PersistenceError: If the scores could not be written.
        """
        now = as_utc(now) if now is not None else utcnow()

        topic = self.repo.get_by_id(topic_id, fresh=True)
        if topic is None:
            return None

        scores = self.compute(topic, now)
        try:
            self.repo.store_scores(topic, day_score=scores.day_score, week_score=scores.week_score)
            self.session.commit()
        except PersistenceError:
            self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError("commit scores", str(exc)) from exc

        logger.debug(
            "Rescored topic %s: day_score=%d week_score=%d",
            topic_id,
            scores.day_score,
            scores.week_score,
        )
        return scores

    def update_for_reply(
        self,
        reply_id: int,
        topic_id: int | None = None,
        now: datetime | None = None,
    ) -> TopicScores | None:
        """Recompute the scores of the topic owning a freshly committed reply.

        The owning topic is taken from ``topic_id`` when the event carries it,
        otherwise looked up through the reply. An unresolvable topic makes the
        whole update a no-op.
        """
        if topic_id is None:
            reply = self.repo.get_reply(reply_id)
            if reply is None:
                return None
            topic_id = reply.topic_id
        return self.update_for_topic(topic_id, now)
