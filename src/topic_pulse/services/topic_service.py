"""Service-level helpers for creating topics and recording views."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topic_pulse.core.errors import PersistenceError
from topic_pulse.core.settings import settings
from topic_pulse.db.time import as_utc, utcnow
from topic_pulse.models import ScoreJob, Topic
from topic_pulse.repositories.topic_repo import TopicRepository
from topic_pulse.schemas.events import HitRecorded
from topic_pulse.schemas.topic import HitSnapshot, RankedTopic
from topic_pulse.services.hits import HitRecorder


def create_topic(
    db: Session,
    *,
    title: str,
    node_name: str = "",
    now: datetime | None = None,
) -> Topic:
    """Store a new topic and queue its initial score computation."""
    now = as_utc(now) if now is not None else utcnow()
    try:
        topic = Topic(title=title, node_name=node_name, created_at=now)
        db.add(topic)
        db.flush()
        db.add(ScoreJob(topic_id=topic.id))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("create topic", str(exc)) from exc
    return topic


def handle_hit(
    db: Session,
    event: HitRecorded,
    *,
    now: datetime | None = None,
    recorder: HitRecorder | None = None,
) -> HitSnapshot:
    """Apply a page-view event to the topic's rolling windows."""
    recorder = recorder or HitRecorder(db)
    return recorder.record_hit(event.topic_id, event.num, now=now)


def ranked_topics(
    db: Session,
    *,
    by: Literal["day", "week"] = "day",
    limit: int | None = None,
) -> list[RankedTopic]:
    """Return live topics ordered by their day or week score."""
    repo = TopicRepository(db)
    limit = limit or settings.ranking_page_size
    topics = repo.list_by_day_score(limit) if by == "day" else repo.list_by_week_score(limit)
    return [RankedTopic.model_validate(topic) for topic in topics]
