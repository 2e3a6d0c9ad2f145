"""Service-level helpers for creating replies."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topic_pulse.core.errors import PersistenceError, TopicNotFoundError
from topic_pulse.db.time import as_utc, utcnow
from topic_pulse.models import Reply, ScoreJob, Topic
from topic_pulse.repositories.topic_repo import TopicRepository
from topic_pulse.schemas.events import ReplyCommitted


def create_reply(
    db: Session,
    *,
    topic_id: int,
    body: str,
    now: datetime | None = None,
    is_system: bool = False,
) -> ReplyCommitted:
    """Store a reply and queue a score recomputation for its topic.

    The reply, the topic's reply bookkeeping and the ``ScoreJob`` row share a
    single transaction, so the job becomes visible to workers exactly when
    the reply does.

    Args:
        db: Database session.
        topic_id: Topic being replied to.
        body: Reply text.
        now: Creation time; defaults to the current time.
        is_system: Whether this is a system event rather than a user reply.

    Returns:
        The event describing the committed reply.

    Raises:
        TopicNotFoundError: If the topic does not exist.
        PersistenceError: If the transaction could not be committed.
    """
    now = as_utc(now) if now is not None else utcnow()
    repo = TopicRepository(db)
    topic = repo.get_by_id(topic_id)
    if topic is None:
        raise TopicNotFoundError(topic_id)

    try:
        reply = Reply(topic_id=topic.id, body=body, created_at=now, is_system=is_system)
        db.add(reply)
        db.flush()
        _update_last_reply(repo, topic, reply)
        db.add(ScoreJob(topic_id=topic.id, reply_id=reply.id))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("create reply", str(exc)) from exc

    return ReplyCommitted(reply_id=reply.id, topic_id=topic.id)


def _update_last_reply(repo: TopicRepository, topic: Topic, reply: Reply) -> None:
    topic.replies_count = repo.count_discussion_replies(topic.id)
    if reply.is_system:
        return
    topic.last_reply_id = reply.id
    topic.replied_at = reply.created_at
