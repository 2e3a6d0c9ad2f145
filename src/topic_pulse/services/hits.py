"""Page-view recording for topic rolling windows.

Recording a hit is a read-modify-write of two windows and a timestamp, so two
recorders for the same topic must never interleave. Writers are serialized per
topic (an in-process lock, or a Redis lock when several processes share the
database) and every write is additionally a compare-and-swap on
``Topic.hits_version``, retried a bounded number of times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime
from threading import Lock

import redis
from redis.exceptions import LockError, RedisError
from sqlalchemy.orm import Session

from topic_pulse.core.errors import HitContentionError, TopicNotFoundError
from topic_pulse.core.settings import settings
from topic_pulse.db.time import as_utc, utcnow
from topic_pulse.models import Topic
from topic_pulse.repositories.topic_repo import TopicRepository
from topic_pulse.schemas.topic import HitSnapshot
from topic_pulse.services.rolling import RollingWindow, TimeUnit

logger = logging.getLogger(__name__)

LockFactory = Callable[[int], AbstractContextManager[None]]

_TOPIC_LOCKS: dict[int, Lock] = {}
_REGISTRY_LOCK = Lock()


def _day_window() -> RollingWindow:
    return RollingWindow(maxlength=settings.day_window_size, unit=TimeUnit.HOUR)


def _week_window() -> RollingWindow:
    return RollingWindow(maxlength=settings.week_window_size, unit=TimeUnit.DAY)


@contextmanager
def local_topic_lock(topic_id: int) -> Iterator[None]:
    """Serialize hit recording for a topic within this process."""
    with _REGISTRY_LOCK:
        lock = _TOPIC_LOCKS.setdefault(topic_id, Lock())
    acquired = lock.acquire(timeout=settings.hit_lock_timeout_seconds)
    if not acquired:
        raise HitContentionError("acquire hit lock", f"timed out waiting for topic {topic_id}")
    try:
        yield
    finally:
        lock.release()


class RedisTopicLock:
    """Serialize hit recording for a topic across processes via Redis."""

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._redis = client or redis.Redis.from_url(settings.redis_url)

    @contextmanager
    def __call__(self, topic_id: int) -> Iterator[None]:
        timeout = settings.hit_lock_timeout_seconds
        lock = self._redis.lock(
            f"topic-hits:{topic_id}",
            timeout=timeout,
            blocking_timeout=timeout,
        )
        try:
            acquired = lock.acquire()
        except RedisError as exc:
            raise HitContentionError("acquire hit lock", str(exc)) from exc
        if not acquired:
            raise HitContentionError("acquire hit lock", f"timed out waiting for topic {topic_id}")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # Lock expired while we held it; the version check still protected the write.
                logger.warning("Hit lock for topic %s expired before release", topic_id)


def get_topic_lock() -> LockFactory:
    """Return the lock factory selected by ``HIT_LOCK_BACKEND``."""
    if settings.hit_lock_backend == "redis":
        return RedisTopicLock()
    return local_topic_lock


def get_last_week_hits_count(topic: Topic) -> list[int]:
    """Return the topic's daily views over the last week, oldest first."""
    return _week_window().padded(topic.week_hits or [])


def get_last_day_hits_count(topic: Topic) -> list[int]:
    """Return the topic's hourly views over the last day, oldest first."""
    return _day_window().padded(topic.day_hits or [])


class HitRecorder:
    """Records page views against a topic's rolling windows."""

    def __init__(
        self,
        session: Session,
        *,
        repo: TopicRepository | None = None,
        lock_factory: LockFactory | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self.session = session
        self.repo = repo or TopicRepository(session)
        self._lock = lock_factory or get_topic_lock()
        self.max_attempts = max(1, max_attempts or settings.hit_max_attempts)

    def record_hit(
        self,
        topic_id: int,
        num: int = 1,
        now: datetime | None = None,
    ) -> HitSnapshot:
        """Add ``num`` views to the topic at time ``now``.

        Both windows are advanced with the same ``now`` and the lifetime hit
        counter is incremented in the same write.

        Raises:
            TopicNotFoundError: If the topic does not exist.
            HitContentionError: If no consistent write succeeded in time.
            PersistenceError: If the database rejects the write.
        """
        now = as_utc(now) if now is not None else utcnow()

        with self._lock(topic_id):
            for attempt in range(1, self.max_attempts + 1):
                topic = self.repo.get_by_id(topic_id, fresh=True)
                if topic is None:
                    raise TopicNotFoundError(topic_id)

                version = topic.hits_version
                last_update = topic.last_hit_update_at
                if last_update is not None:
                    last_update = as_utc(last_update)

                week_hits = _week_window().advance(topic.week_hits or [], last_update, now, num)
                day_hits = _day_window().advance(topic.day_hits or [], last_update, now, num)

                if self.repo.compare_and_set_hits(
                    topic,
                    expected_version=version,
                    week_hits=week_hits,
                    day_hits=day_hits,
                    last_update=now,
                    num=num,
                ):
                    self.session.commit()
                    return HitSnapshot(
                        topic_id=topic_id,
                        hits=topic.hits,
                        week_hits=week_hits,
                        day_hits=day_hits,
                        last_hit_update_at=now,
                    )

                logger.debug(
                    "Hit state for topic %s changed concurrently (attempt %d/%d)",
                    topic_id,
                    attempt,
                    self.max_attempts,
                )
                self.session.rollback()

        raise HitContentionError(
            "store hit state",
            f"topic {topic_id} still contended after {self.max_attempts} attempts",
        )
