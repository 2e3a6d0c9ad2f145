"""Background recomputation of topic scores.

This module provides the ScoreUpdateWorker class that drains the ``score_job``
outbox written alongside new replies and topics, recomputing the affected
topics' scores outside the request that created them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from itertools import groupby

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topic_pulse.core.errors import PersistenceError
from topic_pulse.core.settings import settings
from topic_pulse.db.session import SessionLocal
from topic_pulse.db.time import utcnow
from topic_pulse.models import ScoreJob
from topic_pulse.models.score_job import SCORE_JOB_DONE, SCORE_JOB_FAILED, SCORE_JOB_PENDING
from topic_pulse.services.score_update import ScoreUpdateService

# Configure logger for this module
logger = logging.getLogger(__name__)


class ScoreUpdateWorker:
    """Periodically recomputes scores for topics with pending jobs.

    Jobs for the same topic found in one batch are coalesced into a single
    recomputation, since every recomputation reads the full current state.
    A job whose recomputation hits a persistence failure stays pending and
    is retried on a later pass, at least one poll interval later, until
    ``score_job_max_retries`` is reached. A batch holding a single reply job
    for a topic goes through ``update_for_reply``.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        db_session: Session | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the score worker.

        Args:
            session_factory: Factory for per-pass sessions. Defaults to SessionLocal.
            db_session: Optional database session used for every pass instead.
            clock: Source of the reference time for each pass. Defaults to utcnow.
        """
        self._session_factory = session_factory or SessionLocal
        self._clock = clock or utcnow
        self._db_session = db_session
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._retries_pending = False

    @property
    def retries_pending(self) -> bool:
        """Whether the last pass left failed jobs pending for a later retry."""
        return self._retries_pending

    async def start(self) -> None:
        """Start the background processing loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background processing loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        interval = max(0.1, float(settings.score_worker_poll_interval_seconds))

        while not self._stopping.is_set():
            try:
                processed = await self.run_once()
            except SQLAlchemyError as e:
                logger.error("ScoreUpdateWorker encountered database error: %s", e, exc_info=True)
                await asyncio.sleep(min(interval * 4, 30.0))
                continue
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(
                    "ScoreUpdateWorker encountered data processing error: %s", e, exc_info=True
                )
                await asyncio.sleep(min(interval * 4, 30.0))
                continue

            if processed and not self.retries_pending:
                # More work may be queued; poll again right away.
                continue
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def run_once(self) -> int:
        """Process one batch of pending jobs and return how many were handled."""
        if self._db_session is not None:
            return self.process_pending(self._db_session)
        return await asyncio.to_thread(self._process_with_new_session)

    def _process_with_new_session(self) -> int:
        with self._session_factory() as db:
            return self.process_pending(db)

    def process_pending(self, db: Session) -> int:
        """Recompute scores for one batch of pending jobs using ``db``.

        Returns the number of jobs settled in this pass, either ``done`` or
        permanently ``failed``. Jobs left pending for a retry are not counted,
        and set ``retries_pending`` so the loop waits a full interval before
        the next attempt.
        """
        self._retries_pending = False
        jobs = (
            db.query(ScoreJob)
            .filter(ScoreJob.status == SCORE_JOB_PENDING)
            .order_by(ScoreJob.topic_id, ScoreJob.id)
            .limit(settings.score_worker_batch_size)
            .all()
        )
        logger.debug("Found %d pending score jobs", len(jobs))

        service = ScoreUpdateService(db)
        now = self._clock()
        settled = 0
        for topic_id, group in groupby(jobs, key=lambda job: job.topic_id):
            topic_jobs = list(group)
            try:
                if len(topic_jobs) == 1 and topic_jobs[0].reply_id is not None:
                    scores = service.update_for_reply(
                        topic_jobs[0].reply_id, topic_id=topic_id, now=now
                    )
                else:
                    scores = service.update_for_topic(topic_id, now)
            except PersistenceError as e:
                settled += self._record_failure(topic_jobs, str(e))
            else:
                if scores is None:
                    logger.debug("Topic %s vanished before rescoring; dropping jobs", topic_id)
                for job in topic_jobs:
                    job.status = SCORE_JOB_DONE
                    job.last_error = None
                settled += len(topic_jobs)
            db.commit()

        return settled

    def _record_failure(self, jobs: list[ScoreJob], error: str) -> int:
        """Bump retry bookkeeping and return how many jobs were abandoned."""
        abandoned = 0
        for job in jobs:
            job.retry_count += 1
            job.last_error = error
            if job.retry_count >= settings.score_job_max_retries:
                job.status = SCORE_JOB_FAILED
                abandoned += 1
                logger.error(
                    "Score job %s for topic %s failed permanently after %d attempts: %s",
                    job.id,
                    job.topic_id,
                    job.retry_count,
                    error,
                )
            else:
                self._retries_pending = True
                logger.warning(
                    "Score job %s for topic %s failed (attempt %d): %s",
                    job.id,
                    job.topic_id,
                    job.retry_count,
                    error,
                )
        return abandoned
