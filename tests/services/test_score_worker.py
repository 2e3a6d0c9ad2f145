import asyncio
import logging

import pytest

from topic_pulse.core.errors import PersistenceError
from topic_pulse.core.settings import settings
from topic_pulse.models import ScoreJob
from topic_pulse.models.score_job import SCORE_JOB_DONE, SCORE_JOB_FAILED, SCORE_JOB_PENDING
from topic_pulse.services.reply_service import create_reply
from topic_pulse.services.score_update import ScoreUpdateService
from topic_pulse.services.score_worker import ScoreUpdateWorker


@pytest.fixture
def queued_replies(db_session, test_topic, now):
    create_reply(db_session, topic_id=test_topic.id, body="first", now=now)
    create_reply(db_session, topic_id=test_topic.id, body="second", now=now)
    return test_topic


def _statuses(db_session):
    db_session.expire_all()
    return [job.status for job in db_session.query(ScoreJob).order_by(ScoreJob.id)]


def test_process_pending_rescores_and_marks_done(db_session, queued_replies, now):
    worker = ScoreUpdateWorker(db_session=db_session, clock=lambda: now)

    assert worker.process_pending(db_session) == 2
    assert _statuses(db_session) == [SCORE_JOB_DONE, SCORE_JOB_DONE]

    db_session.refresh(queued_replies)
    # Two replies in the newest bucket of both windows.
    assert queued_replies.day_score == 3 * 2 * 24
    assert queued_replies.week_score == 3 * 2 * 7


def test_jobs_for_one_topic_are_coalesced(mocker, db_session, queued_replies):
    spy = mocker.spy(ScoreUpdateService, "update_for_topic")

    ScoreUpdateWorker(db_session=db_session).process_pending(db_session)

    assert spy.call_count == 1


def test_persistence_failure_is_retried_then_abandoned(
    mocker, monkeypatch, db_session, queued_replies
):
    monkeypatch.setattr(settings, "score_job_max_retries", 2)
    mocker.patch.object(
        ScoreUpdateService,
        "update_for_topic",
        side_effect=PersistenceError("store scores", "could not serialize access"),
    )
    worker = ScoreUpdateWorker(db_session=db_session)

    worker.process_pending(db_session)
    assert _statuses(db_session) == [SCORE_JOB_PENDING, SCORE_JOB_PENDING]
    job = db_session.query(ScoreJob).first()
    assert job.retry_count == 1
    assert "could not serialize access" in job.last_error

    worker.process_pending(db_session)
    assert _statuses(db_session) == [SCORE_JOB_FAILED, SCORE_JOB_FAILED]
    assert worker.process_pending(db_session) == 0


def test_jobs_for_deleted_topic_are_dropped(db_session, queued_replies):
    queued_replies.deleted = True
    db_session.commit()

    ScoreUpdateWorker(db_session=db_session).process_pending(db_session)

    assert _statuses(db_session) == [SCORE_JOB_DONE, SCORE_JOB_DONE]


@pytest.mark.asyncio
async def test_run_once_with_session(db_session, queued_replies):
    worker = ScoreUpdateWorker(db_session=db_session)

    assert await worker.run_once() == 2
    assert await worker.run_once() == 0


@pytest.mark.asyncio
async def test_run_once_uses_session_factory(db_session, session_factory, queued_replies):
    worker = ScoreUpdateWorker(session_factory=session_factory)

    assert await worker.run_once() == 2
    assert _statuses(db_session) == [SCORE_JOB_DONE, SCORE_JOB_DONE]


@pytest.mark.asyncio
async def test_start_and_stop(monkeypatch, db_session, queued_replies):
    monkeypatch.setattr(settings, "score_worker_poll_interval_seconds", 0.1)
    worker = ScoreUpdateWorker(db_session=db_session)

    await worker.start()
    await worker.stop()

    assert worker._task is None


def test_single_reply_job_is_scored_through_its_reply(mocker, db_session, test_topic, now):
    event = create_reply(db_session, topic_id=test_topic.id, body="only one", now=now)
    spy = mocker.spy(ScoreUpdateService, "update_for_reply")

    settled = ScoreUpdateWorker(db_session=db_session, clock=lambda: now).process_pending(
        db_session
    )

    assert settled == 1
    assert spy.call_count == 1
    assert spy.call_args.args[1] == event.reply_id
    db_session.refresh(test_topic)
    assert test_topic.day_score == 3 * 24


def test_jobs_left_for_retry_are_not_counted(mocker, db_session, queued_replies):
    mocker.patch.object(
        ScoreUpdateService,
        "update_for_topic",
        side_effect=PersistenceError("store scores", "database is locked"),
    )
    worker = ScoreUpdateWorker(db_session=db_session)

    assert worker.process_pending(db_session) == 0
    assert worker.retries_pending


@pytest.mark.asyncio
async def test_failed_jobs_wait_a_poll_interval_before_retrying(
    mocker, monkeypatch, db_session, queued_replies
):
    monkeypatch.setattr(settings, "score_worker_poll_interval_seconds", 1.0)
    update = mocker.patch.object(
        ScoreUpdateService,
        "update_for_topic",
        side_effect=PersistenceError("store scores", "database is locked"),
    )
    worker = ScoreUpdateWorker(db_session=db_session)

    await worker.start()
    await asyncio.sleep(0.3)
    await worker.stop()

    assert update.call_count == 1
    assert _statuses(db_session) == [SCORE_JOB_PENDING, SCORE_JOB_PENDING]
    assert db_session.query(ScoreJob).first().retry_count == 1


@pytest.mark.asyncio
async def test_data_errors_are_logged_and_loop_survives(
    mocker, monkeypatch, caplog, db_session, queued_replies
):
    monkeypatch.setattr(settings, "score_worker_poll_interval_seconds", 0.1)
    mocker.patch.object(
        ScoreUpdateService, "update_for_topic", side_effect=ValueError("bad window payload")
    )
    worker = ScoreUpdateWorker(db_session=db_session)

    with caplog.at_level(logging.ERROR, logger="topic_pulse.services.score_worker"):
        await worker.start()
        await asyncio.sleep(0.05)
        assert not worker._task.done()
        await worker.stop()

    assert "data processing error" in caplog.text
    assert "bad window payload" in caplog.text
    assert worker._task is None
