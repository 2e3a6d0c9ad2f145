# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from topic_pulse.core.settings import Settings
from topic_pulse.db.session import Base
from topic_pulse.models import Reply, Topic

TEST_DB_URL = "sqlite://"

_TOPIC_TITLE_COUNTER = count(1)
_TEST_SETTINGS_INSTANCE = Settings()


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session(engine: Engine, session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

        # Services commit, so each test cleans every table afterwards.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def now() -> datetime:
    """A fixed reference time in the middle of an hour."""
    return datetime(2026, 3, 10, 12, 30, tzinfo=UTC)


@pytest.fixture()
def make_topic(db_session: Session) -> Callable[..., Topic]:
    """Return a factory persisting topics directly, bypassing the job outbox."""

    def _make_topic(**fields: object) -> Topic:
        fields.setdefault("title", f"Topic {next(_TOPIC_TITLE_COUNTER)}")
        topic = Topic(**fields)
        db_session.add(topic)
        db_session.commit()
        db_session.refresh(topic)
        return topic

    return _make_topic


@pytest.fixture()
def test_topic(make_topic: Callable[..., Topic]) -> Topic:
    """Create a baseline topic for tests."""
    return make_topic(title="Which ORM do you use?")


@pytest.fixture()
def make_reply(db_session: Session) -> Callable[..., Reply]:
    """Return a factory persisting replies with an explicit creation time."""

    def _make_reply(topic: Topic, created_at: datetime, **fields: object) -> Reply:
        fields.setdefault("body", "+1")
        reply = Reply(topic_id=topic.id, created_at=created_at, **fields)
        db_session.add(reply)
        db_session.commit()
        db_session.refresh(reply)
        return reply

    return _make_reply
