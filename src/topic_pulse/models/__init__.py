# src/topic_pulse/models/__init__.py
"""SQLAlchemy models for the Topic Pulse application."""

from .reply import Reply
from .score_job import ScoreJob
from .topic import Topic

__all__ = [
    "Reply",
    "ScoreJob",
    "Topic",
]
