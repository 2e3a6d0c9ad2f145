"""Pydantic schemas for events and topic state."""

from .events import HitRecorded, ReplyCommitted
from .topic import HitSnapshot, RankedTopic, TopicScores

__all__ = [
    "HitRecorded",
    "HitSnapshot",
    "RankedTopic",
    "ReplyCommitted",
    "TopicScores",
]
