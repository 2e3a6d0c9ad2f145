"""Exception hierarchy for the scoring subsystem."""

from __future__ import annotations


class TopicPulseError(Exception):
    """Base error for topic scoring and hit tracking."""


class TopicNotFoundError(TopicPulseError):
    """Raised when a hit is recorded against a topic that does not exist."""

    def __init__(self, topic_id: int) -> None:
        super().__init__(f"Topic {topic_id} not found")
        self.topic_id = topic_id


class PersistenceError(TopicPulseError):
    """Raised when the storage layer fails to read or write topic state."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation


class HitContentionError(PersistenceError):
    """Raised when concurrent writers keep invalidating a hit update."""
