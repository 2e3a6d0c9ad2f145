"""Data access helpers."""

from .topic_repo import TopicRepository

__all__ = ["TopicRepository"]
