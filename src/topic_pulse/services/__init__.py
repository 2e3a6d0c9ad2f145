"""Business logic services for topic scoring and hit tracking."""

from .hits import HitRecorder
from .score_update import ScoreUpdateService
from .score_worker import ScoreUpdateWorker

__all__ = [
    "HitRecorder",
    "ScoreUpdateService",
    "ScoreUpdateWorker",
]
