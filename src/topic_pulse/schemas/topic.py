"""Topic score and hit-state schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TopicScores(BaseModel):
    """Freshly computed popularity scores for a topic."""

    topic_id: int
    day_score: int
    week_score: int

    model_config = ConfigDict(from_attributes=True)


class HitSnapshot(BaseModel):
    """Rolling hit state of a topic after a hit was recorded."""

    topic_id: int
    hits: int
    week_hits: list[int] = Field(default_factory=list)
    day_hits: list[int] = Field(default_factory=list)
    last_hit_update_at: datetime | None = None


class RankedTopic(BaseModel):
    """Topic entry returned by the ranking queries."""

    id: int
    title: str
    day_score: int
    week_score: int
    replies_count: int
    hits: int

    model_config = ConfigDict(from_attributes=True)
