"""Event payloads exchanged with the surrounding forum application."""

from pydantic import BaseModel, Field


class ReplyCommitted(BaseModel):
    """Published once a reply has been durably stored."""

    reply_id: int = Field(..., description="Identifier of the new reply")
    topic_id: int = Field(..., description="Topic the reply belongs to")


class HitRecorded(BaseModel):
    """A page view of a topic."""

    topic_id: int = Field(..., description="Viewed topic")
    num: int = Field(1, ge=0, description="Number of views to add")
