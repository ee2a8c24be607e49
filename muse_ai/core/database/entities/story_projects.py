"""
Story project entity models.

A story project groups transcripts and production bible documents for a
single user. Ownership checks on transcripts go through the project.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, utc_now


class StoryProject(Base, table=True):
    """Entity for a user's story project.

    Table: muse_story_projects
    """

    __tablename__ = "muse_story_projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=128, index=True)

    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    status: str = Field(default="active", max_length=32)
    genre: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"StoryProject(id={self.id}, user_id={self.user_id}, title={self.title!r})"
