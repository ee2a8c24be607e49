"""
Transcript entity models.

Transcripts are the raw material of a story. Every phase the user saves is
stored in the transcript's ``story_metadata`` JSON column under the key for
that phase (``story_summary``, ``scene_structure``, ``scene_beats``,
``story_document``) next to the transcript ``analysis``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlmodel import Field, Text

from ..base import Base, utc_now


class Transcript(Base, table=True):
    """Entity for an uploaded transcript.

    Table: muse_transcripts
    """

    __tablename__ = "muse_transcripts"

    id: Optional[int] = Field(default=None, primary_key=True)
    story_project_id: Optional[int] = Field(default=None, foreign_key="muse_story_projects.id", index=True)

    title: str = Field(max_length=255)
    content: str = Field(sa_type=Text)
    source_type: str = Field(default="other", max_length=32)
    word_count: int = Field(default=0)

    story_metadata: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Transcript(id={self.id}, project={self.story_project_id}, title={self.title!r})"
