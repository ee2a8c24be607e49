"""
Living Story change entity models.

Every edit the user makes to a phase, every regenerated downstream phase and
every undo is one row in an append-only log keyed by transcript. Rows are
never rewritten except for the status transition of a pending change
(``pending`` to ``accepted`` or ``rejected``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON
from sqlmodel import Field, Text

from ..base import Base, utc_now


class StoryChangeRecord(Base, table=True):
    """Entity for one Living Story change.

    Table: muse_story_changes
    """

    __tablename__ = "muse_story_changes"

    id: Optional[int] = Field(default=None, primary_key=True)
    transcript_id: int = Field(foreign_key="muse_transcripts.id", index=True)
    user_id: str = Field(max_length=128)

    phase: int = Field(ge=1, le=4)
    change_type: str = Field(max_length=16, index=True)
    field: str = Field(max_length=255)
    old_value: Optional[Any] = Field(default=None, sa_type=JSON)
    new_value: Optional[Any] = Field(default=None, sa_type=JSON)
    reason: str = Field(default="", sa_type=Text)
    affected_phases: List[int] = Field(default_factory=list, sa_type=JSON)

    status: str = Field(max_length=16, index=True)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    decided_at: Optional[datetime] = Field(default=None)

    def __repr__(self) -> str:
        return (
            f"StoryChangeRecord(id={self.id}, transcript_id={self.transcript_id}, "
            f"phase={self.phase}, type={self.change_type}, status={self.status})"
        )
