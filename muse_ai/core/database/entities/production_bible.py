"""
Production bible entity models.

A production bible document is a style or format guide uploaded by a user.
Rules are extracted from it by pattern matching, and each time a rule
touches generated content an application row records what happened.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Field, Text

from ..base import Base, utc_now


class ProductionBibleDocument(Base, table=True):
    """Entity for an uploaded production bible document.

    Table: muse_production_bible_documents
    """

    __tablename__ = "muse_production_bible_documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=128, index=True)
    story_project_id: Optional[int] = Field(default=None, foreign_key="muse_story_projects.id", index=True)

    name: str = Field(max_length=255)
    original_filename: str = Field(max_length=255)
    file_type: str = Field(max_length=16)
    file_size: int = Field(default=0)

    parsing_status: str = Field(default="pending", max_length=16)
    parsing_error: Optional[str] = Field(default=None, sa_type=Text)
    extracted_rules_count: int = Field(default=0)

    uploaded_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"ProductionBibleDocument(id={self.id}, name={self.name!r}, status={self.parsing_status})"


class ProductionBibleRule(Base, table=True):
    """Entity for a rule extracted from a production bible document.

    Table: muse_production_bible_rules
    """

    __tablename__ = "muse_production_bible_rules"

    id: Optional[int] = Field(default=None, primary_key=True)
    document_id: int = Field(foreign_key="muse_production_bible_documents.id", index=True)

    rule_type: str = Field(max_length=16, index=True)
    title: str = Field(max_length=255)
    description: str = Field(sa_type=Text)
    pattern: Optional[str] = Field(default=None, sa_type=Text)
    replacement: Optional[str] = Field(default=None, sa_type=Text)
    examples: List[str] = Field(default_factory=list, sa_type=JSON)
    conditions: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    action: str = Field(max_length=16)
    priority: str = Field(max_length=16)
    confidence: int = Field(default=70)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"ProductionBibleRule(id={self.id}, type={self.rule_type}, action={self.action})"


class ProductionBibleApplication(Base, table=True):
    """Entity recording one application of a rule to generated content.

    Table: muse_production_bible_applications
    """

    __tablename__ = "muse_production_bible_applications"

    id: Optional[int] = Field(default=None, primary_key=True)
    rule_id: int = Field(foreign_key="muse_production_bible_rules.id", index=True)
    transcript_id: Optional[int] = Field(default=None, foreign_key="muse_transcripts.id", index=True)
    phase: Optional[int] = Field(default=None)

    document_section: str = Field(max_length=64)
    original_text: str = Field(sa_type=Text)
    suggested_text: str = Field(sa_type=Text)
    confidence: int = Field(default=70)
    applied: bool = Field(default=False)
    reason: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"ProductionBibleApplication(id={self.id}, rule_id={self.rule_id}, applied={self.applied})"
