"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation.
These schemas define the interface contract between the client and the server.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from muse_ai.core.schemas import BaseSchema
from muse_ai.paywall.gate import UserProfile
from muse_ai.paywall.tiers import PaywallTrigger, UsageLimits
from muse_ai.production_bible import DocumentContent
from muse_ai.story.document import DocumentFormat
from muse_ai.story.phases import TranscriptAnalysis


class TranscriptProcess(BaseSchema):
    """
    Schema for submitting a new transcript.

    The transcript is stored and analyzed in one call.
    """

    title: str = Field(..., min_length=1, max_length=255, examples=["Interview with the lighthouse keeper"])
    content: str = Field(..., min_length=1, description="Full transcript text.")
    source_type: str = Field(
        default="other",
        description="Where the transcript came from.",
        examples=["interview", "podcast", "meeting", "other"],
    )
    project_id: Optional[int] = Field(
        default=None,
        description="Story project to add the transcript to. Defaults to the caller's latest project.",
    )


class TranscriptProcessed(BaseModel):
    transcript_id: int
    project_id: int
    word_count: int
    analysis: TranscriptAnalysis


class SceneGenerate(BaseSchema):
    """Optional guidance for scene generation."""

    genre_focus: Optional[str] = Field(default=None, examples=["psychological thriller"])
    emotional_core: Optional[str] = Field(default=None, examples=["grief turning into resolve"])


class PhaseRead(BaseModel):
    phase: int
    data: Optional[Dict[str, Any]] = None


class ChangeDetect(BaseSchema):
    """Two versions of a phase payload to compare."""

    phase: int = Field(..., ge=1, le=4)
    old_data: Any = Field(default=None, alias="oldData")
    new_data: Any = Field(default=None, alias="newData")


class ChangeUndone(BaseModel):
    change_id: int
    restored_value: Any = None


class RippleUpdate(BaseSchema):
    """
    Schema for applying a phase edit through the ripple engine.

    Downstream phases are regenerated immediately rather than queued for review.
    """

    phase: int = Field(..., ge=1, le=4)
    content: Dict[str, Any] = Field(..., description="Fields to merge into the phase payload.")
    skip_ripple: bool = Field(default=False, alias="skipRippleUpdate")
    reason: Optional[str] = None
    export_format: DocumentFormat = Field(default=DocumentFormat.outline, alias="exportFormat")

    @field_validator("export_format")
    @classmethod
    def _rendered_format(cls, value: DocumentFormat) -> DocumentFormat:
        if value == DocumentFormat.json:
            raise ValueError("exportFormat must be a rendered format")
        return value


class BibleRuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    rule_type: str
    title: str
    description: str
    pattern: Optional[str] = None
    replacement: Optional[str] = None
    examples: List[str] = Field(default_factory=list)
    action: str
    priority: str
    confidence: int
    is_active: bool


class BibleDocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    original_filename: str
    file_type: str
    file_size: int
    story_project_id: Optional[int] = None
    parsing_status: str
    parsing_error: Optional[str] = None
    extracted_rules_count: int
    uploaded_at: datetime
    rules: List[BibleRuleRead] = Field(default_factory=list)


class BibleValidate(BaseSchema):
    transcript_id: int = Field(..., alias="transcriptId")
    content: DocumentContent
    apply_rules: bool = Field(default=False, alias="applyRules")
    save_applications: bool = Field(default=False, alias="saveApplications")


class ProfileRead(BaseModel):
    profile: UserProfile
    features: Dict[str, bool]
    usage: UsageLimits


class FeatureAccessRead(BaseModel):
    feature: str
    allowed: bool
    trigger: Optional[PaywallTrigger] = None
