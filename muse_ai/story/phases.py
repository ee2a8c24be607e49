"""Story phase models.

Each phase payload is stored as JSON in the transcript metadata under the
key given by ``PHASE_METADATA_KEYS``. The models below are the validation
schema for those payloads and the structured output types of the story
generator.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field

from muse_ai.core.errors import InvalidPhaseError
from muse_ai.core.schemas import BaseSchema


class Phase(IntEnum):
    SUMMARY = 1
    SCENES = 2
    BEATS = 3
    EXPORT = 4


PHASE_METADATA_KEYS: Dict[Phase, str] = {
    Phase.SUMMARY: "story_summary",
    Phase.SCENES: "scene_structure",
    Phase.BEATS: "scene_beats",
    Phase.EXPORT: "story_document",
}

ANALYSIS_METADATA_KEY = "analysis"


def to_phase(value: Any) -> Phase:
    """Coerce ``value`` to a ``Phase``, raising ``InvalidPhaseError`` otherwise."""
    try:
        return Phase(int(value))
    except (TypeError, ValueError):
        raise InvalidPhaseError(value) from None


class MomentType(str, Enum):
    conflict = "conflict"
    revelation = "revelation"
    tension = "tension"
    character_development = "character_development"
    plot_point = "plot_point"
    theme = "theme"


class ConflictType(str, Enum):
    internal = "internal"
    interpersonal = "interpersonal"
    external = "external"
    societal = "societal"


class Pacing(str, Enum):
    slow = "slow"
    medium = "medium"
    fast = "fast"


class DurationEstimate(str, Enum):
    short = "short"
    medium = "medium"
    long = "long"


class ProductionComplexity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


# ---------------------------------------------------------------------------
# Transcript analysis
# ---------------------------------------------------------------------------


class StoryMoment(BaseSchema):
    type: MomentType
    text: str = Field(description="The exact or paraphrased text of the moment")
    context: str = Field(description="Why this moment matters for the story")
    intensity: int = Field(ge=1, le=10, description="Dramatic intensity (1-10)")
    characters: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class AnalysisSummary(BaseSchema):
    main_themes: List[str] = Field(default_factory=list)
    key_characters: List[str] = Field(default_factory=list)
    story_potential: int = Field(ge=1, le=10)
    genre_indicators: List[str] = Field(default_factory=list)
    emotional_arc: str


class TranscriptAnalysis(BaseSchema):
    moments: List[StoryMoment] = Field(default_factory=list)
    summary: AnalysisSummary


# ---------------------------------------------------------------------------
# Phase 1: story summary
# ---------------------------------------------------------------------------


class SummaryOption(BaseSchema):
    version: str = Field(description="Option label (A-E)")
    summary: str = Field(description="One-sentence story summary")
    genre_focus: str
    emotional_core: str
    hook_strength: int = Field(ge=1, le=10)
    reasoning: str


class SummaryRecommendation(BaseSchema):
    preferred_version: str
    rationale: str


class StorySummaryOptions(BaseSchema):
    summaries: List[SummaryOption] = Field(min_length=5, max_length=5)
    recommendation: SummaryRecommendation


class StorySummary(BaseSchema):
    """The saved phase 1 payload, the "story DNA" every later phase builds on."""

    summary: str = Field(min_length=1)
    version: str = "custom"
    theme: Optional[str] = None
    genre_indicators: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    user_notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Phase 2: scene structure
# ---------------------------------------------------------------------------


class Scene(BaseSchema):
    scene_number: int = Field(ge=1)
    title: str
    summary: str
    purpose: str
    stakes: str
    character_arc: str
    conflict_type: ConflictType
    emotional_beat: str
    forward_movement: str
    key_moments: List[str] = Field(default_factory=list)
    tension_level: int = Field(ge=1, le=10)
    pacing: Pacing


class ArcAnalysis(BaseSchema):
    overall_progression: str
    escalation_pattern: str
    resolution_approach: str
    cohesion_strength: int = Field(ge=1, le=10)
    structural_notes: List[str] = Field(default_factory=list)


class ThematicAnalysis(BaseSchema):
    central_theme: str
    thematic_progression: List[str]
    resolution: str


class SceneStructure(BaseSchema):
    scenes: List[Scene]
    arc_analysis: ArcAnalysis
    thematic_analysis: Optional[ThematicAnalysis] = None
    user_notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Phase 3: beat breakdown
# ---------------------------------------------------------------------------


class Beat(BaseSchema):
    beat_number: int = Field(ge=1)
    beat_title: str
    action_description: str
    dialogue_notes: Optional[str] = None
    character_focus: List[str] = Field(default_factory=list)
    character_states: Dict[str, str] = Field(default_factory=dict)
    tension_moment: str
    story_function: str
    production_notes: str
    duration_estimate: DurationEstimate
    transition_to_next: str
    visual_elements: List[str] = Field(default_factory=list)


class SceneBreakdown(BaseSchema):
    scene_number: int = Field(ge=1)
    scene_title: str
    total_beats: int = Field(ge=1)
    beats: List[Beat]


class CharacterArc(BaseSchema):
    starting_state: str
    progression: List[str] = Field(default_factory=list)
    ending_state: str
    key_moments: List[str] = Field(default_factory=list)


class CharacterTracking(BaseSchema):
    main_characters: List[str] = Field(default_factory=list)
    character_arcs: Dict[str, CharacterArc] = Field(default_factory=dict)
    consistency_notes: List[str] = Field(default_factory=list)


class ProductionSummary(BaseSchema):
    total_beats: int = Field(ge=0)
    estimated_runtime: str
    key_locations: List[str] = Field(default_factory=list)
    production_complexity: ProductionComplexity
    budget_considerations: List[str] = Field(default_factory=list)
    scheduling_notes: List[str] = Field(default_factory=list)


class SceneBeats(BaseSchema):
    scene_breakdowns: List[SceneBreakdown]
    character_tracking: CharacterTracking
    production_summary: ProductionSummary
    user_notes: Optional[str] = None


_PHASE_MODELS: Dict[Phase, Type[BaseModel]] = {
    Phase.SUMMARY: StorySummary,
    Phase.SCENES: SceneStructure,
    Phase.BEATS: SceneBeats,
}


def phase_model(phase: Phase) -> Type[BaseModel]:
    """Schema of a stored phase payload.

    Phase 4 is generated from the other phases and is not edited directly.
    """
    if phase not in _PHASE_MODELS:
        raise InvalidPhaseError(phase, f"Phase {int(phase)} payloads are generated, not edited")
    return _PHASE_MODELS[phase]


def validate_phase_payload(phase: Phase, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate ``payload`` against the phase schema and return it as plain JSON."""
    model = phase_model(phase)
    return model.model_validate(payload).model_dump(mode="json")


class StoryData(BaseModel):
    """The phase payloads of one transcript, keyed the way the ripple engine reads them."""

    phase1: Optional[Dict[str, Any]] = None
    phase2: Optional[Dict[str, Any]] = None
    phase3: Optional[Dict[str, Any]] = None
    phase4: Optional[Dict[str, Any]] = None

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> "StoryData":
        metadata = metadata or {}
        return cls(**{f"phase{int(p)}": metadata.get(key) for p, key in PHASE_METADATA_KEYS.items()})

    def get(self, phase: Phase) -> Optional[Dict[str, Any]]:
        return getattr(self, f"phase{int(phase)}")

    def set(self, phase: Phase, value: Optional[Dict[str, Any]]) -> None:
        setattr(self, f"phase{int(phase)}", value)
