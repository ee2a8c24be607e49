"""Static dependency table between story phases.

A dependency says which fields of a source phase feed a target phase, how
the target is refreshed when they change, and how urgent that refresh is.
Low priority dependencies are not regenerated automatically.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel

from .phases import Phase


class UpdateType(str, Enum):
    full_regeneration = "full_regeneration"
    intelligent_merge = "intelligent_merge"
    field_specific = "field_specific"


class UpdatePriority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class PhaseDependency(BaseModel):
    model_config = {"frozen": True}

    source_phase: Phase
    target_phase: Phase
    fields: Tuple[str, ...]
    update_type: UpdateType
    priority: UpdatePriority


PHASE_DEPENDENCIES: Tuple[PhaseDependency, ...] = (
    PhaseDependency(
        source_phase=Phase.SUMMARY,
        target_phase=Phase.SCENES,
        fields=("summary", "theme", "genre_indicators"),
        update_type=UpdateType.intelligent_merge,
        priority=UpdatePriority.high,
    ),
    PhaseDependency(
        source_phase=Phase.SUMMARY,
        target_phase=Phase.BEATS,
        fields=("summary", "theme"),
        update_type=UpdateType.intelligent_merge,
        priority=UpdatePriority.medium,
    ),
    PhaseDependency(
        source_phase=Phase.SUMMARY,
        target_phase=Phase.EXPORT,
        fields=("summary",),
        update_type=UpdateType.field_specific,
        priority=UpdatePriority.low,
    ),
    PhaseDependency(
        source_phase=Phase.SCENES,
        target_phase=Phase.BEATS,
        fields=("scenes", "arc_analysis", "thematic_analysis"),
        update_type=UpdateType.intelligent_merge,
        priority=UpdatePriority.high,
    ),
    PhaseDependency(
        source_phase=Phase.SCENES,
        target_phase=Phase.EXPORT,
        fields=("scenes", "arc_analysis"),
        update_type=UpdateType.field_specific,
        priority=UpdatePriority.low,
    ),
    PhaseDependency(
        source_phase=Phase.BEATS,
        target_phase=Phase.EXPORT,
        fields=("scene_breakdowns", "character_tracking", "production_summary"),
        update_type=UpdateType.field_specific,
        priority=UpdatePriority.low,
    ),
)


def get_dependencies(source: Phase) -> List[PhaseDependency]:
    return [dep for dep in PHASE_DEPENDENCIES if dep.source_phase == source]


def get_affected_phases(source: Phase) -> List[Phase]:
    """Phases downstream of ``source``, in table order."""
    return [dep.target_phase for dep in get_dependencies(source)]


def risk_level(source: Phase) -> RiskLevel:
    """How disruptive a change in ``source`` is to the rest of the story."""
    if source == Phase.SUMMARY:
        return RiskLevel.high
    if source == Phase.SCENES:
        return RiskLevel.medium
    return RiskLevel.low
