"""Structural checks for saved phases.

Both validators return a report of blocking issues, soft warnings and
strengths with a score out of 10. They never raise on weak content; an
unusable payload is rejected earlier by the phase schema.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .phases import SceneBeats, SceneStructure


class ValidationReport(BaseModel):
    overall_score: float
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)


class SceneValidation(ValidationReport):
    is_structurally_sound: bool
    needs_revision: bool


class BeatValidation(ValidationReport):
    is_production_ready: bool
    needs_revision: bool
    beat_count: int
    character_consistency: bool


def _score(issues: List[str], warnings: List[str]) -> float:
    return max(0.0, 10 - len(issues) * 2 - len(warnings) * 0.5)


def validate_scene_coherence(structure: SceneStructure) -> SceneValidation:
    """Check a four scene structure for escalation, stakes and variety."""
    scenes = structure.scenes
    issues: List[str] = []
    warnings: List[str] = []
    strengths: List[str] = []

    if len(scenes) != 4:
        issues.append(f"Expected 4 scenes, found {len(scenes)}")

    if scenes:
        tension_levels = [s.tension_level for s in scenes]
        peak = max(tension_levels)
        if tension_levels.index(peak) < 2:
            warnings.append("Peak tension occurs early - consider building more tension toward scene 3")
        if peak < 7:
            warnings.append("Peak tension seems low - ensure crisis scene has sufficient intensity")

    for index, scene in enumerate(scenes, start=1):
        if len(scene.stakes) < 10:
            issues.append(f"Scene {index} lacks clear stakes")
        if len(scene.forward_movement) < 10:
            issues.append(f"Scene {index} lacks clear forward movement")

    if len({s.pacing for s in scenes}) == 1:
        warnings.append("All scenes have same pacing - consider varying rhythm for engagement")
    elif scenes:
        strengths.append("Good pacing variation across scenes")

    if len({s.conflict_type for s in scenes}) > 2:
        strengths.append("Good variety in conflict types")

    cohesion = structure.arc_analysis.cohesion_strength
    if cohesion >= 8:
        strengths.append("Strong structural cohesion")
    elif cohesion < 6:
        warnings.append("Scene cohesion may need strengthening")

    if scenes and all(len(s.character_arc) > 10 for s in scenes):
        strengths.append("Clear character development in each scene")
    else:
        warnings.append("Some scenes lack clear character development")

    return SceneValidation(
        overall_score=_score(issues, warnings),
        issues=issues,
        warnings=warnings,
        strengths=strengths,
        is_structurally_sound=not issues,
        needs_revision=bool(issues) or len(warnings) > 2,
    )


def validate_beat_breakdown(beats: SceneBeats) -> BeatValidation:
    """Check a beat breakdown for production readiness."""
    breakdowns = beats.scene_breakdowns
    issues: List[str] = []
    warnings: List[str] = []
    strengths: List[str] = []

    total_beats = sum(b.total_beats for b in breakdowns)
    if total_beats < 12:
        warnings.append("Low beat count - consider adding more detail for production")
    elif total_beats > 32:
        warnings.append("High beat count - may be too detailed for efficient production")
    else:
        strengths.append("Good beat count for production planning")

    for scene in breakdowns:
        last = len(scene.beats) - 1
        for index, beat in enumerate(scene.beats):
            where = f"Scene {scene.scene_number}, Beat {beat.beat_number}"
            if not beat.character_focus:
                issues.append(f"{where}: Missing character focus")
            if len(beat.story_function) < 10:
                issues.append(f"{where}: Unclear story function")
            if len(beat.production_notes) < 10:
                warnings.append(f"{where}: Limited production notes")
            if index < last and len(beat.transition_to_next) < 5:
                warnings.append(f"{where}: Weak transition to next beat")

    tracked = list(beats.character_tracking.character_arcs)
    if not tracked:
        issues.append("No character arcs are being tracked")
    else:
        strengths.append(f"Tracking {len(tracked)} character arc(s)")

    for scene in breakdowns:
        if all(len(beat.tension_moment) < 10 for beat in scene.beats):
            warnings.append(f"Scene {scene.scene_number}: Tension moments may need more detail")

    if all(beat.visual_elements for scene in breakdowns for beat in scene.beats):
        strengths.append("All beats include visual elements for production")
    else:
        warnings.append("Some beats are missing visual elements")

    return BeatValidation(
        overall_score=_score(issues, warnings),
        issues=issues,
        warnings=warnings,
        strengths=strengths,
        is_production_ready=not issues and len(warnings) < 3,
        needs_revision=bool(issues) or len(warnings) > 5,
        beat_count=total_beats,
        character_consistency=not any("character" in issue for issue in issues),
    )
