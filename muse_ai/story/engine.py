"""Living Story ripple engine.

``LivingStoryEngine`` applies an edit to one phase and immediately
regenerates the phases downstream of it, without an approval step. Each
update keeps a snapshot of the previous story so it can be rolled back on
failure or undone later. Narrative consistency across phases is checked
after every update.

Ripple rules::

    phase 1 -> regenerate scenes, beats and export
    phase 2 -> merge regenerated beats (if any exist) and refresh the export
    phase 3 -> refresh the export
    phase 4 -> no ripple

The engine holds state only for the lifetime of one instance; callers that
need persistence write ``get_story_data()`` back to the transcript.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from muse_ai.core.logging_config import get_logger

from .document import DocumentFormat, build_story_document, render_document
from .generator import StoryGenerator
from .phases import (
    Phase,
    SceneBeats,
    SceneStructure,
    StoryData,
    StoryMoment,
    StorySummary,
    phase_model,
)

logger = get_logger(__name__)


class IssueType(str, Enum):
    character_inconsistency = "character_inconsistency"
    plot_hole = "plot_hole"
    timeline_conflict = "timeline_conflict"
    emotional_disconnect = "emotional_disconnect"


class IssueSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ConsistencyIssue(BaseModel):
    id: str = Field(default_factory=lambda: f"issue_{uuid4().hex[:12]}")
    type: IssueType
    severity: IssueSeverity
    description: str
    affected_phases: List[int]
    suggested_fix: Optional[str] = None


class UpdateOperation(BaseModel):
    id: str
    timestamp: datetime
    source_phase: int
    affected_phases: List[int]
    changes: Dict[str, Any]
    previous_state: Dict[str, Any]
    reason: str


class UpdateResult(BaseModel):
    success: bool
    affected_phases: List[int]
    changes: Dict[str, Any] = Field(default_factory=dict)
    consistency_issues: List[ConsistencyIssue] = Field(default_factory=list)
    update_id: str
    error: Optional[str] = None


EXPORT_FORMATS = (
    DocumentFormat.beat_sheet,
    DocumentFormat.screenplay,
    DocumentFormat.treatment,
    DocumentFormat.outline,
)


class LivingStoryEngine:
    """Apply phase edits with ripple regeneration of dependent phases."""

    def __init__(
        self,
        story: StoryData,
        generator: StoryGenerator,
        *,
        title: str = "",
        moments: Optional[List[StoryMoment]] = None,
        analysis: Optional[Dict[str, Any]] = None,
        export_format: DocumentFormat = DocumentFormat.outline,
        max_history: int = 50,
    ) -> None:
        if export_format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {export_format}")
        self._story = story.model_copy(deep=True)
        self._generator = generator
        self._title = title
        self._moments = list(moments or [])
        self._analysis = analysis
        self._export_format = export_format
        self._max_history = max_history
        self._history: List[UpdateOperation] = []
        self._issues: List[ConsistencyIssue] = []

    async def update_phase(
        self,
        phase: Phase,
        content: Dict[str, Any],
        *,
        skip_ripple: bool = False,
        reason: Optional[str] = None,
    ) -> UpdateResult:
        """Merge ``content`` into a phase and ripple the change downstream.

        On any failure the story is restored to its state before the call
        and ``success`` is False.
        """
        update_id = f"update_{uuid4().hex[:12]}"
        previous = self._story.model_copy(deep=True)

        try:
            self._merge(phase, content)
            affected = [int(phase)]
            changes: Dict[str, Any] = {}
            if not skip_ripple:
                affected, changes = await self._ripple(phase, previous)

            issues = self.check_consistency()
            self._record(
                UpdateOperation(
                    id=update_id,
                    timestamp=datetime.now(timezone.utc),
                    source_phase=int(phase),
                    affected_phases=affected,
                    changes=changes,
                    previous_state=previous.model_dump(),
                    reason=reason or f"Phase {int(phase)} updated",
                )
            )
            logger.debug(f"Update {update_id} on phase {int(phase)} affected phases {affected}")
            return UpdateResult(
                success=True,
                affected_phases=affected,
                changes=changes,
                consistency_issues=issues,
                update_id=update_id,
            )
        except Exception as e:
            logger.error(f"Error updating phase {int(phase)}: {e}", exc_info=True)
            self._story = previous
            return UpdateResult(success=False, affected_phases=[int(phase)], update_id=update_id, error=str(e))

    def _merge(self, phase: Phase, content: Dict[str, Any]) -> None:
        merged = {**(self._story.get(phase) or {}), **content}
        if phase != Phase.EXPORT:
            merged = phase_model(phase).model_validate(merged).model_dump(mode="json")
        self._story.set(phase, merged)

    async def _ripple(self, phase: Phase, previous: StoryData) -> tuple[List[int], Dict[str, Any]]:
        affected = [int(phase)]
        changes: Dict[str, Any] = {}

        if phase == Phase.SUMMARY:
            summary = StorySummary.model_validate(self._story.phase1)
            structure = await self._generator.generate_scenes(
                story_dna=summary.summary, moments=self._moments, title=self._title
            )
            beats = await self._generator.generate_beats(
                story_dna=summary.summary, structure=structure, title=self._title
            )
            self._story.phase2 = structure.model_dump(mode="json")
            self._story.phase3 = beats.model_dump(mode="json")
            self._refresh_export()
            affected += [2, 3, 4]
            changes.update(
                phase2_scenes_regenerated=True,
                phase3_breakdowns_updated=True,
                phase4_format_refreshed=True,
            )

        elif phase == Phase.SCENES:
            if self._story.phase3:
                await self._update_beats_from_scenes(previous)
                affected.append(3)
                changes["phase3_breakdowns_updated"] = True
            self._refresh_export()
            affected.append(4)
            changes["phase4_format_refreshed"] = True

        elif phase == Phase.BEATS:
            self._refresh_export()
            affected.append(4)
            changes["phase4_format_refreshed"] = True

        return affected, changes

    async def _update_beats_from_scenes(self, previous: StoryData) -> None:
        structure = SceneStructure.model_validate(self._story.phase2)
        story_dna = (self._story.phase1 or {}).get("summary", "")
        regenerated = await self._generator.generate_beats(
            story_dna=story_dna, structure=structure, title=self._title
        )
        self._story.phase3 = merge_breakdowns(
            existing=SceneBeats.model_validate(self._story.phase3),
            regenerated=regenerated,
            old_structure=SceneStructure.model_validate(previous.phase2) if previous.phase2 else None,
            new_structure=structure,
        ).model_dump(mode="json")

    def _refresh_export(self) -> None:
        structure = SceneStructure.model_validate(self._story.phase2) if self._story.phase2 else None
        if structure is None:
            return
        if self._story.phase3 and self._story.phase1:
            document = build_story_document(
                title=self._title,
                summary=StorySummary.model_validate(self._story.phase1),
                structure=structure,
                beats=SceneBeats.model_validate(self._story.phase3),
                analysis=self._analysis,
            )
            content = render_document(document, self._export_format)
            export_ready = True
        else:
            content = _basic_export(self._title, structure)
            export_ready = False
        self._story.phase4 = {
            "format": self._export_format.value,
            "content": content,
            "export_ready": export_ready,
        }

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def check_consistency(self) -> List[ConsistencyIssue]:
        issues: List[ConsistencyIssue] = []
        structure = SceneStructure.model_validate(self._story.phase2) if self._story.phase2 else None
        beats = SceneBeats.model_validate(self._story.phase3) if self._story.phase3 else None

        if beats is not None:
            tracking = beats.character_tracking
            known = set(tracking.main_characters) | set(tracking.character_arcs)
            focused = {name for b in beats.scene_breakdowns for beat in b.beats for name in beat.character_focus}
            for name in sorted(focused - known):
                issues.append(
                    ConsistencyIssue(
                        type=IssueType.character_inconsistency,
                        severity=IssueSeverity.low,
                        description=f"Character '{name}' appears in beats but is not tracked",
                        affected_phases=[3],
                        suggested_fix=f"Add '{name}' to character tracking or remove them from the beats",
                    )
                )

        if structure is not None:
            numbers = [s.scene_number for s in structure.scenes]
            if len(set(numbers)) != len(numbers) or numbers != sorted(numbers):
                issues.append(
                    ConsistencyIssue(
                        type=IssueType.timeline_conflict,
                        severity=IssueSeverity.high,
                        description=f"Scene numbers are duplicated or out of order: {numbers}",
                        affected_phases=[2, 3],
                        suggested_fix="Renumber scenes in story order",
                    )
                )

            tensions = [s.tension_level for s in structure.scenes]
            if len(tensions) > 1 and tensions.index(max(tensions)) < len(tensions) / 2 - 0.5:
                issues.append(
                    ConsistencyIssue(
                        type=IssueType.emotional_disconnect,
                        severity=IssueSeverity.low,
                        description="Peak tension lands in the first half of the story",
                        affected_phases=[2],
                        suggested_fix="Escalate tension toward the later scenes",
                    )
                )

            if beats is not None:
                scene_numbers = set(numbers)
                broken_down = {b.scene_number for b in beats.scene_breakdowns}
                for orphan in sorted(broken_down - scene_numbers):
                    issues.append(
                        ConsistencyIssue(
                            type=IssueType.plot_hole,
                            severity=IssueSeverity.medium,
                            description=f"Beat breakdown exists for missing scene {orphan}",
                            affected_phases=[2, 3],
                            suggested_fix=f"Remove the breakdown of scene {orphan} or restore the scene",
                        )
                    )
                for missing in sorted(scene_numbers - broken_down):
                    issues.append(
                        ConsistencyIssue(
                            type=IssueType.plot_hole,
                            severity=IssueSeverity.medium,
                            description=f"Scene {missing} has no beat breakdown",
                            affected_phases=[3],
                            suggested_fix=f"Generate beats for scene {missing}",
                        )
                    )

        self._issues = issues
        return list(issues)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _record(self, operation: UpdateOperation) -> None:
        self._history.append(operation)
        if len(self._history) > self._max_history:
            self._history.pop(0)

    def undo_last_update(self) -> bool:
        """Restore the story to its state before the most recent update."""
        if not self._history:
            return False
        last = self._history.pop()
        self._story = StoryData.model_validate(last.previous_state)
        return True

    def get_story_data(self) -> StoryData:
        return self._story.model_copy(deep=True)

    def get_update_history(self) -> List[UpdateOperation]:
        return list(self._history)

    def get_consistency_issues(self) -> List[ConsistencyIssue]:
        return list(self._issues)


def merge_breakdowns(
    *,
    existing: SceneBeats,
    regenerated: SceneBeats,
    old_structure: Optional[SceneStructure],
    new_structure: SceneStructure,
) -> SceneBeats:
    """Combine existing and regenerated beat breakdowns after a scene edit.

    A scene keeps its existing breakdown when it still exists under the same
    number with the same summary. Every other scene takes the regenerated
    breakdown. Character tracking is kept; the production summary beat
    total is recomputed.
    """
    old_summaries = {s.scene_number: s.summary for s in (old_structure.scenes if old_structure else [])}
    current = {b.scene_number: b for b in existing.scene_breakdowns}
    fresh = {b.scene_number: b for b in regenerated.scene_breakdowns}

    breakdowns = []
    for scene in new_structure.scenes:
        number = scene.scene_number
        unchanged = old_summaries.get(number) == scene.summary
        if unchanged and number in current:
            breakdowns.append(copy.deepcopy(current[number]))
        elif number in fresh:
            breakdowns.append(fresh[number])

    production = existing.production_summary.model_copy(
        update={"total_beats": sum(b.total_beats for b in breakdowns)}
    )
    return SceneBeats(
        scene_breakdowns=breakdowns,
        character_tracking=existing.character_tracking,
        production_summary=production,
        user_notes=existing.user_notes,
    )


def _basic_export(title: str, structure: SceneStructure) -> str:
    lines = [f"# {title}" if title else "# Story", "", "## Scenes"]
    for scene in structure.scenes:
        lines.append(f"{scene.scene_number}. **{scene.title}**: {scene.summary}")
    return "\n".join(lines) + "\n"
