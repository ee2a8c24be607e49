"""Structured story generation.

``StoryGenerator`` produces every LLM-backed artifact of the workflow: the
transcript analysis, the phase 1 summary options, the phase 2 scene
structure, the phase 3 beat breakdown and the Living Story regeneration of
a downstream phase.

The generator supports two modes:

- ``model=None``: deterministic fallback. Analysis is keyword based and the
  phase outputs are fixed templates seeded by the story data. This is what
  runs when no API key is configured, and in tests.
- ``model!=None``: a Pydantic AI ``Agent`` is run with the phase model as
  ``output_type``. A failed call is logged and the fallback output is
  returned instead, except for ``regenerate_phase`` which returns None so
  the Living Story layer can skip that target.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic_ai import Agent

from muse_ai.core.logging_config import get_logger

from .dependencies import PhaseDependency
from .phases import (
    AnalysisSummary,
    ArcAnalysis,
    Beat,
    CharacterArc,
    CharacterTracking,
    ConflictType,
    DurationEstimate,
    MomentType,
    Pacing,
    Phase,
    ProductionComplexity,
    ProductionSummary,
    Scene,
    SceneBeats,
    SceneBreakdown,
    SceneStructure,
    StoryMoment,
    StorySummaryOptions,
    SummaryOption,
    SummaryRecommendation,
    TranscriptAnalysis,
    phase_model,
)

logger = get_logger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)

SYSTEM_PROMPT = (
    "You are a story development assistant for film and series writers. "
    "Return only the requested structure as JSON."
)


class StoryGenerator:
    """Generate story artifacts with an optional language model."""

    def __init__(self, *, model: Any | None = None) -> None:
        """
        Args:
            model: A pydantic-ai model or model name (``"openai:gpt-4o"``).
                   If None, every operation uses the deterministic fallback.
        """
        self._model = model

    @property
    def uses_fallback(self) -> bool:
        return self._model is None

    async def _run(self, output_type: Type[OutputT], prompt: str) -> OutputT:
        agent: Agent = Agent(self._model, output_type=output_type, system_prompt=SYSTEM_PROMPT)
        result = await agent.run(prompt)
        return result.output

    # ------------------------------------------------------------------
    # Transcript analysis
    # ------------------------------------------------------------------

    async def analyze_transcript(self, *, title: str, content: str) -> TranscriptAnalysis:
        """Extract story moments and a story potential summary from a transcript."""
        if self._model is None:
            return fallback_analysis(content)
        try:
            return await self._run(
                TranscriptAnalysis,
                f"Identify the key story moments in this transcript.\n\ntitle={title}\n\n{content}",
            )
        except Exception as e:
            logger.warning(f"Transcript analysis failed, using keyword analysis: {e}")
            return fallback_analysis(content)

    # ------------------------------------------------------------------
    # Phase 1
    # ------------------------------------------------------------------

    async def generate_summaries(self, *, title: str, moments: List[StoryMoment]) -> StorySummaryOptions:
        """Five one-sentence story summaries plus a recommended pick."""
        if self._model is None:
            return fallback_summaries(title)
        try:
            return await self._run(
                StorySummaryOptions,
                "Write exactly 5 distinct one-sentence story summaries (versions A-E) "
                f"for the transcript '{title}'.\n\nmoments={_dump(moments)}",
            )
        except Exception as e:
            logger.warning(f"Summary generation failed, using template summaries: {e}")
            return fallback_summaries(title)

    # ------------------------------------------------------------------
    # Phase 2
    # ------------------------------------------------------------------

    async def generate_scenes(
        self,
        *,
        story_dna: str,
        moments: List[StoryMoment],
        title: str = "",
        genre_focus: Optional[str] = None,
        emotional_core: Optional[str] = None,
    ) -> SceneStructure:
        """A four scene structure that delivers the story DNA."""
        if self._model is None:
            return fallback_scenes()
        try:
            return await self._run(
                SceneStructure,
                "Build exactly 4 scenes forming a complete dramatic arc.\n\n"
                f"story_dna={story_dna}\ntitle={title}\ngenre_focus={genre_focus}\n"
                f"emotional_core={emotional_core}\nmoments={_dump(moments)}",
            )
        except Exception as e:
            logger.warning(f"Scene generation failed, using template scenes: {e}")
            return fallback_scenes()

    # ------------------------------------------------------------------
    # Phase 3
    # ------------------------------------------------------------------

    async def generate_beats(self, *, story_dna: str, structure: SceneStructure, title: str = "") -> SceneBeats:
        """A production-ready beat breakdown of every scene."""
        if self._model is None:
            return fallback_beats(structure)
        try:
            return await self._run(
                SceneBeats,
                "Break every scene into 3-8 production-ready beats and track the characters.\n\n"
                f"story_dna={story_dna}\ntitle={title}\nscene_structure={_dump(structure)}",
            )
        except Exception as e:
            logger.warning(f"Beat generation failed, using template beats: {e}")
            return fallback_beats(structure)

    # ------------------------------------------------------------------
    # Living Story
    # ------------------------------------------------------------------

    async def regenerate_phase(
        self,
        *,
        dependency: PhaseDependency,
        changed_field: str,
        new_value: Any,
        story_data: Dict[str, Any],
        target_data: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """Update a downstream phase after an upstream edit.

        Returns:
            The updated target payload, or None when no model is configured,
            the target is not regenerable, or the call fails.
        """
        if self._model is None:
            logger.debug("No language model configured; skipping phase regeneration")
            return None
        if dependency.target_phase == Phase.EXPORT:
            return None
        try:
            output = await self._run(
                phase_model(dependency.target_phase),
                f"Phase {int(dependency.source_phase)} changed: '{changed_field}' is now {_dump(new_value)}.\n"
                f"Update phase {int(dependency.target_phase)} ({dependency.update_type.value}) so it stays "
                f"consistent with fields {list(dependency.fields)}. Keep everything else unchanged.\n\n"
                f"story={_dump(story_data)}\n\ncurrent_phase_{int(dependency.target_phase)}={_dump(target_data)}",
            )
            return output.model_dump(mode="json")
        except Exception as e:
            logger.error(
                f"Regeneration of phase {int(dependency.target_phase)} failed: {e}",
                exc_info=True,
            )
            return None


def _dump(value: Any) -> str:
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, list):
        return json.dumps([v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value])
    return json.dumps(value, default=str)


# ---------------------------------------------------------------------------
# Deterministic fallbacks
# ---------------------------------------------------------------------------

_KEYWORD_MOMENTS = (
    (
        MomentType.conflict,
        ("conflict", "disagree", "tension", "obstacle"),
        ("conflict", "disagree", "tension"),
        "Conflict moment identified",
        "Identified based on conflict keywords in the transcript",
        7,
        ["conflict", "tension"],
    ),
    (
        MomentType.revelation,
        ("reveal", "realize", "discover", "never thought"),
        ("reveal", "realize", "discover"),
        "Character revelation discovered",
        "Character insight or plot revelation identified",
        8,
        ["revelation", "insight"],
    ),
    (
        MomentType.character_development,
        ("character", "growth", "change", "development"),
        ("character", "growth"),
        "Character development moment",
        "Character growth or development identified",
        6,
        ["character", "growth"],
    ),
)


def fallback_analysis(content: str) -> TranscriptAnalysis:
    """Keyword based transcript analysis."""
    lowered = content.lower()
    sentences = [s.strip() for s in re.split(r"[.!?]+", content) if s.strip()]
    moments: List[StoryMoment] = []

    for moment_type, triggers, quote_words, default_text, context, intensity, tags in _KEYWORD_MOMENTS:
        if not any(word in lowered for word in triggers):
            continue
        quote = next((s for s in sentences if any(w in s.lower() for w in quote_words)), default_text)
        moments.append(
            StoryMoment(type=moment_type, text=quote, context=context, intensity=intensity, tags=list(tags))
        )

    if not moments:
        moments.append(
            StoryMoment(
                type=MomentType.theme,
                text=sentences[len(sentences) // 2] if sentences else "Thematic content identified",
                context="General thematic content from the transcript",
                intensity=5,
                tags=["theme", "general"],
            )
        )

    return TranscriptAnalysis(
        moments=moments,
        summary=AnalysisSummary(
            main_themes=["character development", "personal growth"],
            key_characters=["interviewer", "expert"],
            story_potential=7,
            genre_indicators=["drama", "character study"],
            emotional_arc="Exploration of personal and professional insights",
        ),
    )


def fallback_summaries(title: str) -> StorySummaryOptions:
    options = [
        SummaryOption(
            version="A",
            summary="A character's journey of self-discovery reveals unexpected truths that challenge everything they believed about themselves.",
            genre_focus="Character Study",
            emotional_core="Self-discovery and personal transformation",
            hook_strength=7,
            reasoning="Focuses on internal character journey, good for intimate storytelling",
        ),
        SummaryOption(
            version="B",
            summary="When confronted with a life-changing revelation, someone must choose between comfort and truth.",
            genre_focus="Drama",
            emotional_core="The tension between security and authenticity",
            hook_strength=8,
            reasoning="Choice-driven narrative creates natural dramatic tension",
        ),
        SummaryOption(
            version="C",
            summary="An expert's insights into human nature expose the hidden conflicts that drive us all.",
            genre_focus="Psychological Drama",
            emotional_core="Understanding the complexity of human motivation",
            hook_strength=6,
            reasoning="Intellectual approach, appeals to audiences interested in psychology",
        ),
        SummaryOption(
            version="D",
            summary=f"A conversation about {title.lower()} becomes a mirror reflecting deeper truths about identity and change.",
            genre_focus="Philosophical Drama",
            emotional_core="The search for authentic identity",
            hook_strength=7,
            reasoning="Meta-narrative approach that connects content to universal themes",
        ),
        SummaryOption(
            version="E",
            summary="What begins as professional discussion evolves into a profound exploration of what it means to grow and change.",
            genre_focus="Introspective Drama",
            emotional_core="The courage required for personal evolution",
            hook_strength=8,
            reasoning="Evolution theme resonates broadly, shows transformation journey",
        ),
    ]
    return StorySummaryOptions(
        summaries=options,
        recommendation=SummaryRecommendation(
            preferred_version="E",
            rationale=(
                "Version E captures both the professional context and the personal transformation arc, "
                "a journey that starts in one place and evolves into something deeper."
            ),
        ),
    )


def fallback_scenes() -> SceneStructure:
    scenes = [
        Scene(
            scene_number=1,
            title="The Catalyst",
            summary="The inciting incident that launches the journey. A moment of disruption that challenges the status quo and forces action.",
            purpose="Establish the central conflict and introduce the journey that will unfold",
            stakes="The old way of being versus the need for change",
            character_arc="Character is comfortable but about to be challenged",
            conflict_type=ConflictType.internal,
            emotional_beat="Uncertainty mixed with curiosity",
            forward_movement="Sets up the central question that drives the entire narrative",
            key_moments=[
                "The moment of initial disruption",
                "Character's first reaction to change",
                "Decision to engage with the challenge",
            ],
            tension_level=6,
            pacing=Pacing.medium,
        ),
        Scene(
            scene_number=2,
            title="The Descent",
            summary="Character dives deeper into the challenge. Complications arise and the easy answers disappear.",
            purpose="Deepen the conflict and show the true scope of the challenge",
            stakes="Surface-level solutions versus confronting deeper truths",
            character_arc="Character realizes the challenge is bigger than expected",
            conflict_type=ConflictType.interpersonal,
            emotional_beat="Growing tension and resistance",
            forward_movement="Eliminates simple solutions and forces deeper engagement",
            key_moments=[
                "First attempt at resolution fails",
                "Deeper complexity revealed",
                "Character commits to harder path",
            ],
            tension_level=7,
            pacing=Pacing.medium,
        ),
        Scene(
            scene_number=3,
            title="The Crisis",
            summary="The moment of greatest challenge. Everything seems lost and the character faces their deepest fears or resistance.",
            purpose="Force the character to confront their core limitations and make the hardest choice",
            stakes="Everything the character values is on the line",
            character_arc="Character faces their ultimate test and must transform",
            conflict_type=ConflictType.internal,
            emotional_beat="Intense pressure and potential despair",
            forward_movement="Creates the conditions for breakthrough or breakdown",
            key_moments=[
                "The moment of greatest resistance",
                "Character faces their deepest fear",
                "The critical choice point",
            ],
            tension_level=9,
            pacing=Pacing.fast,
        ),
        Scene(
            scene_number=4,
            title="The Resolution",
            summary="Character emerges transformed. The new understanding or way of being is integrated and demonstrated.",
            purpose="Show the transformation and establish the new equilibrium",
            stakes="Whether the growth will be sustainable and meaningful",
            character_arc="Character has integrated the change and grown",
            conflict_type=ConflictType.internal,
            emotional_beat="Resolution mixed with new wisdom",
            forward_movement="Completes the arc and establishes new possibilities",
            key_moments=[
                "Demonstration of new capability or understanding",
                "Integration of the lesson learned",
                "Opening to new possibilities",
            ],
            tension_level=4,
            pacing=Pacing.slow,
        ),
    ]
    return SceneStructure(
        scenes=scenes,
        arc_analysis=ArcAnalysis(
            overall_progression="Classic transformation arc: setup, complication, crisis, resolution, each scene building on the previous one",
            escalation_pattern="Tension builds from comfortable (6) through challenge (7) to crisis (9) before resolving (4)",
            resolution_approach="Character integration, showing growth through action rather than explanation",
            cohesion_strength=8,
            structural_notes=[
                "Each scene serves both plot and character development",
                "Conflict types vary to maintain interest while staying thematically coherent",
                "Pacing changes support the emotional journey",
            ],
        ),
    )


_DURATION_BY_PACING = {
    Pacing.fast: DurationEstimate.short,
    Pacing.slow: DurationEstimate.long,
    Pacing.medium: DurationEstimate.medium,
}

_SHOT_BY_CONFLICT = {
    ConflictType.internal: "Close-ups for internal struggle",
    ConflictType.interpersonal: "Two-shot compositions",
}


def _fallback_breakdown(scene: Scene, index: int, scenes: List[Scene]) -> SceneBreakdown:
    beat_count = min(max(3, scene.tension_level // 2 + 2), 8)
    arc_words = scene.character_arc.split(" ")
    beats: List[Beat] = []

    for number in range(1, beat_count + 1):
        opening = number == 1
        closing = number == beat_count
        midpoint = number == beat_count // 2 + 1

        if opening:
            title = f"{scene.title} Opening"
            action = (
                f"Scene opens with character in {arc_words[0]} state. The immediate situation presents itself "
                "through specific actions and environmental details that establish the scene's context."
            )
            dialogue = "Establish character voice and immediate concerns"
            state = "establishing"
            function = f"Establish {scene.purpose}"
        elif closing:
            title = f"{scene.title} Resolution"
            action = (
                f"Scene concludes with character having {' '.join(arc_words[-2:])}. "
                "The resolution directly sets up the next phase of the story journey."
            )
            dialogue = "Dialogue that crystallizes the change or realization"
            state = "transformed"
            function = f"Complete {scene.forward_movement}"
        else:
            title = f"{scene.title} Turning Point" if midpoint else f"{scene.title} Development {number}"
            action = (
                f"Character engages with {scene.conflict_type.value} conflict. Specific actions reveal deeper "
                "layers of the situation while building toward the scene's climactic moment."
            )
            dialogue = "Dialogue that escalates tension and reveals character motivation"
            state = "challenged"
            function = "Develop core conflict and character response"

        if not closing:
            transition = "Builds tension toward next beat"
        elif index < len(scenes) - 1:
            transition = f"Leads into Scene {index + 2}: {scenes[index + 1].title}"
        else:
            transition = "Story conclusion"

        beats.append(
            Beat(
                beat_number=number,
                beat_title=title,
                action_description=action,
                dialogue_notes=dialogue,
                character_focus=["protagonist"],
                character_states={"protagonist": state},
                tension_moment=(
                    f"Peak tension: {scene.stakes}" if midpoint else f"Building tension: {scene.emotional_beat}"
                ),
                story_function=function,
                production_notes=f"{scene.pacing.value} pacing required. Focus on {scene.emotional_beat}.",
                duration_estimate=_DURATION_BY_PACING[scene.pacing],
                transition_to_next=transition,
                visual_elements=[
                    _SHOT_BY_CONFLICT.get(scene.conflict_type, "Wide shots to establish external conflict"),
                    f"{scene.emotional_beat} lighting",
                    "Props supporting the scene purpose",
                ],
            )
        )

    return SceneBreakdown(
        scene_number=scene.scene_number, scene_title=scene.title, total_beats=beat_count, beats=beats
    )


def fallback_beats(structure: SceneStructure) -> SceneBeats:
    scenes = structure.scenes
    breakdowns = [_fallback_breakdown(scene, i, scenes) for i, scene in enumerate(scenes)]
    return SceneBeats(
        scene_breakdowns=breakdowns,
        character_tracking=CharacterTracking(
            main_characters=["protagonist", "supporting character"],
            character_arcs={
                "protagonist": CharacterArc(
                    starting_state="Comfortable but unfulfilled",
                    progression=[f"Scene {s.scene_number}: {s.character_arc}" for s in scenes],
                    ending_state="Transformed and empowered",
                    key_moments=[
                        "Initial resistance to change",
                        "Moment of deepest vulnerability",
                        "Breakthrough realization",
                        "New equilibrium demonstration",
                    ],
                )
            },
            consistency_notes=[
                "Maintain character voice and mannerisms throughout",
                "Track emotional state progression across scenes",
                "Ensure character reactions align with established personality",
            ],
        ),
        production_summary=ProductionSummary(
            total_beats=sum(b.total_beats for b in breakdowns),
            estimated_runtime="15-25 minutes",
            key_locations=["Interior: Main character space", "Exterior: Challenge environment"],
            production_complexity=ProductionComplexity.medium,
            budget_considerations=[
                "Character-focused scenes require strong performances",
                "Minimal special effects needed",
                "Standard equipment and crew requirements",
            ],
            scheduling_notes=[
                "Schedule emotional scenes when actors are fresh",
                "Group scenes by location for efficiency",
            ],
        ),
    )
