"""
Story workflow service.

Coordinates transcript ownership checks, the paywall, the story generator
and the Living Story change log for the transcript and phase endpoints.
Route handlers stay thin and delegate every step here.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from sqlmodel.ext.asyncio.session import AsyncSession

from muse_ai.core.database.entities.production_bible import ProductionBibleApplication
from muse_ai.core.database.entities.story_projects import StoryProject
from muse_ai.core.database.entities.transcripts import Transcript
from muse_ai.core.database.repositories import (
    ProductionBibleRepository,
    StoryProjectRepository,
    TranscriptRepository,
)
from muse_ai.core.errors import (
    AnalysisRequiredError,
    InvalidPhaseError,
    PhasePrerequisiteError,
    ProjectNotFoundError,
    TranscriptAccessDeniedError,
    TranscriptNotFoundError,
)
from muse_ai.core.logging_config import get_logger
from muse_ai.core.monitoring import log_phase_generation
from muse_ai.paywall import PaywallService, UsageMetric
from muse_ai.production_bible import DocumentContent, RuleApplication, RuleEngine
from muse_ai.story.document import DocumentFormat, build_story_document, render_document
from muse_ai.story.engine import LivingStoryEngine, UpdateResult
from muse_ai.story.generator import StoryGenerator
from muse_ai.story.living_story import LivingStoryManager, StoryChange
from muse_ai.story.phases import (
    ANALYSIS_METADATA_KEY,
    PHASE_METADATA_KEYS,
    Phase,
    SceneBeats,
    SceneStructure,
    StoryData,
    StorySummary,
    StorySummaryOptions,
    TranscriptAnalysis,
    validate_phase_payload,
)
from muse_ai.story.validation import validate_beat_breakdown, validate_scene_coherence

logger = get_logger(__name__)

DOCUMENT_SECTIONS = ("executive_summary", "narrative_structure", "production_package")


class PhaseSaveResult(BaseModel):
    phase: int
    data: Dict[str, Any]
    validation: Optional[Dict[str, Any]] = None
    changes: List[StoryChange] = Field(default_factory=list)


class ExportResult(BaseModel):
    format: DocumentFormat
    document: Dict[str, Any]
    rendered: Optional[str] = None
    rule_applications: List[RuleApplication] = Field(default_factory=list)


class RippleResult(BaseModel):
    result: UpdateResult
    story: StoryData


class StoryService:
    def __init__(
        self,
        session: AsyncSession,
        generator: StoryGenerator,
        manager: LivingStoryManager,
        *,
        engine_history_limit: int = 50,
    ) -> None:
        self.transcripts = TranscriptRepository(session)
        self.projects = StoryProjectRepository(session)
        self.bible = ProductionBibleRepository(session)
        self.paywall = PaywallService(session)
        self.generator = generator
        self.manager = manager
        self.engine_history_limit = engine_history_limit

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    async def get_owned_transcript(self, transcript_id: int, user_id: str) -> Tuple[Transcript, StoryProject]:
        """Load a transcript the caller owns through its story project.

        Raises:
            TranscriptNotFoundError: no transcript with this id.
            TranscriptAccessDeniedError: the project belongs to someone else.
        """
        transcript, project = await self.transcripts.get_with_project(transcript_id)
        if transcript is None:
            raise TranscriptNotFoundError(transcript_id)
        if project is None or project.user_id != user_id:
            raise TranscriptAccessDeniedError(transcript_id, user_id)
        return transcript, project

    # ------------------------------------------------------------------
    # Transcripts
    # ------------------------------------------------------------------

    async def process_transcript(
        self,
        *,
        user_id: str,
        title: str,
        content: str,
        source_type: str = "other",
        project_id: Optional[int] = None,
    ) -> Tuple[Transcript, TranscriptAnalysis]:
        """Store a new transcript and analyze it.

        Without ``project_id`` the transcript goes into the caller's most
        recent project, or a new project named after the transcript.
        """
        await self.paywall.require(user_id, "arcGenerator")
        project = await self._resolve_project(user_id, title, project_id)
        transcript = await self.transcripts.create(
            Transcript(
                story_project_id=project.id,
                title=title,
                content=content,
                source_type=source_type,
                word_count=len(content.split()),
            )
        )
        logger.info(f"Created transcript {transcript.id} in project {project.id} for {user_id}")
        analysis = await self._run_analysis(transcript, user_id)
        return transcript, analysis

    async def _resolve_project(self, user_id: str, title: str, project_id: Optional[int]) -> StoryProject:
        if project_id is not None:
            project = await self.projects.get_by_id(project_id)
            if project is None or project.user_id != user_id:
                raise ProjectNotFoundError(project_id)
            return project
        existing = await self.projects.list_for_user(user_id)
        if existing:
            return existing[0]
        return await self.projects.create(StoryProject(user_id=user_id, title=title))

    async def analyze(self, transcript: Transcript, user_id: str) -> TranscriptAnalysis:
        await self.paywall.require(user_id, "arcGenerator")
        return await self._run_analysis(transcript, user_id)

    async def _run_analysis(self, transcript: Transcript, user_id: str) -> TranscriptAnalysis:
        started = time.perf_counter()
        analysis = await self.generator.analyze_transcript(title=transcript.title, content=transcript.content)
        await self.transcripts.update_metadata(transcript, ANALYSIS_METADATA_KEY, analysis.model_dump(mode="json"))
        await self.paywall.track(user_id, UsageMetric.arc_analyses)
        log_phase_generation(
            transcript.id, 0, self.generator.uses_fallback, (time.perf_counter() - started) * 1000  # type: ignore[arg-type]
        )
        return analysis

    # ------------------------------------------------------------------
    # Phase generation
    # ------------------------------------------------------------------

    async def generate_summaries(self, transcript: Transcript, user_id: str) -> StorySummaryOptions:
        await self.paywall.require(user_id, "phaseWorkflow")
        analysis = self._analysis(transcript)
        if analysis is None or not analysis.moments:
            raise AnalysisRequiredError(transcript.id)  # type: ignore[arg-type]
        started = time.perf_counter()
        options = await self.generator.generate_summaries(title=transcript.title, moments=analysis.moments)
        self._log_generation(transcript, Phase.SUMMARY, started)
        return options

    async def generate_scenes(
        self,
        transcript: Transcript,
        user_id: str,
        *,
        genre_focus: Optional[str] = None,
        emotional_core: Optional[str] = None,
    ) -> PhaseSaveResult:
        await self.paywall.require(user_id, "phaseWorkflow")
        summary = self._require_summary(transcript)
        analysis = self._analysis(transcript)
        started = time.perf_counter()
        structure = await self.generator.generate_scenes(
            story_dna=summary.summary,
            moments=analysis.moments if analysis else [],
            title=transcript.title,
            genre_focus=genre_focus,
            emotional_core=emotional_core,
        )
        self._log_generation(transcript, Phase.SCENES, started)
        return await self.save_phase(transcript, user_id, Phase.SCENES, structure.model_dump(mode="json"))

    async def generate_beats(self, transcript: Transcript, user_id: str) -> PhaseSaveResult:
        await self.paywall.require(user_id, "phaseWorkflow")
        summary = self._require_summary(transcript)
        structure = self._require_structure(transcript)
        started = time.perf_counter()
        beats = await self.generator.generate_beats(
            story_dna=summary.summary, structure=structure, title=transcript.title
        )
        self._log_generation(transcript, Phase.BEATS, started)
        return await self.save_phase(transcript, user_id, Phase.BEATS, beats.model_dump(mode="json"))

    async def generate_document(
        self, transcript: Transcript, project: StoryProject, user_id: str, fmt: DocumentFormat
    ) -> ExportResult:
        """Build the phase 4 document, apply production bible rules and store it.

        Rendered formats count against the export allowance; the JSON
        document does not.
        """
        await self.paywall.require(user_id, "phaseWorkflow")
        if fmt != DocumentFormat.json:
            await self.paywall.require(user_id, "advancedExports")

        story = StoryData.from_metadata(transcript.story_metadata)
        started = time.perf_counter()
        document = build_story_document(
            title=transcript.title,
            summary=StorySummary.model_validate(story.phase1) if story.phase1 else None,
            structure=SceneStructure.model_validate(story.phase2) if story.phase2 else None,
            beats=SceneBeats.model_validate(story.phase3) if story.phase3 else None,
            analysis=(transcript.story_metadata or {}).get(ANALYSIS_METADATA_KEY),
        )
        document, applications = await self._apply_bible_rules(document, transcript, project, user_id)
        await self.transcripts.update_metadata(transcript, PHASE_METADATA_KEYS[Phase.EXPORT], document)
        self._log_generation(transcript, Phase.EXPORT, started)

        rendered = None
        if fmt != DocumentFormat.json:
            rendered = render_document(document, fmt)
            await self.paywall.track(user_id, UsageMetric.exports)
        return ExportResult(format=fmt, document=document, rendered=rendered, rule_applications=applications)

    async def _apply_bible_rules(
        self, document: Dict[str, Any], transcript: Transcript, project: StoryProject, user_id: str
    ) -> Tuple[Dict[str, Any], List[RuleApplication]]:
        rules = await self.bible.active_rules_for_project(project.id, user_id)
        if not rules:
            return document, []
        content = DocumentContent(
            **{name: document.get(name) for name in DOCUMENT_SECTIONS}, phase=4, section="executive_document"
        )
        modified, applications = RuleEngine(rules).apply_rules(content)
        if applications:
            await self.bible.record_applications(
                [
                    ProductionBibleApplication(
                        rule_id=a.rule_id,  # type: ignore[arg-type]
                        transcript_id=transcript.id,
                        phase=int(Phase.EXPORT),
                        document_section=a.document_section,
                        original_text=a.original_text,
                        suggested_text=a.suggested_text,
                        confidence=a.confidence,
                        applied=a.applied,
                        reason=a.reason,
                    )
                    for a in applications
                ]
            )
        updated = dict(document)
        for name in DOCUMENT_SECTIONS:
            updated[name] = getattr(modified, name)
        return updated, applications

    # ------------------------------------------------------------------
    # Phase storage
    # ------------------------------------------------------------------

    def get_phase(self, transcript: Transcript, phase: Phase) -> Optional[Dict[str, Any]]:
        return (transcript.story_metadata or {}).get(PHASE_METADATA_KEYS[phase])

    async def save_phase(
        self, transcript: Transcript, user_id: str, phase: Phase, payload: Dict[str, Any]
    ) -> PhaseSaveResult:
        """Validate and store a phase payload, recording what changed.

        The coherence report for scenes and beats is returned, not stored.
        """
        if phase == Phase.EXPORT:
            raise InvalidPhaseError(phase, "Phase 4 is generated from phases 1-3 and cannot be saved directly")
        try:
            data = validate_phase_payload(phase, payload)
        except ValueError as e:
            raise InvalidPhaseError(phase, f"Invalid phase {int(phase)} payload: {e}") from e

        validation = None
        if phase == Phase.SCENES:
            validation = validate_scene_coherence(SceneStructure.model_validate(data)).model_dump()
        elif phase == Phase.BEATS:
            validation = validate_beat_breakdown(SceneBeats.model_validate(data)).model_dump()

        previous = self.get_phase(transcript, phase)
        changes: List[StoryChange] = []
        if previous is not None:
            changes = await self.manager.detect_changes(
                transcript_id=transcript.id,  # type: ignore[arg-type]
                user_id=user_id,
                phase=phase,
                old_data=previous,
                new_data=data,
            )
        await self.transcripts.update_metadata(transcript, PHASE_METADATA_KEYS[phase], data)
        return PhaseSaveResult(phase=int(phase), data=data, validation=validation, changes=changes)

    # ------------------------------------------------------------------
    # Ripple engine
    # ------------------------------------------------------------------

    async def ripple(
        self,
        transcript: Transcript,
        phase: Phase,
        content: Dict[str, Any],
        *,
        skip_ripple: bool = False,
        reason: Optional[str] = None,
        export_format: DocumentFormat = DocumentFormat.outline,
    ) -> RippleResult:
        """Apply an edit through the ripple engine and persist phases 1-3 on success."""
        metadata = transcript.story_metadata or {}
        analysis = self._analysis(transcript)
        engine = LivingStoryEngine(
            StoryData.from_metadata(metadata),
            self.generator,
            title=transcript.title,
            moments=analysis.moments if analysis else [],
            analysis=metadata.get(ANALYSIS_METADATA_KEY),
            export_format=export_format,
            max_history=self.engine_history_limit,
        )
        result = await engine.update_phase(phase, content, skip_ripple=skip_ripple, reason=reason)
        story = engine.get_story_data()
        if result.success:
            for target in (Phase.SUMMARY, Phase.SCENES, Phase.BEATS):
                if target in result.affected_phases and story.get(target) is not None:
                    await self.transcripts.update_metadata(transcript, PHASE_METADATA_KEYS[target], story.get(target))
        return RippleResult(result=result, story=story)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _analysis(transcript: Transcript) -> Optional[TranscriptAnalysis]:
        raw = (transcript.story_metadata or {}).get(ANALYSIS_METADATA_KEY)
        return TranscriptAnalysis.model_validate(raw) if raw else None

    @staticmethod
    def _require_summary(transcript: Transcript) -> StorySummary:
        raw = (transcript.story_metadata or {}).get(PHASE_METADATA_KEYS[Phase.SUMMARY])
        if not raw:
            raise PhasePrerequisiteError(1, "Story DNA required. Please complete Phase 1 first.")
        return StorySummary.model_validate(raw)

    @staticmethod
    def _require_structure(transcript: Transcript) -> SceneStructure:
        raw = (transcript.story_metadata or {}).get(PHASE_METADATA_KEYS[Phase.SCENES])
        if not raw:
            raise PhasePrerequisiteError(2, "Scene structure required. Please complete Phase 2 first.")
        return SceneStructure.model_validate(raw)

    def _log_generation(self, transcript: Transcript, phase: Phase, started: float) -> None:
        log_phase_generation(
            transcript.id,  # type: ignore[arg-type]
            int(phase),
            self.generator.uses_fallback,
            (time.perf_counter() - started) * 1000,
        )
