"""
Transcript and Phase API Endpoints.

This module drives the four phase story workflow for one transcript:
analysis, summary options, scene structure, beat breakdown and the final
story document. Saved phases go through Living Story change detection.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Query, status

from muse_ai.core.logging_config import get_logger
from muse_ai.story.document import DocumentFormat
from muse_ai.story.phases import StorySummaryOptions, TranscriptAnalysis, to_phase
from muse_ai.server.schemas import PhaseRead, SceneGenerate, TranscriptProcess, TranscriptProcessed
from muse_ai.server.services.deps import CurrentUserDep, StoryServiceDep
from muse_ai.server.services.story_service import ExportResult, PhaseSaveResult

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/process",
    response_model=TranscriptProcessed,
    status_code=status.HTTP_201_CREATED,
    summary="Process Transcript",
    description="Store a transcript and extract its story moments.",
    responses={402: {"description": "Analysis allowance used up"}, 404: {"description": "Project not found"}},
)
async def process_transcript(body: TranscriptProcess, user_id: CurrentUserDep, service: StoryServiceDep):
    transcript, analysis = await service.process_transcript(
        user_id=user_id,
        title=body.title,
        content=body.content,
        source_type=body.source_type,
        project_id=body.project_id,
    )
    return TranscriptProcessed(
        transcript_id=transcript.id,  # type: ignore[arg-type]
        project_id=transcript.story_project_id,  # type: ignore[arg-type]
        word_count=transcript.word_count,
        analysis=analysis,
    )


@router.post(
    "/{transcript_id}/analysis",
    response_model=TranscriptAnalysis,
    summary="Analyze Transcript",
    description="Re-run story moment extraction on a stored transcript.",
)
async def analyze_transcript(transcript_id: int, user_id: CurrentUserDep, service: StoryServiceDep):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    return await service.analyze(transcript, user_id)


@router.post(
    "/{transcript_id}/phases/1/generate",
    response_model=StorySummaryOptions,
    summary="Generate Story Summaries",
    description="Five one-sentence story summaries to choose the story DNA from. Nothing is stored.",
    responses={400: {"description": "Transcript has not been analyzed"}},
)
async def generate_summaries(transcript_id: int, user_id: CurrentUserDep, service: StoryServiceDep):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    return await service.generate_summaries(transcript, user_id)


@router.post(
    "/{transcript_id}/phases/2/generate",
    response_model=PhaseSaveResult,
    summary="Generate Scene Structure",
    responses={400: {"description": "Phase 1 has not been saved"}},
)
async def generate_scenes(
    transcript_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    body: Optional[SceneGenerate] = Body(default=None),
):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    body = body or SceneGenerate()
    return await service.generate_scenes(
        transcript, user_id, genre_focus=body.genre_focus, emotional_core=body.emotional_core
    )


@router.post(
    "/{transcript_id}/phases/3/generate",
    response_model=PhaseSaveResult,
    summary="Generate Beat Breakdown",
    responses={400: {"description": "Phase 1 or 2 has not been saved"}},
)
async def generate_beats(transcript_id: int, user_id: CurrentUserDep, service: StoryServiceDep):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    return await service.generate_beats(transcript, user_id)


@router.post(
    "/{transcript_id}/phases/4/generate",
    response_model=ExportResult,
    summary="Generate Story Document",
    description="Assemble the executive story document from phases 1-3 and apply production bible rules.",
    responses={
        400: {"description": "A prior phase has not been saved"},
        402: {"description": "Rendered exports require an upgrade"},
    },
)
async def generate_document(
    transcript_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    format: DocumentFormat = Query(default=DocumentFormat.json),
):
    transcript, project = await service.get_owned_transcript(transcript_id, user_id)
    return await service.generate_document(transcript, project, user_id, format)


@router.get(
    "/{transcript_id}/phases/{phase}",
    response_model=PhaseRead,
    summary="Get Phase",
)
async def get_phase(transcript_id: int, phase: int, user_id: CurrentUserDep, service: StoryServiceDep):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    target = to_phase(phase)
    return PhaseRead(phase=int(target), data=service.get_phase(transcript, target))


@router.put(
    "/{transcript_id}/phases/{phase}",
    response_model=PhaseSaveResult,
    summary="Save Phase",
    description="Validate and store a phase payload. Changes against the stored version are recorded.",
    responses={400: {"description": "Invalid phase or payload"}},
)
async def save_phase(
    transcript_id: int,
    phase: int,
    payload: Dict[str, Any],
    user_id: CurrentUserDep,
    service: StoryServiceDep,
):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    return await service.save_phase(transcript, user_id, to_phase(phase), payload)
