"""
Living Story API Endpoints.

Change tracking and approval for one transcript. Edits are recorded as
they are saved; regenerated downstream phases wait in a pending queue until
the user accepts or rejects them. The ``/ripple`` endpoint is the immediate
alternative that regenerates downstream phases without review.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query

from muse_ai.core.logging_config import get_logger
from muse_ai.story.living_story import LivingStoryStatus, StoryChange
from muse_ai.story.phases import to_phase
from muse_ai.server.schemas import ChangeDetect, ChangeUndone, RippleUpdate
from muse_ai.server.services.deps import CurrentUserDep, LivingStoryDep, StoryServiceDep
from muse_ai.server.services.story_service import RippleResult

logger = get_logger(__name__)
router = APIRouter()


@router.post(
    "/{transcript_id}/living-story/changes/detect",
    response_model=List[StoryChange],
    summary="Detect Changes",
    description="Record every field that differs between two versions of a phase payload.",
)
async def detect_changes(
    transcript_id: int,
    body: ChangeDetect,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    manager: LivingStoryDep,
):
    await service.get_owned_transcript(transcript_id, user_id)
    return await manager.detect_changes(
        transcript_id=transcript_id,
        user_id=user_id,
        phase=to_phase(body.phase),
        old_data=body.old_data,
        new_data=body.new_data,
    )


@router.post(
    "/{transcript_id}/living-story/changes/{change_id}/auto-updates",
    response_model=List[StoryChange],
    summary="Propose Downstream Updates",
    description="Regenerate the phases that depend on a recorded change and queue them for review.",
    responses={404: {"description": "Change not found"}},
)
async def generate_auto_updates(
    transcript_id: int,
    change_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    manager: LivingStoryDep,
):
    await service.get_owned_transcript(transcript_id, user_id)
    return await manager.generate_auto_updates(
        transcript_id=transcript_id, user_id=user_id, source_change_id=change_id
    )


@router.get(
    "/{transcript_id}/living-story/pending",
    summary="List Pending Changes",
    description="Pending downstream updates with a field level preview of each.",
)
async def list_pending(
    transcript_id: int, user_id: CurrentUserDep, service: StoryServiceDep, manager: LivingStoryDep
) -> List[Dict[str, Any]]:
    await service.get_owned_transcript(transcript_id, user_id)
    pending = await manager.get_pending_with_previews(transcript_id)
    return [{"change": p["change"].model_dump(mode="json"), "preview": p["preview"].model_dump(mode="json")} for p in pending]


@router.get(
    "/{transcript_id}/living-story/history",
    response_model=List[StoryChange],
    summary="Change History",
    description="Applied and decided changes, newest first.",
)
async def change_history(
    transcript_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    manager: LivingStoryDep,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
):
    await service.get_owned_transcript(transcript_id, user_id)
    return await manager.get_change_history(transcript_id, limit)


@router.get(
    "/{transcript_id}/living-story/status",
    response_model=LivingStoryStatus,
    summary="Living Story Status",
)
async def living_story_status(
    transcript_id: int, user_id: CurrentUserDep, service: StoryServiceDep, manager: LivingStoryDep
):
    await service.get_owned_transcript(transcript_id, user_id)
    return await manager.get_status(transcript_id)


@router.post(
    "/{transcript_id}/living-story/changes/{change_id}/accept",
    response_model=StoryChange,
    summary="Accept Change",
    description="Apply a pending change to the transcript.",
    responses={404: {"description": "Change not found or already processed"}},
)
async def accept_change(
    transcript_id: int,
    change_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    manager: LivingStoryDep,
):
    await service.get_owned_transcript(transcript_id, user_id)
    return await manager.accept_change(transcript_id, change_id)


@router.post(
    "/{transcript_id}/living-story/changes/{change_id}/reject",
    response_model=StoryChange,
    summary="Reject Change",
    responses={404: {"description": "Change not found or already processed"}},
)
async def reject_change(
    transcript_id: int,
    change_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    manager: LivingStoryDep,
):
    await service.get_owned_transcript(transcript_id, user_id)
    return await manager.reject_change(transcript_id, change_id)


@router.post(
    "/{transcript_id}/living-story/changes/{change_id}/undo",
    response_model=ChangeUndone,
    summary="Undo Change",
    description="Revert an applied or accepted change. The revert is itself recorded.",
    responses={404: {"description": "Change not found or cannot be undone"}},
)
async def undo_change(
    transcript_id: int,
    change_id: int,
    user_id: CurrentUserDep,
    service: StoryServiceDep,
    manager: LivingStoryDep,
):
    await service.get_owned_transcript(transcript_id, user_id)
    restored = await manager.undo_change(transcript_id, change_id)
    return ChangeUndone(change_id=change_id, restored_value=restored)


@router.post(
    "/{transcript_id}/living-story/ripple",
    response_model=RippleResult,
    summary="Ripple Update",
    description="Apply a phase edit and regenerate every downstream phase immediately.",
)
async def ripple_update(
    transcript_id: int, body: RippleUpdate, user_id: CurrentUserDep, service: StoryServiceDep
):
    transcript, _ = await service.get_owned_transcript(transcript_id, user_id)
    result = await service.ripple(
        transcript,
        to_phase(body.phase),
        body.content,
        skip_ripple=body.skip_ripple,
        reason=body.reason,
        export_format=body.export_format,
    )
    if not result.result.success:
        logger.warning(f"Ripple update on transcript {transcript_id} failed: {result.result.error}")
    return result
