"""
Production Bible API Endpoints.

Upload style guides as plain text or Markdown, inspect the rules extracted
from them and check generated story documents against the rules of a
project.
"""

from typing import List, Optional, Tuple

from fastapi import APIRouter, Query, Request, status

from muse_ai.core.database.entities.production_bible import ProductionBibleDocument, ProductionBibleRule
from muse_ai.core.logging_config import get_logger
from muse_ai.server.schemas import BibleDocumentRead, BibleRuleRead, BibleValidate
from muse_ai.server.services.deps import CurrentUserDep, ProductionBibleServiceDep, StoryServiceDep
from muse_ai.server.services.production_bible_service import BibleValidation

logger = get_logger(__name__)
router = APIRouter()


def _read(entry: Tuple[ProductionBibleDocument, List[ProductionBibleRule]]) -> BibleDocumentRead:
    document, rules = entry
    read = BibleDocumentRead.model_validate(document)
    read.rules = [BibleRuleRead.model_validate(rule) for rule in rules]
    return read


@router.post(
    "/documents",
    response_model=BibleDocumentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Production Bible",
    description="Upload a txt or md production bible as the request body and extract its rules.",
    responses={
        400: {"description": "Unsupported document type"},
        402: {"description": "Knowledge base storage limit reached"},
        404: {"description": "Story project not found"},
    },
)
async def upload_document(
    request: Request,
    user_id: CurrentUserDep,
    service: ProductionBibleServiceDep,
    filename: str = Query(..., min_length=1),
    name: Optional[str] = Query(default=None),
    project_id: Optional[int] = Query(default=None),
):
    file_type = filename.rsplit(".", 1)[-1] if "." in filename else ""
    data = await request.body()
    entry = await service.upload(
        user_id=user_id,
        name=name or filename,
        filename=filename,
        file_type=file_type,
        data=data,
        story_project_id=project_id,
    )
    return _read(entry)


@router.get(
    "/documents",
    response_model=List[BibleDocumentRead],
    summary="List Production Bibles",
)
async def list_documents(
    user_id: CurrentUserDep,
    service: ProductionBibleServiceDep,
    project_id: Optional[int] = Query(default=None),
):
    return [_read(entry) for entry in await service.list_documents(user_id, project_id)]


@router.get(
    "/documents/{document_id}",
    response_model=BibleDocumentRead,
    summary="Get Production Bible",
    responses={404: {"description": "Document not found"}},
)
async def get_document(document_id: int, user_id: CurrentUserDep, service: ProductionBibleServiceDep):
    return _read(await service.get_document(user_id, document_id))


@router.post(
    "/validate",
    response_model=BibleValidation,
    summary="Validate Against Production Bible",
    description="Check story document content against the rules of the transcript's project, optionally applying them.",
)
async def validate_content(
    body: BibleValidate,
    user_id: CurrentUserDep,
    service: ProductionBibleServiceDep,
    stories: StoryServiceDep,
):
    _, project = await stories.get_owned_transcript(body.transcript_id, user_id)
    return await service.validate(
        user_id=user_id,
        transcript_id=body.transcript_id,
        story_project_id=project.id,
        content=body.content,
        apply_rules=body.apply_rules,
        save_applications=body.save_applications,
    )
