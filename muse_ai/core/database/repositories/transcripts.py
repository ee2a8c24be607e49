"""
Transcript repository.

Besides CRUD, the repository owns reads and writes of the per-phase story
payloads kept in ``Transcript.story_metadata``.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now
from ..entities.story_projects import StoryProject
from ..entities.transcripts import Transcript
from .base import SqlRepository


class TranscriptRepository(SqlRepository[Transcript]):
    """Repository for transcript data access operations."""

    order_by = Transcript.created_at.desc()  # type: ignore

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Transcript)

    async def get_with_project(self, transcript_id: int) -> Tuple[Optional[Transcript], Optional[StoryProject]]:
        """Fetch a transcript together with the story project that owns it.

        Returns:
            ``(transcript, project)``; either side may be None.
        """
        transcript = await self.get_by_id(transcript_id)
        if transcript is None or transcript.story_project_id is None:
            return transcript, None
        project = await self.session.get(StoryProject, transcript.story_project_id)
        return transcript, project

    async def update_metadata(self, transcript: Transcript, key: str, value: Any) -> Transcript:
        """Write one key of the transcript's story metadata and commit.

        A new dict is assigned so the JSON column is flagged dirty.
        """
        metadata = dict(transcript.story_metadata or {})
        if value is None:
            metadata.pop(key, None)
        else:
            metadata[key] = value
        transcript.story_metadata = metadata
        transcript.updated_at = utc_now()
        return await self.update(transcript)
