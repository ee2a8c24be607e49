"""
Story project repository.
"""

from __future__ import annotations

from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.story_projects import StoryProject
from .base import SqlRepository


class StoryProjectRepository(SqlRepository[StoryProject]):
    """Repository for story project data access operations."""

    order_by = StoryProject.created_at.desc()  # type: ignore

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StoryProject)

    async def list_for_user(self, user_id: str) -> List[StoryProject]:
        """List the projects owned by ``user_id``, newest first."""
        stmt = select(StoryProject).where(StoryProject.user_id == user_id).order_by(self.order_by)
        result = await self.session.exec(stmt)
        return list(result.all())
