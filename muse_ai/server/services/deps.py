"""
API Dependencies.

Per-request services built on the database session. Tests replace
``get_session`` and ``get_story_generator`` through
``app.dependency_overrides``.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlmodel.ext.asyncio.session import AsyncSession

from muse_ai.core.database import get_session
from muse_ai.paywall import PaywallService
from muse_ai.server.core.config import settings
from muse_ai.story.generator import StoryGenerator
from muse_ai.story.living_story import LivingStoryManager

from .production_bible_service import ProductionBibleService
from .story_service import StoryService

SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user(x_user_id: Annotated[Optional[str], Header()] = None) -> str:
    """Caller identity from the ``X-User-Id`` header set by the upstream auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return x_user_id


CurrentUserDep = Annotated[str, Depends(get_current_user)]


def get_story_generator() -> StoryGenerator:
    return StoryGenerator(model=settings.llm_model_name())


GeneratorDep = Annotated[StoryGenerator, Depends(get_story_generator)]


def get_living_story_manager(session: SessionDep, generator: GeneratorDep) -> LivingStoryManager:
    return LivingStoryManager(session, generator, history_limit=settings.living_story.history_limit)


LivingStoryDep = Annotated[LivingStoryManager, Depends(get_living_story_manager)]


def get_story_service(session: SessionDep, generator: GeneratorDep, manager: LivingStoryDep) -> StoryService:
    return StoryService(
        session, generator, manager, engine_history_limit=settings.living_story.engine_history_limit
    )


StoryServiceDep = Annotated[StoryService, Depends(get_story_service)]


def get_production_bible_service(session: SessionDep) -> ProductionBibleService:
    return ProductionBibleService(session)


ProductionBibleServiceDep = Annotated[ProductionBibleService, Depends(get_production_bible_service)]


def get_paywall_service(session: SessionDep) -> PaywallService:
    return PaywallService(session)


PaywallServiceDep = Annotated[PaywallService, Depends(get_paywall_service)]
