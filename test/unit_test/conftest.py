"""Shared fixtures for the unit tests.

Database tests run against an in-memory SQLite database created from the
ORM metadata. ``StaticPool`` keeps one connection alive so every session of
a test sees the same database.
"""

from __future__ import annotations

from typing import Any, AsyncGenerator, Dict

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

from muse_ai.core.database.entities.story_projects import StoryProject
from muse_ai.core.database.entities.transcripts import Transcript
from muse_ai.core.database.utils import create_all, create_engine, create_sessionmaker
from muse_ai.story.generator import fallback_analysis, fallback_beats, fallback_scenes

TEST_USER = "user-1"
OTHER_USER = "user-2"

TRANSCRIPT_TEXT = (
    "I never thought the lighthouse would close. "
    "We had a conflict with the harbor board about the tension in town. "
    "Then I discovered my father had kept the logbooks all along."
)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with every table created."""
    engine = create_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(engine)() as session:
        yield session


@pytest.fixture
def summary_payload() -> Dict[str, Any]:
    return {
        "summary": "A lighthouse keeper's daughter fights to keep the light burning after the town votes to close it.",
        "version": "B",
        "theme": "Legacy and letting go",
        "genre_indicators": ["drama"],
    }


@pytest.fixture
def scenes_payload() -> Dict[str, Any]:
    return fallback_scenes().model_dump(mode="json")


@pytest.fixture
def beats_payload() -> Dict[str, Any]:
    return fallback_beats(fallback_scenes()).model_dump(mode="json")


@pytest.fixture
def analysis_payload() -> Dict[str, Any]:
    return fallback_analysis(TRANSCRIPT_TEXT).model_dump(mode="json")


@pytest_asyncio.fixture
async def project(session: AsyncSession) -> StoryProject:
    project = StoryProject(user_id=TEST_USER, title="Lighthouse")
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


@pytest_asyncio.fixture
async def transcript(session: AsyncSession, project: StoryProject) -> Transcript:
    transcript = Transcript(
        story_project_id=project.id,
        title="Lighthouse Interview",
        content=TRANSCRIPT_TEXT,
        word_count=len(TRANSCRIPT_TEXT.split()),
    )
    session.add(transcript)
    await session.commit()
    await session.refresh(transcript)
    return transcript


@pytest_asyncio.fixture
async def story_transcript(
    session: AsyncSession,
    transcript: Transcript,
    analysis_payload: Dict[str, Any],
    summary_payload: Dict[str, Any],
    scenes_payload: Dict[str, Any],
    beats_payload: Dict[str, Any],
) -> Transcript:
    """A transcript with the analysis and phases 1-3 saved."""
    transcript.story_metadata = {
        "analysis": analysis_payload,
        "story_summary": summary_payload,
        "scene_structure": scenes_payload,
        "scene_beats": beats_payload,
    }
    session.add(transcript)
    await session.commit()
    await session.refresh(transcript)
    return transcript
