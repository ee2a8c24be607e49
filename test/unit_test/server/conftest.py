from typing import AsyncGenerator
from unittest.mock import patch

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from muse_ai.core.database import get_session
    from muse_ai.server.main import app
    from muse_ai.server.services.deps import get_story_generator
    from muse_ai.story.generator import StoryGenerator

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    def get_story_generator_override() -> StoryGenerator:
        return StoryGenerator(model=None)

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_story_generator] = get_story_generator_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("muse_ai.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()
