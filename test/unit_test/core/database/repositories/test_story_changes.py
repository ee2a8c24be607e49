"""Unit tests for the Living Story change repository.

Tests run against in-memory SQLite so the SQL guards (pending-only
decisions, trimming that spares pending rows) are exercised for real.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from muse_ai.core.database.entities.story_changes import StoryChangeRecord
from muse_ai.core.database.repositories.story_changes import StoryChangeRepository

pytestmark = pytest.mark.asyncio


def _record(transcript_id: int, status: str = "applied", field: str = "summary") -> StoryChangeRecord:
    return StoryChangeRecord(
        transcript_id=transcript_id,
        user_id="user-1",
        phase=1,
        change_type="edit" if status == "applied" else "auto_update",
        field=field,
        old_value="old",
        new_value="new",
        reason="test",
        affected_phases=[2, 3, 4],
        status=status,
    )


class TestStoryChangeRepositoryWithMockSession:
    @pytest.fixture
    def mock_session(self):
        session = AsyncMock()
        session.add = MagicMock()
        session.add_all = MagicMock()
        return session

    async def test_add_many_commits_once(self, mock_session):
        repository = StoryChangeRepository(mock_session)
        records = [_record(1), _record(1, field="theme")]

        result = await repository.add_many(records)

        mock_session.add_all.assert_called_once_with(records)
        mock_session.commit.assert_awaited_once()
        assert mock_session.refresh.await_count == 2
        assert result == records


class TestStoryChangeRepository:
    async def test_list_for_transcript_is_newest_first(self, session, transcript):
        repository = StoryChangeRepository(session)
        first = await repository.create(_record(transcript.id, field="a"))
        second = await repository.create(_record(transcript.id, field="b"))

        history = await repository.list_for_transcript(transcript.id)

        assert [r.id for r in history] == [second.id, first.id]
        assert (await repository.latest_for_transcript(transcript.id)).id == second.id

    async def test_json_columns_round_trip(self, session, transcript):
        repository = StoryChangeRepository(session)
        record = _record(transcript.id)
        record.new_value = {"scenes": [{"title": "Opening"}]}

        stored = await repository.create(record)
        fetched = await repository.get_by_id(stored.id)

        assert fetched.new_value == {"scenes": [{"title": "Opening"}]}
        assert fetched.affected_phases == [2, 3, 4]

    async def test_pending_queries(self, session, transcript):
        repository = StoryChangeRepository(session)
        await repository.create(_record(transcript.id))
        pending = await repository.create(_record(transcript.id, status="pending"))

        assert [r.id for r in await repository.list_pending(transcript.id)] == [pending.id]
        assert await repository.count_pending(transcript.id) == 1
        assert (await repository.get_pending(transcript.id, pending.id)).id == pending.id

    async def test_get_for_transcript_rejects_other_transcript(self, session, transcript):
        repository = StoryChangeRepository(session)
        record = await repository.create(_record(transcript.id))

        assert await repository.get_for_transcript(transcript.id + 1, record.id) is None
        assert await repository.get_for_transcript(transcript.id, record.id) is not None

    async def test_decide_only_once(self, session, transcript):
        repository = StoryChangeRepository(session)
        record = await repository.create(_record(transcript.id, status="pending"))

        decided = await repository.decide(record, "accepted")
        assert decided is not None
        assert decided.status == "accepted"
        assert decided.decided_at is not None

        assert await repository.decide(record, "rejected") is None
        assert (await repository.get_by_id(record.id)).status == "accepted"

    async def test_trim_history_keeps_newest_and_pending(self, session, transcript):
        repository = StoryChangeRepository(session)
        pending = await repository.create(_record(transcript.id, status="pending"))
        applied = [await repository.create(_record(transcript.id, field=f"f{i}")) for i in range(5)]

        deleted = await repository.trim_history(transcript.id, keep=2)

        remaining = {r.id for r in await repository.list_for_transcript(transcript.id)}
        assert deleted == 3
        assert remaining == {pending.id, applied[-1].id, applied[-2].id}

    async def test_trim_history_on_empty_log(self, session, transcript):
        repository = StoryChangeRepository(session)
        assert await repository.trim_history(transcript.id, keep=10) == 0
