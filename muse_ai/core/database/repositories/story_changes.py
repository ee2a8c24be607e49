"""
Living Story change repository.

The change log is append-only: new records are added through ``create``,
and the only in-place update is the status transition of a pending change.
History is bounded per transcript by ``trim_history``.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, func, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now
from ..entities.story_changes import StoryChangeRecord
from .base import SqlRepository


class StoryChangeRepository(SqlRepository[StoryChangeRecord]):
    """Repository for the Living Story change log."""

    order_by = col(StoryChangeRecord.id).desc()

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StoryChangeRecord)

    async def add_many(self, records: List[StoryChangeRecord]) -> List[StoryChangeRecord]:
        """Append several change records in one transaction."""
        self.session.add_all(records)
        await self.session.commit()
        for record in records:
            await self.session.refresh(record)
        return records

    async def list_for_transcript(self, transcript_id: int, limit: Optional[int] = None) -> List[StoryChangeRecord]:
        """History for a transcript, newest first."""
        return await self.list(limit=limit, filters={"transcript_id": transcript_id})

    async def list_pending(self, transcript_id: int) -> List[StoryChangeRecord]:
        """Pending changes for a transcript in the order they were proposed."""
        stmt = (
            select(StoryChangeRecord)
            .where(StoryChangeRecord.transcript_id == transcript_id)
            .where(StoryChangeRecord.status == "pending")
            .order_by(col(StoryChangeRecord.id).asc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_for_transcript(self, transcript_id: int, change_id: int) -> Optional[StoryChangeRecord]:
        """A change by id, only if it belongs to ``transcript_id``."""
        record = await self.get_by_id(change_id)
        if record is None or record.transcript_id != transcript_id:
            return None
        return record

    async def get_pending(self, transcript_id: int, change_id: int) -> Optional[StoryChangeRecord]:
        """A change by id, only if it belongs to the transcript and is still pending."""
        record = await self.get_for_transcript(transcript_id, change_id)
        if record is None or record.status != "pending":
            return None
        return record

    async def latest_for_transcript(self, transcript_id: int) -> Optional[StoryChangeRecord]:
        records = await self.list_for_transcript(transcript_id, limit=1)
        return records[0] if records else None

    async def count_pending(self, transcript_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(StoryChangeRecord)
            .where(StoryChangeRecord.transcript_id == transcript_id)
            .where(StoryChangeRecord.status == "pending")
        )
        result = await self.session.exec(stmt)
        return int(result.one())

    async def decide(self, record: StoryChangeRecord, status: str) -> Optional[StoryChangeRecord]:
        """Move a pending change to ``accepted`` or ``rejected``.

        The update is guarded on ``status == 'pending'`` in SQL so that two
        concurrent decisions cannot both succeed; the loser gets None back.
        """
        stmt = (
            update(StoryChangeRecord)
            .where(col(StoryChangeRecord.id) == record.id)
            .where(col(StoryChangeRecord.status) == "pending")
            .values(status=status, decided_at=utc_now())
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        if result.rowcount == 0:
            return None
        await self.session.refresh(record)
        return record

    async def trim_history(self, transcript_id: int, keep: int) -> int:
        """Delete all but the newest ``keep`` non-pending records of a transcript.

        Pending changes are never trimmed; they are still awaiting a decision.

        Returns:
            Number of records deleted.
        """
        newest = (
            select(StoryChangeRecord.id)
            .where(StoryChangeRecord.transcript_id == transcript_id)
            .order_by(col(StoryChangeRecord.id).desc())
            .limit(keep)
        )
        kept_ids = list((await self.session.exec(newest)).all())
        if not kept_ids:
            return 0
        stmt = (
            delete(StoryChangeRecord)
            .where(col(StoryChangeRecord.transcript_id) == transcript_id)
            .where(col(StoryChangeRecord.status) != "pending")
            .where(col(StoryChangeRecord.id).not_in(kept_ids))
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0
