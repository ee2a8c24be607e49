"""Living Story change tracking.

``LivingStoryManager`` records every edit to a phase in the durable change
log, proposes regenerated downstream phases as pending changes and applies
or discards them when the user decides. All state lives in the database:
a manager is cheap to build per request and two instances over the same
database see the same pending queue and history.

Change lifecycle::

    edit / manual_update  -> applied                 (recorded as it happens)
    auto_update           -> pending -> accepted     (written to the transcript)
                                     -> rejected
"""

from __future__ import annotations

import copy
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from muse_ai.core.database.entities.story_changes import StoryChangeRecord
from muse_ai.core.database.entities.transcripts import Transcript
from muse_ai.core.database.repositories.story_changes import StoryChangeRepository
from muse_ai.core.database.repositories.transcripts import TranscriptRepository
from muse_ai.core.errors import ChangeNotFoundError, InvalidPhaseError, TranscriptNotFoundError
from muse_ai.core.logging_config import get_logger
from muse_ai.core.monitoring import log_story_change

from .dependencies import RiskLevel, get_affected_phases, get_dependencies, risk_level
from .diff import find_changed_fields, has_significant_changes
from .generator import StoryGenerator
from .phases import PHASE_METADATA_KEYS, Phase, StoryData, validate_phase_payload

logger = get_logger(__name__)

FULL_PHASE_FIELD = "full_phase_data"
RECENT_CHANGES_WINDOW = 10
# paths find_changed_fields reports when the whole payload differs
WHOLE_PAYLOAD_FIELDS = (FULL_PHASE_FIELD, "root", "value", "array")


class ChangeType(str, Enum):
    edit = "edit"
    auto_update = "auto_update"
    manual_update = "manual_update"


class ChangeStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    applied = "applied"


class StoryChange(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    transcript_id: int
    user_id: str
    phase: int
    change_type: ChangeType
    field: str
    old_value: Any = None
    new_value: Any = None
    reason: str
    affected_phases: List[int] = Field(default_factory=list)
    status: ChangeStatus
    created_at: datetime
    decided_at: Optional[datetime] = None


class FieldChangePreview(BaseModel):
    field: str
    before: Any = None
    after: Any = None
    confidence: float = 0.8
    reason: str = "Updated based on upstream changes"


class PhaseImpact(BaseModel):
    phase: int
    affected_fields: List[str] = Field(default_factory=lambda: ["multiple"])
    risk_level: RiskLevel


class ChangePreview(BaseModel):
    change_id: int
    phase: int
    changes: List[FieldChangePreview]
    impact: List[PhaseImpact]


class LivingStoryStatus(BaseModel):
    transcript_id: int
    pending_changes_count: int
    recent_changes_count: int
    last_change: Optional[datetime] = None
    living_story_active: bool = True


def set_path(data: Optional[Dict[str, Any]], path: str, value: Any) -> Dict[str, Any]:
    """Return a copy of ``data`` with the dotted ``path`` set to ``value``.

    A ``None`` value removes the key, mirroring how a missing key is
    reported by ``find_changed_fields``.
    """
    result = copy.deepcopy(data) if data else {}
    keys = path.split(".")
    node = result
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    if value is None:
        node.pop(keys[-1], None)
    else:
        node[keys[-1]] = value
    return result


def _check_payload(phase: Phase, payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidPhaseError(int(phase), f"Phase {int(phase)} data must be an object")
    try:
        return validate_phase_payload(phase, payload)
    except ValidationError as e:
        raise InvalidPhaseError(
            int(phase), f"Phase {int(phase)} data does not match the phase schema: {e.error_count()} errors"
        ) from e


class LivingStoryManager:
    """Durable change log and approval queue for one database session."""

    def __init__(
        self,
        session: AsyncSession,
        generator: StoryGenerator,
        *,
        history_limit: int = 100,
    ) -> None:
        self._changes = StoryChangeRepository(session)
        self._transcripts = TranscriptRepository(session)
        self._generator = generator
        self._history_limit = history_limit

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    async def detect_changes(
        self,
        *,
        transcript_id: int,
        user_id: str,
        phase: Phase,
        old_data: Any,
        new_data: Any,
    ) -> List[StoryChange]:
        """Record one ``edit`` change per field that differs between two phase payloads.

        Raises:
            InvalidPhaseError: a payload of phases 1-3 does not fit the phase schema.
        """
        if phase != Phase.EXPORT:
            for data in (old_data, new_data):
                if data is not None:
                    _check_payload(phase, data)
        affected = [int(p) for p in get_affected_phases(phase)]
        records = [
            StoryChangeRecord(
                transcript_id=transcript_id,
                user_id=user_id,
                phase=int(phase),
                change_type=ChangeType.edit.value,
                field=change.field,
                old_value=change.old_value,
                new_value=change.new_value,
                reason=f"User edited {change.field} in Phase {int(phase)}",
                affected_phases=affected,
                status=ChangeStatus.applied.value,
            )
            for change in find_changed_fields(old_data, new_data)
        ]
        if not records:
            return []

        await self._changes.add_many(records)
        await self._changes.trim_history(transcript_id, self._history_limit)
        logger.info(f"Detected {len(records)} changes in phase {int(phase)} of transcript {transcript_id}")
        for record in records:
            log_story_change(transcript_id, record.id, record.change_type, record.status)  # type: ignore[arg-type]
        return [StoryChange.model_validate(r) for r in records]

    async def generate_auto_updates(
        self, *, transcript_id: int, user_id: str, source_change_id: int
    ) -> List[StoryChange]:
        """Propose regenerated versions of the phases downstream of a recorded change.

        Low priority dependencies and targets without data are skipped, as
        are regenerations that differ only trivially from the current
        payload. A failure for one target does not stop the others.

        Raises:
            ChangeNotFoundError: the source change is not in this transcript's history.
            TranscriptNotFoundError: the transcript no longer exists.
        """
        source = await self._changes.get_for_transcript(transcript_id, source_change_id)
        if source is None or source.status == ChangeStatus.pending.value:
            raise ChangeNotFoundError(source_change_id, "is not in the change history")

        transcript = await self._require_transcript(transcript_id)
        story = StoryData.from_metadata(transcript.story_metadata)
        story.phase4 = None  # generated on demand
        story_dump = story.model_dump()

        proposals: List[StoryChange] = []
        for dependency in get_dependencies(Phase(source.phase)):
            if dependency.priority.value == "low":
                continue
            target_data = story.get(dependency.target_phase)
            if not target_data:
                continue

            try:
                updated = await self._generator.regenerate_phase(
                    dependency=dependency,
                    changed_field=source.field,
                    new_value=source.new_value,
                    story_data=story_dump,
                    target_data=target_data,
                )
                if updated is None or not has_significant_changes(target_data, updated):
                    continue

                target = int(dependency.target_phase)
                record = await self._changes.create(
                    StoryChangeRecord(
                        transcript_id=transcript_id,
                        user_id=user_id,
                        phase=target,
                        change_type=ChangeType.auto_update.value,
                        field=FULL_PHASE_FIELD,
                        old_value=target_data,
                        new_value=updated,
                        reason=(
                            f"Auto-updated Phase {target} based on changes to "
                            f"{source.field} in Phase {source.phase}"
                        ),
                        affected_phases=[int(p) for p in get_affected_phases(dependency.target_phase)],
                        status=ChangeStatus.pending.value,
                    )
                )
                log_story_change(transcript_id, record.id, record.change_type, record.status)  # type: ignore[arg-type]
                proposals.append(StoryChange.model_validate(record))
            except Exception as e:
                logger.error(
                    f"Failed to generate auto-update for phase {int(dependency.target_phase)}: {e}",
                    exc_info=True,
                )

        logger.info(f"Generated {len(proposals)} auto-updates from change {source_change_id}")
        return proposals

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def generate_change_preview(self, transcript_id: int, change_id: int) -> Optional[ChangePreview]:
        """Field level before/after view of a pending change. None if it is not pending."""
        record = await self._changes.get_pending(transcript_id, change_id)
        if record is None:
            return None
        return self._preview(record)

    @staticmethod
    def _preview(record: StoryChangeRecord) -> ChangePreview:
        risk = risk_level(Phase(record.phase))
        return ChangePreview(
            change_id=record.id,  # type: ignore[arg-type]
            phase=record.phase,
            changes=[
                FieldChangePreview(field=c.field, before=c.old_value, after=c.new_value)
                for c in find_changed_fields(record.old_value, record.new_value)
            ],
            impact=[PhaseImpact(phase=p, risk_level=risk) for p in record.affected_phases],
        )

    async def accept_change(self, transcript_id: int, change_id: int) -> StoryChange:
        """Accept a pending change and write its new value to the transcript.

        Raises:
            ChangeNotFoundError: the change is unknown or was already decided.
            InvalidPhaseError: the new value no longer fits the phase schema.
        """
        pending = await self._changes.get_pending(transcript_id, change_id)
        if pending is None:
            raise ChangeNotFoundError(change_id, "not found or already processed")
        transcript = await self._require_transcript(transcript_id)
        payload = self._rebuild(transcript, pending.phase, pending.field, pending.new_value)

        record = await self._decide(transcript_id, change_id, ChangeStatus.accepted)
        await self._write(transcript, record.phase, payload)
        return StoryChange.model_validate(record)

    async def reject_change(self, transcript_id: int, change_id: int) -> StoryChange:
        """Reject a pending change. The transcript is left untouched."""
        record = await self._decide(transcript_id, change_id, ChangeStatus.rejected)
        return StoryChange.model_validate(record)

    async def _decide(self, transcript_id: int, change_id: int, status: ChangeStatus) -> StoryChangeRecord:
        record = await self._changes.get_pending(transcript_id, change_id)
        decided = await self._changes.decide(record, status.value) if record is not None else None
        if decided is None:
            raise ChangeNotFoundError(change_id, "not found or already processed")
        log_story_change(transcript_id, change_id, decided.change_type, decided.status)
        await self._changes.trim_history(transcript_id, self._history_limit)
        return decided

    async def undo_change(self, transcript_id: int, change_id: int) -> Any:
        """Revert a change from the history.

        A ``manual_update`` change with the values swapped is appended to the
        log and the old value is written back to the transcript.

        Returns:
            The restored value.

        Raises:
            ChangeNotFoundError: the change is not in this transcript's history.
            InvalidPhaseError: restoring the old value would break the phase schema.
        """
        original = await self._changes.get_for_transcript(transcript_id, change_id)
        if original is None or original.status in (ChangeStatus.pending.value, ChangeStatus.rejected.value):
            raise ChangeNotFoundError(change_id, "not found or cannot be undone")

        transcript = await self._require_transcript(transcript_id)
        payload = self._rebuild(transcript, original.phase, original.field, original.old_value)
        undo = await self._changes.create(
            StoryChangeRecord(
                transcript_id=transcript_id,
                user_id=original.user_id,
                phase=original.phase,
                change_type=ChangeType.manual_update.value,
                field=original.field,
                old_value=original.new_value,
                new_value=original.old_value,
                reason=f"Undo: {original.reason}",
                affected_phases=list(original.affected_phases),
                status=ChangeStatus.applied.value,
            )
        )
        await self._write(transcript, undo.phase, payload)
        await self._changes.trim_history(transcript_id, self._history_limit)
        log_story_change(transcript_id, undo.id, undo.change_type, undo.status)  # type: ignore[arg-type]
        return original.old_value

    @staticmethod
    def _rebuild(transcript: Transcript, phase: int, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """The phase payload with ``field`` set to ``value``, checked against the phase schema.

        None for the export phase, which is regenerated on demand, and for a
        whole payload reverted to nothing.
        """
        if Phase(phase) == Phase.EXPORT:
            return None
        if field in WHOLE_PAYLOAD_FIELDS:
            payload = value
        else:
            key = PHASE_METADATA_KEYS[Phase(phase)]
            payload = set_path((transcript.story_metadata or {}).get(key), field, value)
        if payload is None:
            return None
        return _check_payload(Phase(phase), payload)

    async def _write(self, transcript: Transcript, phase: int, payload: Optional[Dict[str, Any]]) -> None:
        if Phase(phase) == Phase.EXPORT:
            return
        await self._transcripts.update_metadata(transcript, PHASE_METADATA_KEYS[Phase(phase)], payload)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_pending_changes(self, transcript_id: int) -> List[StoryChange]:
        return [StoryChange.model_validate(r) for r in await self._changes.list_pending(transcript_id)]

    async def get_pending_with_previews(self, transcript_id: int) -> List[Dict[str, Any]]:
        records = await self._changes.list_pending(transcript_id)
        return [{"change": StoryChange.model_validate(r), "preview": self._preview(r)} for r in records]

    async def get_change_history(self, transcript_id: int, limit: Optional[int] = None) -> List[StoryChange]:
        """Decided and applied changes, newest first. Pending changes are not history yet."""
        records = await self._changes.list_for_transcript(transcript_id)
        history = [r for r in records if r.status != ChangeStatus.pending.value]
        if limit is not None:
            history = history[:limit]
        return [StoryChange.model_validate(r) for r in history]

    async def get_status(self, transcript_id: int) -> LivingStoryStatus:
        recent = await self.get_change_history(transcript_id, limit=RECENT_CHANGES_WINDOW)
        return LivingStoryStatus(
            transcript_id=transcript_id,
            pending_changes_count=await self._changes.count_pending(transcript_id),
            recent_changes_count=len(recent),
            last_change=recent[0].created_at if recent else None,
        )

    async def _require_transcript(self, transcript_id: int) -> Transcript:
        transcript = await self._transcripts.get_by_id(transcript_id)
        if transcript is None:
            raise TranscriptNotFoundError(transcript_id)
        return transcript
