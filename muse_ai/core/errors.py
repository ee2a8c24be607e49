"""Error types for MUSE.

Defines the exception hierarchy raised by the story, production bible and
paywall layers. The server maps each family onto an HTTP status in
``muse_ai.server.exception_handlers``.
"""

from __future__ import annotations

from typing import Any, Optional


class MuseError(Exception):
    """Base error for all MUSE domain exceptions."""


class TranscriptNotFoundError(MuseError):
    """Raised when a transcript id does not resolve to a row."""

    def __init__(self, transcript_id: int) -> None:
        self.transcript_id = transcript_id
        super().__init__(f"Transcript not found: {transcript_id}")


class TranscriptAccessDeniedError(MuseError):
    """Raised when the caller does not own the transcript's story project."""

    def __init__(self, transcript_id: int, user_id: str) -> None:
        self.transcript_id = transcript_id
        self.user_id = user_id
        super().__init__(f"User '{user_id}' cannot access transcript {transcript_id}")


class ChangeNotFoundError(MuseError):
    """Raised when a Living Story change is missing or not in the expected state."""

    def __init__(self, change_id: int, reason: str = "not found") -> None:
        self.change_id = change_id
        super().__init__(f"Change {change_id} {reason}")


class DocumentNotFoundError(MuseError):
    """Raised when a production bible document id does not resolve."""

    def __init__(self, document_id: int) -> None:
        self.document_id = document_id
        super().__init__(f"Production bible document not found: {document_id}")


class InvalidPhaseError(MuseError):
    """Raised for phase numbers outside 1-4 or payloads that do not fit the phase."""

    def __init__(self, phase: Any, message: Optional[str] = None) -> None:
        self.phase = phase
        super().__init__(message or f"Invalid phase: {phase}")


class PhasePrerequisiteError(MuseError):
    """Raised when a phase is requested before the phase it builds on exists."""

    def __init__(self, phase_required: int, message: Optional[str] = None) -> None:
        self.phase_required = phase_required
        super().__init__(message or f"Phase {phase_required} must be completed first")


class UnsupportedDocumentTypeError(MuseError):
    """Raised for production bible formats the parser does not read."""

    def __init__(self, file_type: str) -> None:
        self.file_type = file_type
        super().__init__(f"Unsupported document type: '{file_type}'")


class DocumentParseError(MuseError):
    """Raised when a production bible document cannot be read or decoded."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        super().__init__(f"Failed to parse '{name}': {message}")


class FeatureLockedError(MuseError):
    """Raised when the caller's subscription tier does not allow a feature."""

    def __init__(self, feature: str, trigger: Optional[dict[str, Any]] = None) -> None:
        self.feature = feature
        self.trigger = trigger
        super().__init__(f"Feature '{feature}' requires an upgrade")


class ProjectNotFoundError(MuseError):
    """Raised when a story project id does not resolve or belongs to another user."""

    def __init__(self, project_id: int) -> None:
        self.project_id = project_id
        super().__init__(f"Story project not found: {project_id}")


class AnalysisRequiredError(MuseError):
    """Raised when summaries are requested before the transcript has been analyzed."""

    def __init__(self, transcript_id: int) -> None:
        self.transcript_id = transcript_id
        super().__init__(f"Transcript {transcript_id} has no story moments; run the analysis first")
