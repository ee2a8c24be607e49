"""
Domain Exception Handlers.

Translates ``MuseError`` subclasses into JSON error responses. The body
always carries ``detail`` and ``error_type``; prerequisite errors add
``phase_required`` and paywall errors add the upgrade ``trigger``.
"""

from typing import Any, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse

from muse_ai.core.errors import (
    AnalysisRequiredError,
    ChangeNotFoundError,
    DocumentNotFoundError,
    DocumentParseError,
    FeatureLockedError,
    InvalidPhaseError,
    MuseError,
    PhasePrerequisiteError,
    ProjectNotFoundError,
    TranscriptAccessDeniedError,
    TranscriptNotFoundError,
    UnsupportedDocumentTypeError,
)
from muse_ai.core.logging_config import get_logger

logger = get_logger(__name__)

ERROR_STATUS = (
    (TranscriptNotFoundError, status.HTTP_404_NOT_FOUND),
    (ChangeNotFoundError, status.HTTP_404_NOT_FOUND),
    (DocumentNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProjectNotFoundError, status.HTTP_404_NOT_FOUND),
    (TranscriptAccessDeniedError, status.HTTP_403_FORBIDDEN),
    (PhasePrerequisiteError, status.HTTP_400_BAD_REQUEST),
    (AnalysisRequiredError, status.HTTP_400_BAD_REQUEST),
    (InvalidPhaseError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedDocumentTypeError, status.HTTP_400_BAD_REQUEST),
    (DocumentParseError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (FeatureLockedError, status.HTTP_402_PAYMENT_REQUIRED),
)


def status_for(exc: MuseError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


async def domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    code = status_for(exc)  # type: ignore[arg-type]
    content: Dict[str, Any] = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, PhasePrerequisiteError):
        content["phase_required"] = exc.phase_required
    if isinstance(exc, FeatureLockedError):
        content["feature"] = exc.feature
        content["trigger"] = exc.trigger

    logger.info(f"{request.method} {request.url.path} -> {code} {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=code, content=content)
