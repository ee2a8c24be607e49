"""
Unit tests for server exception handlers.

Tests cover the domain error mapping and the global fallback handler.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
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
from muse_ai.server.exception_handlers import (
    domain_error_handler,
    global_exception_handler,
    setup_exception_handlers,
    status_for,
)


@pytest.fixture
def mock_request():
    request = Mock(spec=Request)
    request.method = "POST"
    request.url.path = "/api/v1/transcripts/1/phases/2/generate"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


def _body(response: JSONResponse) -> dict:
    return json.loads(response.body.decode())


class TestStatusMapping:
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (TranscriptNotFoundError(1), 404),
            (ChangeNotFoundError(1), 404),
            (DocumentNotFoundError(1), 404),
            (ProjectNotFoundError(1), 404),
            (TranscriptAccessDeniedError(1, "user-2"), 403),
            (PhasePrerequisiteError(1), 400),
            (AnalysisRequiredError(1), 400),
            (InvalidPhaseError(9), 400),
            (UnsupportedDocumentTypeError("pdf"), 400),
            (DocumentParseError("bible.txt", "bad bytes"), 422),
            (FeatureLockedError("advancedExports"), 402),
            (MuseError("anything else"), 400),
        ],
    )
    def test_status_for(self, exc, expected):
        assert status_for(exc) == expected


class TestDomainErrorHandler:
    @pytest.mark.asyncio
    async def test_base_body(self, mock_request):
        response = await domain_error_handler(mock_request, TranscriptNotFoundError(42))

        assert response.status_code == 404
        body = _body(response)
        assert body["error_type"] == "TranscriptNotFoundError"
        assert "42" in body["detail"]
        assert "phase_required" not in body

    @pytest.mark.asyncio
    async def test_prerequisite_carries_phase(self, mock_request):
        response = await domain_error_handler(
            mock_request, PhasePrerequisiteError(2, "Scene structure required. Please complete Phase 2 first.")
        )

        body = _body(response)
        assert body["phase_required"] == 2
        assert body["detail"] == "Scene structure required. Please complete Phase 2 first."

    @pytest.mark.asyncio
    async def test_feature_locked_carries_trigger(self, mock_request):
        trigger = {"feature": "advancedExports", "required_tier": "pro"}

        response = await domain_error_handler(mock_request, FeatureLockedError("advancedExports", trigger))

        assert response.status_code == 402
        body = _body(response)
        assert body["feature"] == "advancedExports"
        assert body["trigger"] == trigger


class TestGlobalExceptionHandler:
    @pytest.mark.asyncio
    async def test_logs_and_returns_500(self, mock_request):
        exc = RuntimeError("boom")

        with patch("muse_ai.server.exception_handlers.global_handler.logger") as mock_logger:
            response = await global_exception_handler(mock_request, exc)

        mock_logger.error.assert_called_once()
        call_args = mock_logger.error.call_args
        assert "Unhandled exception" in call_args[0][0]
        assert call_args[1]["extra"]["error_type"] == "RuntimeError"
        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = _body(response)
        assert body["detail"] == "Internal server error"
        assert body["error_id"] == id(exc)
        assert body["error_type"] == "RuntimeError"

    @pytest.mark.asyncio
    async def test_missing_client(self, mock_request):
        mock_request.client = None

        with patch("muse_ai.server.exception_handlers.global_handler.logger") as mock_logger:
            await global_exception_handler(mock_request, ValueError("x"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"


class TestSetupExceptionHandlers:
    def test_registers_handlers(self):
        app = FastAPI()

        setup_exception_handlers(app)

        assert app.exception_handlers[MuseError] is domain_error_handler
        assert app.exception_handlers[Exception] is global_exception_handler
