"""Unit tests for the MUSE error hierarchy."""

import pytest

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


class TestErrorMessages:
    def test_transcript_not_found_keeps_id(self):
        err = TranscriptNotFoundError(42)
        assert err.transcript_id == 42
        assert str(err) == "Transcript not found: 42"

    def test_access_denied_names_user(self):
        err = TranscriptAccessDeniedError(7, "user-2")
        assert "user-2" in str(err)
        assert err.transcript_id == 7

    def test_change_not_found_reason(self):
        assert str(ChangeNotFoundError(3, "not found or already processed")) == (
            "Change 3 not found or already processed"
        )
        assert str(ChangeNotFoundError(3)) == "Change 3 not found"

    def test_invalid_phase_default_and_custom_message(self):
        assert str(InvalidPhaseError(9)) == "Invalid phase: 9"
        assert str(InvalidPhaseError(4, "generated")) == "generated"

    def test_phase_prerequisite_carries_required_phase(self):
        err = PhasePrerequisiteError(2)
        assert err.phase_required == 2
        assert str(err) == "Phase 2 must be completed first"

    def test_feature_locked_keeps_trigger(self):
        trigger = {"feature": "advancedExports", "required_tier": "pro"}
        err = FeatureLockedError("advancedExports", trigger)
        assert err.feature == "advancedExports"
        assert err.trigger == trigger
        assert "requires an upgrade" in str(err)

    def test_parse_and_type_errors(self):
        assert "bible.md" in str(DocumentParseError("bible.md", "bad bytes"))
        assert UnsupportedDocumentTypeError("pdf").file_type == "pdf"

    def test_analysis_required_message(self):
        assert "run the analysis first" in str(AnalysisRequiredError(5))


@pytest.mark.parametrize(
    "error",
    [
        TranscriptNotFoundError(1),
        TranscriptAccessDeniedError(1, "u"),
        ChangeNotFoundError(1),
        DocumentNotFoundError(1),
        InvalidPhaseError(0),
        PhasePrerequisiteError(1),
        UnsupportedDocumentTypeError("pdf"),
        DocumentParseError("x", "y"),
        FeatureLockedError("arcGenerator"),
        ProjectNotFoundError(1),
        AnalysisRequiredError(1),
    ],
)
def test_every_error_is_a_muse_error(error):
    assert isinstance(error, MuseError)
