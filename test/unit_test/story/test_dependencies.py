"""Unit tests for the phase dependency table."""

import pytest

from muse_ai.story.dependencies import (
    PHASE_DEPENDENCIES,
    RiskLevel,
    UpdatePriority,
    UpdateType,
    get_affected_phases,
    get_dependencies,
    risk_level,
)
from muse_ai.story.phases import Phase


class TestPhaseDependencies:
    def test_summary_feeds_every_later_phase(self):
        assert get_affected_phases(Phase.SUMMARY) == [Phase.SCENES, Phase.BEATS, Phase.EXPORT]

    def test_scenes_feed_beats_and_export(self):
        assert get_affected_phases(Phase.SCENES) == [Phase.BEATS, Phase.EXPORT]

    def test_beats_feed_export(self):
        assert get_affected_phases(Phase.BEATS) == [Phase.EXPORT]

    def test_export_has_no_dependents(self):
        assert get_dependencies(Phase.EXPORT) == []

    def test_export_targets_are_low_priority(self):
        for dependency in PHASE_DEPENDENCIES:
            if dependency.target_phase == Phase.EXPORT:
                assert dependency.priority == UpdatePriority.low
                assert dependency.update_type == UpdateType.field_specific

    def test_summary_to_scenes(self):
        dependency = get_dependencies(Phase.SUMMARY)[0]
        assert dependency.fields == ("summary", "theme", "genre_indicators")
        assert dependency.update_type == UpdateType.intelligent_merge
        assert dependency.priority == UpdatePriority.high

    def test_dependencies_are_immutable(self):
        with pytest.raises(Exception):
            PHASE_DEPENDENCIES[0].priority = UpdatePriority.low  # type: ignore[misc]


@pytest.mark.parametrize(
    "phase,expected",
    [
        (Phase.SUMMARY, RiskLevel.high),
        (Phase.SCENES, RiskLevel.medium),
        (Phase.BEATS, RiskLevel.low),
        (Phase.EXPORT, RiskLevel.low),
    ],
)
def test_risk_level(phase, expected):
    assert risk_level(phase) == expected
