"""Unit tests for scene and beat validation reports."""

from muse_ai.story.generator import fallback_beats, fallback_scenes
from muse_ai.story.phases import Pacing, SceneBeats, SceneStructure
from muse_ai.story.validation import validate_beat_breakdown, validate_scene_coherence


class TestValidateSceneCoherence:
    def test_template_structure_is_sound(self):
        report = validate_scene_coherence(fallback_scenes())

        assert report.is_structurally_sound is True
        assert report.issues == []
        assert "Good pacing variation across scenes" in report.strengths
        assert "Strong structural cohesion" in report.strengths
        assert report.needs_revision is False
        assert report.overall_score == 10

    def test_wrong_scene_count_is_an_issue(self):
        structure = fallback_scenes()
        structure.scenes = structure.scenes[:3]

        report = validate_scene_coherence(structure)

        assert "Expected 4 scenes, found 3" in report.issues
        assert report.is_structurally_sound is False
        assert report.needs_revision is True

    def test_empty_scene_list_earns_no_strengths(self):
        structure = fallback_scenes()
        structure.scenes = []

        report = validate_scene_coherence(structure)

        assert "Good pacing variation across scenes" not in report.strengths
        assert "Clear character development in each scene" not in report.strengths
        assert "Some scenes lack clear character development" in report.warnings

    def test_early_and_low_peak_tension(self):
        structure = fallback_scenes()
        for scene, tension in zip(structure.scenes, (6, 5, 4, 3)):
            scene.tension_level = tension

        report = validate_scene_coherence(structure)

        assert any("Peak tension occurs early" in w for w in report.warnings)
        assert any("Peak tension seems low" in w for w in report.warnings)

    def test_missing_stakes_and_movement(self):
        structure = fallback_scenes()
        structure.scenes[1].stakes = "none"
        structure.scenes[1].forward_movement = ""

        report = validate_scene_coherence(structure)

        assert "Scene 2 lacks clear stakes" in report.issues
        assert "Scene 2 lacks clear forward movement" in report.issues
        assert report.overall_score == 6

    def test_uniform_pacing_and_weak_cohesion(self):
        structure = fallback_scenes()
        for scene in structure.scenes:
            scene.pacing = Pacing.medium
        structure.arc_analysis.cohesion_strength = 5

        report = validate_scene_coherence(structure)

        assert any("same pacing" in w for w in report.warnings)
        assert "Scene cohesion may need strengthening" in report.warnings


class TestValidateBeatBreakdown:
    def test_template_beats_are_production_ready(self):
        report = validate_beat_breakdown(fallback_beats(fallback_scenes()))

        assert report.issues == []
        assert report.is_production_ready is True
        assert report.character_consistency is True
        assert report.beat_count == 5 + 5 + 6 + 4
        assert "Good beat count for production planning" in report.strengths
        assert "All beats include visual elements for production" in report.strengths

    def test_missing_character_focus(self):
        beats = fallback_beats(fallback_scenes())
        beats.scene_breakdowns[0].beats[0].character_focus = []

        report = validate_beat_breakdown(beats)

        assert "Scene 1, Beat 1: Missing character focus" in report.issues
        assert report.character_consistency is False
        assert report.is_production_ready is False

    def test_untracked_characters(self):
        beats = fallback_beats(fallback_scenes())
        beats.character_tracking.character_arcs = {}

        report = validate_beat_breakdown(beats)

        assert "No character arcs are being tracked" in report.issues

    def test_low_beat_count_warning(self):
        structure = fallback_scenes()
        beats = fallback_beats(structure)
        short = SceneBeats.model_validate(
            {**beats.model_dump(), "scene_breakdowns": [beats.scene_breakdowns[0].model_dump()]}
        )

        report = validate_beat_breakdown(short)

        assert any("Low beat count" in w for w in report.warnings)

    def test_weak_transition_only_counts_before_last_beat(self):
        beats = fallback_beats(fallback_scenes())
        scene = beats.scene_breakdowns[0]
        scene.beats[-1].transition_to_next = ""
        scene.beats[0].transition_to_next = "ok"

        report = validate_beat_breakdown(beats)

        assert report.warnings == ["Scene 1, Beat 1: Weak transition to next beat"]
