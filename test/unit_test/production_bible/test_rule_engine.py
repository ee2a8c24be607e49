from __future__ import annotations

from typing import Optional

import pytest

from muse_ai.core.database.entities.production_bible import ProductionBibleRule
from muse_ai.production_bible.models import DocumentContent, RulePriority
from muse_ai.production_bible.rule_engine import RuleEngine, extract_text, replace_text


def _rule(
    rule_id: int,
    *,
    action: str,
    pattern: Optional[str],
    replacement: Optional[str] = None,
    rule_type: str = "content",
    priority: str = "medium",
    is_active: bool = True,
    title: str = "Spelling",
) -> ProductionBibleRule:
    return ProductionBibleRule(
        id=rule_id,
        document_id=1,
        rule_type=rule_type,
        title=title,
        description=f"{title} rule",
        pattern=pattern,
        replacement=replacement,
        action=action,
        priority=priority,
        confidence=80,
        is_active=is_active,
    )


@pytest.fixture
def content() -> DocumentContent:
    return DocumentContent(
        executive_summary={"logline": "A colour film about a lighthouse", "notes": ["colour grading matters"]},
        narrative_structure=["Act one", {"beat": "The storm arrives"}],
        production_package="colour timing in post",
    )


class TestHelpers:
    def test_extract_text_flattens(self):
        assert extract_text({"a": "x", "b": ["y", {"c": "z"}], "d": 3}) == "x\ny\nz\n"

    def test_replace_text_reports_change(self):
        value, changed = replace_text({"a": ["one colour", 2]}, "colour", "color")
        assert value == {"a": ["one color", 2]}
        assert changed is True

    def test_replace_text_without_match(self):
        assert replace_text(["abc"], "x", "y") == (["abc"], False)


class TestApplyRules:
    def test_apply_rule_rewrites_every_section(self, content):
        engine = RuleEngine([_rule(1, action="apply", pattern="colour", replacement="color")])

        modified, applications = engine.apply_rules(content)

        assert modified.executive_summary == {
            "logline": "A color film about a lighthouse",
            "notes": ["color grading matters"],
        }
        assert modified.production_package == "color timing in post"
        assert content.production_package == "colour timing in post"
        assert len(applications) == 1
        application = applications[0]
        assert application.rule_id == 1
        assert application.document_section == "Executive Summary"
        assert application.original_text == "colour"
        assert application.suggested_text == "color"
        assert application.confidence == 80
        assert application.applied is True

    def test_replacement_is_literal(self):
        engine = RuleEngine([_rule(1, action="apply", pattern="colou?r", replacement="hue")])
        content = DocumentContent(executive_summary="Colour and colour")

        modified, applications = engine.apply_rules(content)

        assert modified.executive_summary == "hue and colour"
        assert applications[0].original_text == "Colour"

    def test_only_apply_rules_modify(self, content):
        engine = RuleEngine(
            [
                _rule(1, action="validate", pattern="colour", replacement="color"),
                _rule(2, action="suggest", pattern="storm", replacement="squall"),
            ]
        )

        modified, applications = engine.apply_rules(content)

        assert modified == content
        assert applications == []

    def test_rules_without_replacement_or_valid_pattern_are_skipped(self, content):
        engine = RuleEngine(
            [
                _rule(1, action="apply", pattern="colour"),
                _rule(2, action="apply", pattern="([", replacement="x"),
                _rule(3, action="apply", pattern=None, replacement="x"),
            ]
        )

        modified, applications = engine.apply_rules(content)
        assert modified == content
        assert applications == []

    def test_inactive_rules_are_not_loaded(self, content):
        engine = RuleEngine([_rule(1, action="apply", pattern="colour", replacement="color", is_active=False)])

        assert engine.rules == []
        assert engine.apply_rules(content)[1] == []

    def test_formatting_rules_apply_regardless_of_action(self, content):
        engine = RuleEngine(
            [
                _rule(1, action="suggest", pattern="storm", replacement="squall", rule_type="format"),
                _rule(2, action="apply", pattern="colour", replacement="color", rule_type="content"),
            ]
        )

        modified = engine.apply_formatting_rules(content)

        assert modified.narrative_structure == ["Act one", {"beat": "The squall arrives"}]
        assert modified.production_package == "colour timing in post"


class TestValidateContent:
    def test_reports_by_action(self, content):
        engine = RuleEngine(
            [
                _rule(1, action="validate", pattern="lighthouse", priority="high", title="No lighthouses"),
                _rule(2, action="suggest", pattern="storm", title="Weather"),
                _rule(3, action="warn", pattern="post", title="Post"),
                _rule(4, action="validate", pattern="zeppelin", title="Airships"),
            ]
        )

        result = engine.validate_content(content)

        assert result.is_valid is False
        assert [(v.rule_id, v.section) for v in result.violations] == [(1, "Executive Summary")]
        assert result.violations[0].severity == RulePriority.high
        assert result.violations[0].suggested_fix == "Fix no lighthouses"
        assert [(s.rule_id, s.section) for s in result.suggestions] == [(2, "Narrative Structure")]
        assert result.suggestions[0].suggested_change == "Consider applying weather"
        assert [(w.rule_id, w.section) for w in result.warnings] == [(3, "Production Package")]
        assert result.warnings[0].impact == "Potential issue detected: Post rule"

    def test_valid_when_nothing_matches(self, content):
        engine = RuleEngine([_rule(1, action="validate", pattern="zeppelin")])
        result = engine.validate_content(content)
        assert result.is_valid is True
        assert result.violations == []

    def test_structure_violations_only(self, content):
        engine = RuleEngine(
            [
                _rule(1, action="validate", pattern="Act one", rule_type="structure"),
                _rule(2, action="validate", pattern="colour", rule_type="content"),
                _rule(3, action="suggest", pattern="storm", rule_type="structure"),
            ]
        )
        assert [v.rule_id for v in engine.validate_structure(content)] == [1]

    def test_get_suggestions(self, content):
        engine = RuleEngine(
            [
                _rule(1, action="suggest", pattern="storm", replacement="squall"),
                _rule(2, action="suggest", pattern="zeppelin"),
                _rule(3, action="warn", pattern="storm"),
            ]
        )

        suggestions = engine.get_suggestions(content)

        assert [s.rule_id for s in suggestions] == [1]
        assert suggestions[0].suggested_change == "squall"
        assert suggestions[0].confidence == 80

    def test_find_section_fallback(self, content):
        assert RuleEngine.find_section(content, "not present") == "Document"
