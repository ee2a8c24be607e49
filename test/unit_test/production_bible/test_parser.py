from __future__ import annotations

from pathlib import Path

import pytest

from muse_ai.core.errors import DocumentParseError, UnsupportedDocumentTypeError
from muse_ai.production_bible.models import RuleAction, RulePriority, RuleType, SectionType
from muse_ai.production_bible.parser import DocumentParser


@pytest.fixture
def parser() -> DocumentParser:
    return DocumentParser()


class TestExtractStructure:
    def test_headers_lists_and_paragraphs(self, parser):
        sections = parser.extract_structure("# Title\n\n- bullet one\n2. numbered\nplain text\n")

        assert [(s.type, s.level, s.content) for s in sections] == [
            (SectionType.header, 1, "Title"),
            (SectionType.list, None, "bullet one"),
            (SectionType.list, None, "numbered"),
            (SectionType.paragraph, None, "plain text"),
        ]

    def test_header_level(self, parser):
        sections = parser.extract_structure("### Third")
        assert sections[0].level == 3


class TestExtractRules:
    def test_keyword_rule(self, parser):
        parsed = parser.parse_text("Font: Courier 12pt is required on every page.", "txt")

        assert len(parsed.extracted_rules) == 1
        rule = parsed.extracted_rules[0]
        assert rule.rule_type == RuleType.format
        assert rule.title == "Courier 12pt is required on every page"
        assert rule.description == "Courier 12pt is required on every page."
        assert rule.action == RuleAction.validate
        assert rule.priority == RulePriority.medium
        assert rule.confidence == 100

    def test_short_keyword_match_is_ignored(self, parser):
        assert parser.parse_text("Font: Arial", "md").extracted_rules == []

    def test_duplicate_rules_are_dropped(self, parser):
        line = "Font: Courier 12pt is required on every page."
        parsed = parser.parse_text(f"{line}\n{line}\n", "md")
        assert len(parsed.extracted_rules) == 1

    def test_contextual_rule_from_header(self, parser):
        parsed = parser.parse_text("## Style Rules\nAll dialogue lines stay under twenty words.\n", "md")

        assert len(parsed.extracted_rules) == 1
        rule = parsed.extracted_rules[0]
        assert rule.title == "Style Rules"
        assert rule.rule_type == RuleType.format
        assert rule.description == "All dialogue lines stay under twenty words."
        assert rule.action == RuleAction.suggest

    def test_short_context_is_ignored(self, parser):
        assert parser.parse_text("## Notes\nKeep it.\n", "md").extracted_rules == []

    def test_deep_headers_are_ignored(self, parser):
        parsed = parser.parse_text("#### Minor\nNothing beneath this minor header becomes a rule.\n", "md")
        assert parsed.extracted_rules == []


class TestCreateRule:
    @pytest.mark.parametrize(
        "description, action, priority",
        [
            ("Scenes must open on action", RuleAction.validate, RulePriority.high),
            ("Writers should prefer short scenes", RuleAction.suggest, RulePriority.low),
            ("Profanity is forbidden in narration", RuleAction.warn, RulePriority.medium),
            ("This is critical for continuity", RuleAction.suggest, RulePriority.critical),
            ("Use plain words", RuleAction.suggest, RulePriority.medium),
        ],
    )
    def test_action_and_priority(self, parser, description, action, priority):
        rule = parser.create_rule(RuleType.content, description, description)
        assert rule.action == action
        assert rule.priority == priority

    def test_format_patterns(self, parser):
        assert parser.create_rule(RuleType.format, "Use the Arial font for headings", "").pattern == (
            r"\b(Times|Arial|Calibri|Helvetica)\b"
        )
        assert parser.create_rule(RuleType.format, "Body size is 12pt", "").pattern == r"\b(\d+)pt\b"
        assert parser.create_rule(RuleType.content, "Use the Arial font for headings", "").pattern is None

    def test_examples_follow_the_rule(self, parser):
        content = "Font: Courier 12pt is required.\nExample: FADE IN set in Courier\nunrelated line\n"
        rule = parser.create_rule(RuleType.format, "Courier 12pt is required.", content)
        assert rule.examples == ["Example: FADE IN set in Courier"]

    def test_long_title_is_truncated(self, parser):
        rule = parser.create_rule(RuleType.content, "one two three four five six seven eight nine ten", "")
        assert rule.title == "one two three four five six seven eight"


class TestDocumentInput:
    def test_parse_document_from_disk(self, parser, tmp_path: Path):
        path = tmp_path / "bible.md"
        path.write_text("Font: Courier 12pt is required on every page.\n", encoding="utf-8")

        parsed = parser.parse_document(path, "MD")

        assert parsed.content.startswith("Font:")
        assert len(parsed.extracted_rules) == 1

    def test_missing_file(self, parser, tmp_path: Path):
        with pytest.raises(DocumentParseError):
            parser.parse_document(tmp_path / "missing.txt", "txt")

    @pytest.mark.parametrize("file_type", ["pdf", "docx", "rtf"])
    def test_unsupported_types(self, parser, file_type):
        with pytest.raises(UnsupportedDocumentTypeError):
            parser.parse_text("text", file_type)
        with pytest.raises(UnsupportedDocumentTypeError):
            parser.parse_bytes(b"text", file_type)

    def test_bytes_must_be_utf8(self, parser):
        with pytest.raises(DocumentParseError) as exc_info:
            parser.parse_bytes(b"\xff\xfe\xfa", "txt", name="bible.txt")
        assert "bible.txt" in str(exc_info.value)
