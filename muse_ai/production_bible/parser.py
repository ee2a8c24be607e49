"""Production bible document parser.

Rules are extracted from plain text or Markdown in two passes. Keyword
patterns such as ``font: ...`` or ``must: ...`` turn the rest of a line into
a rule, and every header of level three or above turns the text beneath it
into a contextual rule titled after the header. Duplicate rules are dropped
by type and title.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from muse_ai.core.errors import DocumentParseError, UnsupportedDocumentTypeError
from muse_ai.core.logging_config import get_logger

from .models import (
    DocumentSection,
    ExtractedRule,
    ParsedDocument,
    RuleAction,
    RulePriority,
    RuleType,
    SectionType,
)

logger = get_logger(__name__)

TEXT_TYPES = ("txt", "md")
BINARY_TYPES = ("pdf", "docx")

MIN_KEYWORD_RULE_LENGTH = 10
MIN_CONTEXT_RULE_LENGTH = 20
EXAMPLE_LOOKAHEAD = 4


def _keywords(*words: str) -> List[re.Pattern[str]]:
    return [re.compile(rf"{word}[:\s]+(.*)", re.IGNORECASE) for word in words]


RULE_PATTERNS: Dict[RuleType, List[re.Pattern[str]]] = {
    RuleType.format: _keywords("format(?:ting)?", "style", "font", "margin", "spacing", "alignment"),
    RuleType.content: _keywords("content", "text", "language", "tone", "voice"),
    RuleType.structure: _keywords("structure", "organization", "layout", "section", "heading"),
    RuleType.validation: _keywords("requirement", "must", "should", "cannot", "forbidden"),
}

_HEADER = re.compile(r"^(#{1,6})\s+(.+)$")
_BULLET = re.compile(r"^[-*+]\s+")
_NUMBERED = re.compile(r"^\d+\.\s+")
_UNIT = re.compile(r"\b\d+(pt|px|em)\b")
_TRAILING_PUNCTUATION = re.compile(r"[.!?]+$")


class DocumentParser:
    """Extract document structure and rules from a production bible."""

    def parse_document(self, path: Union[str, Path], file_type: str) -> ParsedDocument:
        """Read a production bible from disk and parse it."""
        file_type = file_type.lower()
        if file_type not in TEXT_TYPES:
            raise UnsupportedDocumentTypeError(file_type)
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentParseError(path.name, str(e)) from e
        return self.parse_text(content, file_type)

    def parse_bytes(self, data: bytes, file_type: str, name: str = "upload") -> ParsedDocument:
        """Parse an uploaded body. Text must be UTF-8."""
        if file_type.lower() not in TEXT_TYPES:
            raise UnsupportedDocumentTypeError(file_type)
        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentParseError(name, str(e)) from e
        return self.parse_text(content, file_type)

    def parse_text(self, content: str, file_type: str = "md") -> ParsedDocument:
        file_type = file_type.lower()
        if file_type not in TEXT_TYPES:
            raise UnsupportedDocumentTypeError(file_type)

        structure = self.extract_structure(content)
        rules = self.extract_rules(content, structure)
        logger.debug(f"Parsed {len(structure)} sections and {len(rules)} rules from {file_type} document")
        return ParsedDocument(content=content, structure=structure, extracted_rules=rules)

    def extract_structure(self, content: str) -> List[DocumentSection]:
        sections: List[DocumentSection] = []
        for line in content.split("\n"):
            stripped = line.strip()
            if not stripped:
                continue

            header = _HEADER.match(stripped)
            if header:
                sections.append(
                    DocumentSection(type=SectionType.header, level=len(header.group(1)), content=header.group(2))
                )
                continue

            if _BULLET.match(stripped) or _NUMBERED.match(stripped):
                text = _NUMBERED.sub("", _BULLET.sub("", stripped, count=1), count=1)
                sections.append(DocumentSection(type=SectionType.list, content=text))
                continue

            sections.append(DocumentSection(type=SectionType.paragraph, content=stripped))
        return sections

    def extract_rules(self, content: str, structure: List[DocumentSection]) -> List[ExtractedRule]:
        rules: List[ExtractedRule] = []

        for rule_type, patterns in RULE_PATTERNS.items():
            for pattern in patterns:
                for match in pattern.finditer(content):
                    description = match.group(1).strip()
                    if len(description) < MIN_KEYWORD_RULE_LENGTH:
                        continue
                    rules.append(self.create_rule(rule_type, description, content))

        for index, section in enumerate(structure):
            if section.type == SectionType.header and (section.level or 1) <= 3:
                rule = self._contextual_rule(index, structure)
                if rule is not None:
                    rules.append(rule)

        return _deduplicate(rules)

    def _contextual_rule(self, index: int, structure: List[DocumentSection]) -> Optional[ExtractedRule]:
        header = structure[index]
        level = header.level or 1
        related: List[DocumentSection] = []
        for section in structure[index + 1 :]:
            if section.type == SectionType.header and (section.level or 1) <= level:
                break
            related.append(section)

        context = " ".join(s.content for s in related)
        if len(context) <= MIN_CONTEXT_RULE_LENGTH:
            return None

        heading = header.content.lower()
        if "format" in heading or "style" in heading:
            rule_type = RuleType.format
        elif "structure" in heading or "organization" in heading:
            rule_type = RuleType.structure
        elif "requirement" in heading or "rule" in heading:
            rule_type = RuleType.validation
        else:
            rule_type = RuleType.content

        rule = self.create_rule(rule_type, context, context)
        rule.title = header.content
        return rule

    def create_rule(self, rule_type: RuleType, description: str, full_content: str) -> ExtractedRule:
        lowered = description.lower()

        if "must" in lowered or "required" in lowered:
            action = RuleAction.validate
        elif "should" in lowered or "recommend" in lowered:
            action = RuleAction.suggest
        elif "cannot" in lowered or "forbidden" in lowered:
            action = RuleAction.warn
        else:
            action = RuleAction.suggest

        if "critical" in lowered or "essential" in lowered:
            priority = RulePriority.critical
        elif "important" in lowered or "must" in lowered:
            priority = RulePriority.high
        elif "optional" in lowered or "prefer" in lowered:
            priority = RulePriority.low
        else:
            priority = RulePriority.medium

        return ExtractedRule(
            rule_type=rule_type,
            title=_title(description),
            description=description,
            pattern=_pattern(description, rule_type),
            examples=_examples(description, full_content),
            action=action,
            priority=priority,
            confidence=_confidence(description, rule_type),
        )


def _title(description: str) -> str:
    return _TRAILING_PUNCTUATION.sub("", " ".join(description.split(" ")[:8]))


def _pattern(description: str, rule_type: RuleType) -> Optional[str]:
    if rule_type != RuleType.format:
        return None
    lowered = description.lower()
    if "font" in lowered:
        return r"\b(Times|Arial|Calibri|Helvetica)\b"
    if "size" in lowered:
        return r"\b(\d+)pt\b"
    return None


def _examples(description: str, full_content: str) -> List[str]:
    lines = full_content.split("\n")
    start = next((i for i, line in enumerate(lines) if description in line), None)
    if start is None:
        return []
    examples = []
    for line in lines[start + 1 : start + 1 + EXAMPLE_LOOKAHEAD]:
        stripped = line.strip()
        if "example" in stripped.lower() or "e.g." in stripped.lower():
            examples.append(stripped)
    return examples


def _confidence(description: str, rule_type: RuleType) -> int:
    confidence = 70
    lowered = description.lower()
    if "must" in lowered or "required" in lowered:
        confidence += 20
    if rule_type == RuleType.format and _UNIT.search(description):
        confidence += 10
    return min(confidence, 100)


def _deduplicate(rules: List[ExtractedRule]) -> List[ExtractedRule]:
    seen = set()
    unique = []
    for rule in rules:
        key = (rule.rule_type, rule.title.lower())
        if key in seen:
            continue
        seen.add(key)
        unique.append(rule)
    return unique
