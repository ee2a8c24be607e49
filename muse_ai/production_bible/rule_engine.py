"""Rule engine applying production bible rules to generated content.

Only ``apply`` rules modify content. ``validate``, ``suggest`` and ``warn``
rules report matches without changing anything. Replacement is literal:
the first text matched by a rule's pattern is replaced everywhere it occurs
in the document sections.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence, Tuple

from muse_ai.core.database.entities.production_bible import ProductionBibleRule
from muse_ai.core.logging_config import get_logger

from .models import (
    DocumentContent,
    RuleAction,
    RuleApplication,
    RuleSuggestion,
    RuleType,
    RuleViolation,
    RuleWarning,
    ValidationResult,
)

logger = get_logger(__name__)

DEFAULT_CONFIDENCE = 70
FALLBACK_SECTION = "Document"


def extract_text(value: Any) -> str:
    """Flatten strings nested in dicts and lists into newline separated text."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(extract_text(item) for item in value)
    if isinstance(value, dict):
        return "\n".join(extract_text(item) for item in value.values())
    return ""


def replace_text(value: Any, original: str, new: str) -> Tuple[Any, bool]:
    """Replace ``original`` with ``new`` in every string nested in ``value``."""
    if isinstance(value, str):
        if original in value:
            return value.replace(original, new), True
        return value, False
    if isinstance(value, list):
        changed = False
        items = []
        for item in value:
            replaced, item_changed = replace_text(item, original, new)
            items.append(replaced)
            changed = changed or item_changed
        return items, changed
    if isinstance(value, dict):
        changed = False
        mapping = {}
        for key, item in value.items():
            replaced, item_changed = replace_text(item, original, new)
            mapping[key] = replaced
            changed = changed or item_changed
        return mapping, changed
    return value, False


class RuleEngine:
    """Validate and rewrite document content against active rules."""

    def __init__(self, rules: Sequence[ProductionBibleRule] = ()) -> None:
        self.rules: List[ProductionBibleRule] = []
        self.load_rules(rules)

    def load_rules(self, rules: Sequence[ProductionBibleRule]) -> None:
        self.rules = [rule for rule in rules if rule.is_active]

    def apply_rules(self, content: DocumentContent) -> Tuple[DocumentContent, List[RuleApplication]]:
        modified = content.model_copy(deep=True)
        applications: List[RuleApplication] = []
        for rule in self.rules:
            if rule.action != RuleAction.apply.value:
                continue
            result = self._apply_rule(rule, modified)
            if result is not None:
                modified, application = result
                applications.append(application)
        return modified, applications

    def apply_formatting_rules(self, content: DocumentContent) -> DocumentContent:
        modified = content
        for rule in self.rules:
            if rule.rule_type != RuleType.format.value:
                continue
            result = self._apply_rule(rule, modified)
            if result is not None:
                modified = result[0]
        return modified

    def validate_content(self, content: DocumentContent) -> ValidationResult:
        violations: List[RuleViolation] = []
        suggestions: List[RuleSuggestion] = []
        warnings: List[RuleWarning] = []

        for rule in self.rules:
            match = self._first_match(rule, content)
            if match is None:
                continue
            section = self.find_section(content, match)
            if rule.action == RuleAction.validate.value:
                violations.append(self._violation(rule, section))
            elif rule.action == RuleAction.suggest.value:
                suggestions.append(self._suggestion(rule, section))
            elif rule.action == RuleAction.warn.value:
                warnings.append(
                    RuleWarning(
                        rule_id=rule.id,
                        rule_title=rule.title,
                        section=section,
                        description=rule.description,
                        impact=f"Potential issue detected: {rule.description}",
                    )
                )

        return ValidationResult(
            is_valid=not violations,
            violations=violations,
            suggestions=suggestions,
            warnings=warnings,
        )

    def validate_structure(self, content: DocumentContent) -> List[RuleViolation]:
        violations = []
        for rule in self.rules:
            if rule.rule_type != RuleType.structure.value or rule.action != RuleAction.validate.value:
                continue
            match = self._first_match(rule, content)
            if match is not None:
                violations.append(self._violation(rule, self.find_section(content, match)))
        return violations

    def get_suggestions(self, content: DocumentContent) -> List[RuleSuggestion]:
        suggestions = []
        for rule in self.rules:
            if rule.action != RuleAction.suggest.value:
                continue
            match = self._first_match(rule, content)
            if match is not None:
                suggestions.append(self._suggestion(rule, self.find_section(content, match)))
        return suggestions

    @staticmethod
    def find_section(content: DocumentContent, text: str) -> str:
        for name, value in content.sections().items():
            if value and text in extract_text(value):
                return name
        return FALLBACK_SECTION

    def _compile(self, rule: ProductionBibleRule) -> Optional[re.Pattern[str]]:
        if not rule.pattern:
            return None
        try:
            return re.compile(rule.pattern, re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Skipping rule {rule.id} with invalid pattern {rule.pattern!r}: {e}")
            return None

    def _first_match(self, rule: ProductionBibleRule, content: DocumentContent) -> Optional[str]:
        regex = self._compile(rule)
        if regex is None:
            return None
        text = "\n\n".join(extract_text(value) for value in content.sections().values() if value)
        match = regex.search(text)
        return match.group(0) if match else None

    def _apply_rule(
        self, rule: ProductionBibleRule, content: DocumentContent
    ) -> Optional[Tuple[DocumentContent, RuleApplication]]:
        if not rule.replacement:
            return None
        regex = self._compile(rule)
        if regex is None:
            return None

        text = "\n\n".join(extract_text(value) for value in content.sections().values() if value)
        for match in regex.finditer(text):
            original = match.group(0)
            if not original:
                continue
            updates = {}
            for field in ("executive_summary", "narrative_structure", "production_package"):
                replaced, changed = replace_text(getattr(content, field), original, rule.replacement)
                if changed:
                    updates[field] = replaced
            if not updates:
                continue
            application = RuleApplication(
                rule_id=rule.id,
                document_section=self.find_section(content, original),
                original_text=original,
                suggested_text=rule.replacement,
                confidence=rule.confidence or DEFAULT_CONFIDENCE,
                applied=True,
                reason=rule.description,
            )
            logger.debug(f"Rule {rule.id} replaced {original!r} in {application.document_section}")
            return content.model_copy(update=updates, deep=True), application
        return None

    @staticmethod
    def _violation(rule: ProductionBibleRule, section: str) -> RuleViolation:
        return RuleViolation(
            rule_id=rule.id,
            rule_title=rule.title,
            section=section,
            description=rule.description,
            severity=rule.priority,
            suggested_fix=rule.replacement or f"Fix {rule.title.lower()}",
        )

    @staticmethod
    def _suggestion(rule: ProductionBibleRule, section: str) -> RuleSuggestion:
        return RuleSuggestion(
            rule_id=rule.id,
            rule_title=rule.title,
            section=section,
            description=rule.description,
            suggested_change=rule.replacement or f"Consider applying {rule.title.lower()}",
            confidence=rule.confidence or DEFAULT_CONFIDENCE,
        )
