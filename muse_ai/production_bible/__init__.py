"""Production bible: style guide parsing and rule enforcement.

A production bible is a text document describing how story documents must
be formatted and written. :class:`DocumentParser` extracts rules from it and
:class:`RuleEngine` checks or rewrites generated content against them.
"""

from .models import (
    DocumentContent,
    DocumentSection,
    ExtractedRule,
    ParsedDocument,
    RuleAction,
    RuleApplication,
    RulePriority,
    RuleType,
    ValidationResult,
)
from .parser import DocumentParser
from .rule_engine import RuleEngine

__all__ = [
    "DocumentContent",
    "DocumentParser",
    "DocumentSection",
    "ExtractedRule",
    "ParsedDocument",
    "RuleAction",
    "RuleApplication",
    "RuleEngine",
    "RulePriority",
    "RuleType",
    "ValidationResult",
]
