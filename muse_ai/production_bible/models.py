"""Models shared by the production bible parser and rule engine."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from muse_ai.core.schemas import BaseSchema


class RuleType(str, Enum):
    format = "format"
    style = "style"
    content = "content"
    structure = "structure"
    validation = "validation"


class RuleAction(str, Enum):
    apply = "apply"
    suggest = "suggest"
    validate = "validate"
    warn = "warn"


class RulePriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class SectionType(str, Enum):
    header = "header"
    paragraph = "paragraph"
    list = "list"


class ParsingStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class DocumentSection(BaseModel):
    type: SectionType
    content: str
    level: Optional[int] = None


class ExtractedRule(BaseModel):
    """A rule pulled out of a production bible before it is persisted."""

    rule_type: RuleType
    title: str
    description: str
    pattern: Optional[str] = None
    replacement: Optional[str] = None
    examples: List[str] = Field(default_factory=list)
    action: RuleAction
    priority: RulePriority
    confidence: int = 70
    is_active: bool = True


class ParsedDocument(BaseModel):
    content: str
    structure: List[DocumentSection]
    extracted_rules: List[ExtractedRule]


class DocumentContent(BaseSchema):
    """Generated story document content the rule engine runs over."""

    executive_summary: Any = Field(default=None, alias="executiveSummary")
    narrative_structure: Any = Field(default=None, alias="narrativeStructure")
    production_package: Any = Field(default=None, alias="productionPackage")
    phase: Optional[int] = None
    section: Optional[str] = None

    def sections(self) -> Dict[str, Any]:
        """Return the text-bearing sections keyed by display name, in lookup order."""
        return {
            "Executive Summary": self.executive_summary,
            "Narrative Structure": self.narrative_structure,
            "Production Package": self.production_package,
        }


class RuleApplication(BaseModel):
    rule_id: Optional[int]
    document_section: str
    original_text: str
    suggested_text: str
    confidence: int
    applied: bool
    reason: str


class RuleViolation(BaseModel):
    rule_id: Optional[int]
    rule_title: str
    section: str
    description: str
    severity: RulePriority
    suggested_fix: Optional[str] = None


class RuleSuggestion(BaseModel):
    rule_id: Optional[int]
    rule_title: str
    section: str
    description: str
    suggested_change: str
    confidence: int


class RuleWarning(BaseModel):
    rule_id: Optional[int]
    rule_title: str
    section: str
    description: str
    impact: str


class ValidationResult(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    is_valid: bool
    violations: List[RuleViolation] = Field(default_factory=list)
    suggestions: List[RuleSuggestion] = Field(default_factory=list)
    warnings: List[RuleWarning] = Field(default_factory=list)
