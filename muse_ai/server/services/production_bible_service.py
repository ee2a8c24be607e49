"""
Production bible service.

Uploads are parsed synchronously. A document whose body cannot be parsed
is still stored, with status ``failed`` and the parse error, so the user
can see why no rules were extracted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field
from sqlmodel.ext.asyncio.session import AsyncSession

from muse_ai.core.database.entities.production_bible import (
    ProductionBibleApplication,
    ProductionBibleDocument,
    ProductionBibleRule,
)
from muse_ai.core.database.repositories import ProductionBibleRepository, StoryProjectRepository
from muse_ai.core.errors import (
    DocumentNotFoundError,
    DocumentParseError,
    ProjectNotFoundError,
    UnsupportedDocumentTypeError,
)
from muse_ai.core.logging_config import get_logger
from muse_ai.paywall import PaywallService, UsageMetric
from muse_ai.production_bible import DocumentContent, DocumentParser, RuleApplication, RuleEngine, ValidationResult
from muse_ai.production_bible.models import ParsingStatus
from muse_ai.production_bible.parser import TEXT_TYPES

logger = get_logger(__name__)

NO_RULES_MESSAGE = "No production bible rules configured for this project"


class BibleValidation(BaseModel):
    success: bool = True
    message: Optional[str] = None
    validation: ValidationResult
    applications: List[RuleApplication] = Field(default_factory=list)
    rules_applied: int = 0
    modified_content: Optional[Dict[str, Any]] = None


class ProductionBibleService:
    def __init__(self, session: AsyncSession, parser: Optional[DocumentParser] = None) -> None:
        self.documents = ProductionBibleRepository(session)
        self.projects = StoryProjectRepository(session)
        self.paywall = PaywallService(session)
        self.parser = parser or DocumentParser()

    async def upload(
        self,
        *,
        user_id: str,
        name: str,
        filename: str,
        file_type: str,
        data: bytes,
        story_project_id: Optional[int] = None,
    ) -> Tuple[ProductionBibleDocument, List[ProductionBibleRule]]:
        file_type = file_type.lower()
        if file_type not in TEXT_TYPES:
            raise UnsupportedDocumentTypeError(file_type)
        if story_project_id is not None:
            project = await self.projects.get_by_id(story_project_id)
            if project is None or project.user_id != user_id:
                raise ProjectNotFoundError(story_project_id)
        await self.paywall.require(user_id, "knowledgeBase", file_size=len(data))

        document = ProductionBibleDocument(
            user_id=user_id,
            story_project_id=story_project_id,
            name=name,
            original_filename=filename,
            file_type=file_type,
            file_size=len(data),
            parsing_status=ParsingStatus.processing.value,
        )
        rules: List[ProductionBibleRule] = []
        try:
            parsed = self.parser.parse_bytes(data, file_type, filename)
        except DocumentParseError as e:
            logger.warning(f"Production bible '{filename}' failed to parse: {e}")
            document.parsing_status = ParsingStatus.failed.value
            document.parsing_error = str(e)
        else:
            document.parsing_status = ParsingStatus.completed.value
            rules = [
                ProductionBibleRule(**rule.model_dump(mode="json"), conditions={})
                for rule in parsed.extracted_rules
            ]

        document = await self.documents.add_document_with_rules(document, rules)
        await self.paywall.track(user_id, UsageMetric.knowledge_files)
        await self.paywall.track(user_id, UsageMetric.storage_bytes, len(data))
        logger.info(f"Stored production bible {document.id} with {len(rules)} rules for {user_id}")
        return document, await self.documents.rules_for_document(document.id)  # type: ignore[arg-type]

    async def list_documents(
        self, user_id: str, story_project_id: Optional[int] = None
    ) -> List[Tuple[ProductionBibleDocument, List[ProductionBibleRule]]]:
        documents = await self.documents.list_for_user(user_id, story_project_id)
        return [(d, await self.documents.rules_for_document(d.id)) for d in documents]  # type: ignore[arg-type]

    async def get_document(
        self, user_id: str, document_id: int
    ) -> Tuple[ProductionBibleDocument, List[ProductionBibleRule]]:
        document = await self.documents.get_by_id(document_id)
        if document is None or document.user_id != user_id:
            raise DocumentNotFoundError(document_id)
        return document, await self.documents.rules_for_document(document_id)

    async def validate(
        self,
        *,
        user_id: str,
        transcript_id: int,
        story_project_id: Optional[int],
        content: DocumentContent,
        apply_rules: bool = False,
        save_applications: bool = False,
    ) -> BibleValidation:
        rules = await self.documents.active_rules_for_project(story_project_id, user_id)
        if not rules:
            return BibleValidation(message=NO_RULES_MESSAGE, validation=ValidationResult(is_valid=True))

        content = content.model_copy(
            update={"phase": content.phase or 4, "section": content.section or "executive_document"}
        )
        engine = RuleEngine(rules)
        applications: List[RuleApplication] = []
        modified = content
        if apply_rules:
            modified, applications = engine.apply_rules(content)
        validation = engine.validate_content(modified)

        if save_applications and applications:
            await self.documents.record_applications(
                [
                    ProductionBibleApplication(
                        rule_id=a.rule_id,  # type: ignore[arg-type]
                        transcript_id=transcript_id,
                        phase=modified.phase,
                        document_section=a.document_section,
                        original_text=a.original_text,
                        suggested_text=a.suggested_text,
                        confidence=a.confidence,
                        applied=a.applied,
                        reason=a.reason,
                    )
                    for a in applications
                ]
            )

        return BibleValidation(
            validation=validation,
            applications=applications,
            rules_applied=len(applications),
            modified_content=modified.model_dump(by_alias=True) if apply_rules else None,
        )
