"""
Production bible repository.

Documents and their extracted rules are written together; applications are
appended when the rule engine touches generated content.
"""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import col, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.production_bible import (
    ProductionBibleApplication,
    ProductionBibleDocument,
    ProductionBibleRule,
)
from .base import SqlRepository


class ProductionBibleRepository(SqlRepository[ProductionBibleDocument]):
    """Repository for production bible documents, rules and applications."""

    order_by = col(ProductionBibleDocument.uploaded_at).desc()

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ProductionBibleDocument)

    async def add_document_with_rules(
        self, document: ProductionBibleDocument, rules: List[ProductionBibleRule]
    ) -> ProductionBibleDocument:
        """Persist a document and its extracted rules in one transaction.

        ``extracted_rules_count`` is set from ``rules``.
        """
        document.extracted_rules_count = len(rules)
        self.session.add(document)
        await self.session.flush()
        for rule in rules:
            rule.document_id = document.id  # type: ignore[assignment]
            self.session.add(rule)
        await self.session.commit()
        await self.session.refresh(document)
        return document

    async def list_for_user(self, user_id: str, story_project_id: Optional[int] = None) -> List[ProductionBibleDocument]:
        return await self.list(filters={"user_id": user_id, "story_project_id": story_project_id})

    async def rules_for_document(self, document_id: int) -> List[ProductionBibleRule]:
        stmt = (
            select(ProductionBibleRule)
            .where(ProductionBibleRule.document_id == document_id)
            .order_by(col(ProductionBibleRule.id).asc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def active_rules_for_project(self, story_project_id: Optional[int], user_id: str) -> List[ProductionBibleRule]:
        """Active rules that apply to a project.

        These are the rules of the user's documents attached to the project
        plus those of documents not attached to any project.
        """
        project_clause = col(ProductionBibleDocument.story_project_id).is_(None)
        if story_project_id is not None:
            project_clause = or_(project_clause, ProductionBibleDocument.story_project_id == story_project_id)
        stmt = (
            select(ProductionBibleRule)
            .join(ProductionBibleDocument, col(ProductionBibleRule.document_id) == ProductionBibleDocument.id)
            .where(ProductionBibleDocument.user_id == user_id)
            .where(project_clause)
            .where(col(ProductionBibleRule.is_active).is_(True))
            .order_by(col(ProductionBibleRule.id).asc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def record_applications(
        self, applications: List[ProductionBibleApplication]
    ) -> List[ProductionBibleApplication]:
        self.session.add_all(applications)
        await self.session.commit()
        return applications
