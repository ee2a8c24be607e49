"""
Database repository layer using SQLModel.

All repositories share the ``SqlRepository`` CRUD implementation and add
the domain queries of their aggregate.

Modules:
- base: AsyncBaseRepository interface, SqlRepository and QueryBuilder utilities
- story_projects: Story project operations
- transcripts: Transcript and phase payload operations
- story_changes: Living Story change log operations
- production_bible: Production bible document, rule and application operations
- subscriptions: Subscription and usage ledger operations
"""

from .production_bible import ProductionBibleRepository
from .story_changes import StoryChangeRepository
from .story_projects import StoryProjectRepository
from .subscriptions import SubscriptionRepository, UsageRepository
from .transcripts import TranscriptRepository

__all__ = [
    "ProductionBibleRepository",
    "StoryChangeRepository",
    "StoryProjectRepository",
    "SubscriptionRepository",
    "TranscriptRepository",
    "UsageRepository",
]
