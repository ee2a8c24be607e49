"""
Database entity models.

Modules:
- story_projects: Story projects owned by a user
- transcripts: Source transcripts and their per-phase story payloads
- story_changes: Append-only Living Story change log
- production_bible: Production bible documents, extracted rules and rule applications
- subscriptions: Subscription tier per user and the usage ledger
"""

from . import (
    production_bible,
    story_changes,
    story_projects,
    subscriptions,
    transcripts,
)

__all__ = [
    "production_bible",
    "story_changes",
    "story_projects",
    "subscriptions",
    "transcripts",
]
