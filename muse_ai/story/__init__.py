"""Story development workflow.

The four phases of a story live in ``phases``. Phase payloads are validated
by ``validation``, produced by ``generator`` and, for the final export,
``document``. Edits to a phase propagate through the Living Story layer:
``diff`` and ``dependencies`` decide what changed and what it affects,
``living_story`` keeps the durable change log and approval queue, and
``engine`` performs direct ripple updates across phases.
"""

from .phases import PHASE_METADATA_KEYS, Phase

__all__ = ["PHASE_METADATA_KEYS", "Phase"]
