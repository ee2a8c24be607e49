"""MUSE story development service.

MUSE turns interview or brainstorm transcripts into a developed story through a
four phase workflow:

1. **Summary**: a one-line story summary picked from generated options.
2. **Scenes**: a four scene dramatic structure.
3. **Beats**: a production-ready beat breakdown per scene.
4. **Export**: an executive story document assembled from the prior phases.

Supporting subpackages
----------------------

- ``muse_ai.story``: phase models, validation, generation and the Living Story
  change propagation (durable change log plus ripple engine).
- ``muse_ai.production_bible``: rule extraction from style documents and the
  rule engine that applies and validates those rules.
- ``muse_ai.paywall``: subscription tiers, feature access and usage limits.
- ``muse_ai.core``: logging, monitoring, errors and the database layer.
- ``muse_ai.server``: the FastAPI application.
"""

__version__ = "0.1.0"
