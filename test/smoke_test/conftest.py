"""
Test infrastructure for smoke tests with real model calls.

Smoke tests only run when ``LLM__RUN_LIVE_TESTS`` is enabled and an OpenAI key
is configured in test/.env. They are skipped otherwise.
"""

from __future__ import annotations

from test.settings import test_settings

import pytest


@pytest.fixture(autouse=True)
def _global_offline_http_guard():
    """Smoke tests talk to the real provider, so the offline guard is lifted."""
    yield


@pytest.fixture
def live_model(monkeypatch: pytest.MonkeyPatch) -> str:
    llm = test_settings.llm
    if not llm.run_live_tests or not llm.openai_api_key:
        pytest.skip("Live model tests are disabled")
    monkeypatch.setenv("OPENAI_API_KEY", llm.openai_api_key)
    return "openai:gpt-4o-mini"
