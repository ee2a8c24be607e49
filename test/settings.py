"""
Test Configuration Settings.

This module defines the test environment configuration using Pydantic's BaseSettings.
Pydantic loads configuration from the test/.env file via env_file configuration.

Environment variables use double underscore (__) as delimiters for nested properties.
For example: DATABASE__URL maps to test_settings.database.url
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TestDatabaseConfig(BaseModel):
    """Database configuration container for tests."""

    url: str = Field(
        default="sqlite+aiosqlite:///:memory:",
        description="Test database connection URL (defaults to in-memory SQLite)",
    )

    model_config = ConfigDict(strict=False)


class TestLLMConfig(BaseModel):
    """Language model configuration for tests that call a real provider."""

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI key for live generation tests")
    run_live_tests: bool = Field(default=False, description="Enable tests that call the real model")

    model_config = ConfigDict(strict=False)


class TestSettings(BaseSettings):
    """
    Test environment settings model.

    Examples:
    - DATABASE__URL -> test_settings.database.url
    - LLM__RUN_LIVE_TESTS -> test_settings.llm.run_live_tests
    """

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: TestDatabaseConfig = Field(default_factory=TestDatabaseConfig)
    llm: TestLLMConfig = Field(default_factory=TestLLMConfig)


test_settings = TestSettings()
