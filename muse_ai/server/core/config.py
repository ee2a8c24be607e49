"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It loads all configuration from environment variables and the .env file.
Related settings are exposed as grouped configuration models through
read-only properties.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class OpenAIConfig(BaseModel):
    """OpenAI API configuration used by the story generator."""

    api_key: Optional[str] = Field(default=None, description="OpenAI API key for authentication")
    model: str = Field(default="gpt-4o", description="OpenAI model used for story generation")


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = Field(description="Async SQLAlchemy connection URL")
    auto_create: bool = Field(description="Create tables from ORM metadata on startup")


class LivingStoryConfig(BaseModel):
    """Living Story change tracking configuration."""

    history_limit: int = Field(default=100, description="Change records kept per transcript")
    engine_history_limit: int = Field(default=50, description="Ripple operations kept by the engine")


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(default=True, description="Allow credentials in CORS requests")
    allow_methods: list[str] = Field(default=["*"], description="Allowed HTTP methods (use * for all)")
    allow_headers: list[str] = Field(default=["*"], description="Allowed HTTP headers (use * for all)")


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are bound from environment variables and the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="MUSE server host address to bind to",
        alias="MUSE_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="MUSE server port number",
        alias="MUSE_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="MUSE_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", description="simple, detailed or json", alias="LOG_FORMAT")
    log_file_dir: str = Field(default="logs", description="Directory of the log file", alias="LOG_FILE_DIR")
    enable_file_logging: bool = Field(default=True, description="Also log to a file", alias="ENABLE_FILE_LOGGING")

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./muse.db",
        description="Async connection URL for the application database",
        alias="DATABASE_URL",
    )
    database_auto_create: bool = Field(
        default=True,
        description="Create tables on startup instead of relying on Alembic",
        alias="DATABASE_AUTO_CREATE",
    )

    # =====================================================================
    # LLM Configuration
    # =====================================================================
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")

    # =====================================================================
    # Living Story Configuration
    # =====================================================================
    living_story_history_limit: int = Field(default=100, ge=1, alias="LIVING_STORY_HISTORY_LIMIT")
    living_story_engine_history_limit: int = Field(default=50, ge=1, alias="LIVING_STORY_ENGINE_HISTORY_LIMIT")

    # =====================================================================
    # CORS Configuration
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def openai(self) -> OpenAIConfig:
        """Get OpenAI configuration."""
        return OpenAIConfig(api_key=self.openai_api_key, model=self.openai_model)

    @property
    def database(self) -> DatabaseConfig:
        """Get database configuration."""
        return DatabaseConfig(url=self.database_url, auto_create=self.database_auto_create)

    @property
    def living_story(self) -> LivingStoryConfig:
        """Get Living Story configuration."""
        return LivingStoryConfig(
            history_limit=self.living_story_history_limit,
            engine_history_limit=self.living_story_engine_history_limit,
        )

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration."""
        return CORSConfig(origins=self.cors_origins)

    def llm_model_name(self) -> Optional[str]:
        """pydantic-ai model identifier, or None when no API key is configured.

        Without a model every generation falls back to the deterministic
        generator and Living Story regeneration is skipped.
        """
        if not self.openai_api_key:
            return None
        return f"openai:{self.openai_model}"


settings = Settings()
