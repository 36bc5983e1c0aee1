import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine.url import make_url, URL

from app.exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///data/threads.db"
DEFAULT_TEST_DATABASE_URL = "sqlite://"

# Project root (parent of app/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "threadwise"
    database_url: Optional[str] = None  # Will be set dynamically
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=3000, json_schema_extra={"env": "PORT"})

    # Discord
    discord_bot_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "DISCORD_BOT_TOKEN"}
    )
    discord_dev_guild_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DEV_GUILD_ID", "DISCORD_DEV_GUILD_ID"),
    )

    # Vertex AI
    gcp_project_id: Optional[str] = Field(
        default=None, json_schema_extra={"env": "GCP_PROJECT_ID"}
    )
    gcp_location: Optional[str] = Field(
        default="us-central1", json_schema_extra={"env": "GCP_LOCATION"}
    )
    vertex_ai_model: str = Field(
        default="gemini-1.5-pro", json_schema_extra={"env": "VERTEX_AI_MODEL"}
    )
    llm_temperature: float = Field(
        default=0.7, json_schema_extra={"env": "LLM_TEMPERATURE"}
    )
    llm_max_output_tokens: int = Field(
        default=400, json_schema_extra={"env": "LLM_MAX_OUTPUT_TOKENS"}
    )
    llm_enable_tools: bool = Field(
        default=True, json_schema_extra={"env": "LLM_ENABLE_TOOLS"}
    )
    llm_system_prompt: Optional[str] = Field(
        default=None, json_schema_extra={"env": "LLM_SYSTEM_PROMPT"}
    )

    # Threads
    thread_auto_archive_minutes: int = Field(
        default=60, json_schema_extra={"env": "THREAD_AUTO_ARCHIVE_MINUTES"}
    )
    stream_edit_interval_ms: int = Field(
        default=50, ge=0, json_schema_extra={"env": "STREAM_EDIT_INTERVAL_MS"}
    )
    thread_cleanup_max_age_hours: int = Field(
        default=24, ge=0, json_schema_extra={"env": "THREAD_CLEANUP_MAX_AGE_HOURS"}
    )
    thread_cleanup_interval_minutes: Optional[int] = Field(
        default=None,
        ge=1,
        json_schema_extra={"env": "THREAD_CLEANUP_INTERVAL_MINUTES"},
    )

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="allow",  # Allow extra environment variables
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = values.get("environment", os.getenv("ENV", "development"))
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        elif not values.get("database_url"):
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"

    @property
    def database_url_obj(self) -> URL:
        """Return the database URL as a URL object using sqlalchemy's make_url."""
        if not self.database_url:
            raise ValueError("Database URL is not set.")
        return make_url(self.database_url)

    def require_runtime(self) -> None:
        """Raise ConfigurationError listing every value the bot cannot start without."""
        missing = []
        if not self.discord_bot_token:
            missing.append("DISCORD_BOT_TOKEN")
        if not self.gcp_project_id:
            missing.append("GCP_PROJECT_ID")
        if not self.gcp_location:
            missing.append("GCP_LOCATION")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
