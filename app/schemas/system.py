from typing import Optional

from pydantic import BaseModel


class AppGroup(BaseModel):
    name: str
    environment: str
    log_level: str
    port: int


class DatabaseGroup(BaseModel):
    database_host: Optional[str] = None
    database_driver: Optional[str] = None
    database_name: Optional[str] = None


class GeneralGroup(BaseModel):
    is_production: bool


class DiscordGroup(BaseModel):
    bot_token_configured: bool
    dev_guild_id: Optional[str] = None


class LLMGroup(BaseModel):
    gcp_project_id: Optional[str] = None
    gcp_location: Optional[str] = None
    model: str
    temperature: float
    max_output_tokens: int
    tools_enabled: bool
    system_prompt_configured: bool


class ThreadsGroup(BaseModel):
    auto_archive_minutes: int
    stream_edit_interval_ms: int
    cleanup_max_age_hours: int
    cleanup_interval_minutes: Optional[int] = None


class SystemSettingsGrouped(BaseModel):
    app: AppGroup
    database: DatabaseGroup
    general: GeneralGroup
    discord: DiscordGroup
    llm: LLMGroup
    threads: ThreadsGroup


class HealthStatus(BaseModel):
    status: str
