from fastapi import APIRouter

from app.config import get_settings
from app.schemas.system import (
    AppGroup,
    DatabaseGroup,
    DiscordGroup,
    GeneralGroup,
    HealthStatus,
    LLMGroup,
    SystemSettingsGrouped,
    ThreadsGroup,
)

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health", response_model=HealthStatus)
def get_health() -> HealthStatus:
    return HealthStatus(status="ok")


@router.get("/settings", response_model=SystemSettingsGrouped)
def get_system_settings() -> SystemSettingsGrouped:
    """Return grouped, non-sensitive system configuration settings for troubleshooting."""
    s = get_settings()

    app_group = AppGroup(
        name=s.app_name,
        environment=s.environment,
        log_level=s.log_level,
        port=s.port,
    )

    # Extract safe database info only (no credentials)
    database_group = DatabaseGroup()
    if s.database_url:
        url_obj = s.database_url_obj
        database_group = DatabaseGroup(
            database_host=url_obj.host,
            database_driver=url_obj.get_backend_name(),
            database_name=url_obj.database,
        )

    discord_group = DiscordGroup(
        bot_token_configured=bool(s.discord_bot_token),
        dev_guild_id=s.discord_dev_guild_id,
    )

    llm_group = LLMGroup(
        gcp_project_id=s.gcp_project_id,
        gcp_location=s.gcp_location,
        model=s.vertex_ai_model,
        temperature=s.llm_temperature,
        max_output_tokens=s.llm_max_output_tokens,
        tools_enabled=s.llm_enable_tools,
        system_prompt_configured=bool(s.llm_system_prompt),
    )

    threads_group = ThreadsGroup(
        auto_archive_minutes=s.thread_auto_archive_minutes,
        stream_edit_interval_ms=s.stream_edit_interval_ms,
        cleanup_max_age_hours=s.thread_cleanup_max_age_hours,
        cleanup_interval_minutes=s.thread_cleanup_interval_minutes,
    )

    return SystemSettingsGrouped(
        app=app_group,
        database=database_group,
        general=GeneralGroup(is_production=s.is_production),
        discord=discord_group,
        llm=llm_group,
        threads=threads_group,
    )
