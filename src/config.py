"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./planpilot.db"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_timeout_seconds: float = 90.0
    generation_max_retries: int = 2          # retries after the first attempt
    generation_backoff_base_seconds: float = 1.5

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "PlanPilot"
    version: str = "1.0.0"

    # Draft persistence
    draft_slot_key: str = "planpilot-draft"
    history_limit: int = 50

    # Quality thresholds (minutes unless noted)
    quality_overshoot_tolerance_minutes: int = 2
    quality_undershoot_tolerance_minutes: int = 5
    quality_min_phase_minutes: int = 3
    quality_summary_tolerance_minutes: int = 2
    quality_max_phases: int = 6
    quality_max_social_forms: int = 4

    # Rate limiting (API Gateway)
    rate_limit_api_per_minute: int = 120        # per IP for general API
    rate_limit_generation_per_hour: int = 30    # per IP for generation endpoints
    rate_limit_enabled: bool = True

    # Curriculum uploads
    upload_max_bytes: int = 1024 * 1024

    @property
    def ai_configured(self) -> bool:
        """True when a real (non-placeholder) OpenAI key is set."""
        key = self.openai_api_key.strip()
        return bool(key) and not key.startswith("sk-your-")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
