"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "LifeQuest Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://lifequest@localhost:5432/lifequest"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "lifequest"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    level_title_provider: str = "openai"
    level_title_timeout_seconds: float = Field(default=5.0, gt=0)
    level_title_max_attempts: int = Field(default=2, ge=1, le=5)
    default_character_class: str = "Adventurer"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
