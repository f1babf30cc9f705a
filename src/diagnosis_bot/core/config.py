from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Конфигурация приложения."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    # Telegram
    bot_token: str = Field(..., description="Telegram Bot Token")
    
    # Каталог тестов (None — встроенный data/tests_config.json)
    catalog_path: str | None = Field(
        default=None,
        description="Path to the JSON test catalog"
    )
    
    # Сессии живут только в памяти; 0 — без автоматического сброса
    session_idle_timeout_minutes: int = Field(
        default=0,
        ge=0,
        description="Idle minutes before an unfinished session is dropped"
    )
    eviction_check_interval: int = Field(
        default=60,
        gt=0,
        description="Seconds between idle session sweeps"
    )
    
    # Monitoring
    sentry_dsn: str | None = Field(
        default=None,
        description="Sentry DSN for error tracking"
    )

    # App
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """Singleton для настроек."""
    return Settings()
