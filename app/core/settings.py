"""Configuration and environment settings for the BetterBudget core."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings for the BetterBudget core."""

    database_url: str = "sqlite:///betterbudget.db"
    import_window_days: int = 90
    log_dir: str = "logs"
    log_file: str = "betterbudget.log"
    log_level: str = "INFO"
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


def get_settings() -> "Settings":
    """Return an instance of the application settings."""
    return Settings()
