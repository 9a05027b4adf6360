"""
Application configuration using Pydantic Settings
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # EquiDuty backend
    EQUIDUTY_API_BASE_URL: str = "http://localhost:5003"
    EQUIDUTY_API_TOKEN: str = ""
    EQUIDUTY_API_TIMEOUT: float = 30.0

    # Security
    SECRET_KEY: str = "super-secret-key-change-me"  # Replace in production!

    # Application
    TIMEZONE: str = "Europe/Stockholm"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Today feed: routines are loaded for the current day only unless enabled
    ROUTINES_FOLLOW_SELECTED_RANGE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def get_api_base_url(self) -> str:
        """
        Base URL with a trailing slash, so relative endpoint paths join correctly
        """
        url = self.EQUIDUTY_API_BASE_URL
        if not url.endswith("/"):
            return url + "/"
        return url


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance (singleton)
    """
    return Settings()
