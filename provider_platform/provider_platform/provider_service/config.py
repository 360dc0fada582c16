"""
Configuration management for the Provider service
"""
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Provider service configuration loaded from environment variables"""

    # Server Configuration
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None
    HTTPS_REDIRECT: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./provider.db"
    DB_ECHO: bool = False

    # JWT Configuration
    JWT_SECRET_KEY: str = "change-this-secret-in-prod-0123456789abcdef"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 2
    JWT_ISSUER: str = "ProviderPlatform"
    JWT_AUDIENCE: str = "https://localhost"

    # Lockout Configuration
    LOCKOUT_MAX_FAILED_ATTEMPTS: int = 3
    LOCKOUT_MINUTES: int = 5

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in ("development", "dev", "local")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Global settings instance
settings = get_settings()
