"""
Application configuration using Pydantic Settings.
Loads from environment variables / .env file.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Mechanic Marketplace API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # MongoDB
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "mechanic_marketplace"
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # JWT
    JWT_SECRET_KEY: str = "your-super-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Requests
    MAX_REQUEST_BODY_BYTES: int = 1_000_000

    # Feature switches (read by routes only, see app.core.features)
    FEATURE_MESSAGING_ENABLED: bool = True
    FEATURE_ANALYTICS_ENABLED: bool = True
    FEATURE_CONVERSATION_FALLBACK: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"



@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
