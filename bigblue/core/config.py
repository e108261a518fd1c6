"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "bigblue"

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 30

    # HTTP
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "text"
    debug: bool = True

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
