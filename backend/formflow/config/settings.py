"""Application Settings - environment / .env driven configuration"""
from functools import lru_cache
from typing import List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Read once per process; override any field with an environment variable of the same name"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Storage
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "formflow_dev"

    # Tokens are issued by the login service; only validated here
    jwt_secret: str = "change-me-formflow-development-secret"
    jwt_algorithm: str = "HS256"

    # IANA zone the work schedules are written in
    work_schedule_timezone: str = "America/Mexico_City"

    default_department: str = "general"
    folio_retry_attempts: int = Field(1, ge=0, description="Extra attempts after a folio conflict or storage failure")

    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Comma separated, or "*"
    cors_origins: str = "*"

    environment: str = "development"
    debug: bool = True

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
