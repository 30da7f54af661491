from pydantic_settings import BaseSettings
from typing import List, Optional, Union
from pydantic import field_validator
import json


def _parse_list(v: Union[List[str], str]) -> List[str]:
    if isinstance(v, str):
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            # If not valid JSON, split by comma
            return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Hiring Pipeline API"

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "hiring_pipeline"
    # Full SQLAlchemy URL; overrides the POSTGRES_* parts when set (e.g. sqlite:///./pipeline.db)
    DATABASE_URI: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URI:
            return self.DATABASE_URI
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis Settings (for Celery task queue)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # JWT Settings (tokens are issued by the session provider)
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False

    # Tenancy
    # Organization directories are readable across tenants and never get a
    # company_id filter or stamp.
    TENANT_EXEMPT_COLLECTIONS: Union[List[str], str] = ["companies", "teams", "users", "user_roles"]

    # Pipeline
    DRAG_TIMEOUT_SECONDS: float = 5.0

    # Activity feed
    ACTIVITY_FEED_LIMIT: int = 10
    ACTIVITY_FEED_DAYS: int = 30

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:5173"]

    @field_validator("BACKEND_CORS_ORIGINS", "TENANT_EXEMPT_COLLECTIONS", mode="before")
    @classmethod
    def parse_list_settings(cls, v: Union[List[str], str]) -> List[str]:
        """Parse list settings from JSON string, comma list or list"""
        return _parse_list(v)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
