from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # --- General App Settings ---
    PROJECT_NAME: str = "Feed Doctor"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = Field("development", description="Environment: development | production")
    DEBUG: bool = False

    # --- Database ---
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "feed_doctor"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    SQLALCHEMY_DATABASE_URI: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        if self.SQLALCHEMY_DATABASE_URI:
            return self.SQLALCHEMY_DATABASE_URI
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # --- AI provider (OpenAI-compatible chat completions) ---
    AI_PROVIDER: str = Field("openai", description="Options: openai, deepseek")
    AI_API_KEY: str = Field(default="", description="Provider API key; empty disables the AI path")
    AI_API_URL: Optional[str] = None
    AI_MODEL: Optional[str] = None
    AI_TIMEOUT_SECONDS: float = 30.0
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 2000

    # --- Bulk analysis ---
    BULK_MAX_PRODUCTS: int = 500

    # --- CORS ---
    CORS_ORIGINS: List[str] = ["*"]

    # --- Logging ---
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = False
    API_LOG_LEVEL: str = "INFO"
    DB_LOG_LEVEL: str = "INFO"
    AI_LOG_LEVEL: str = "INFO"
    ANALYSIS_LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()
