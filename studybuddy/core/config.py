from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Base
    APP_ENV: str = "dev"  # dev | test | prod
    APP_NAME: str = "StudyBuddy API"
    APP_VERSION: str = "0.1.0"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8081"

    # Security
    API_KEY: str = "change_me"

    # Storage
    STORAGE_PATH: str = "./storage"
    DATABASE_URL: str = ""  # vide = sqlite sous STORAGE_PATH
    KV_BACKEND: str = "sql"  # sql | memory
    MAX_UPLOAD_MB: int = 25
    ALLOWED_EXTENSIONS: str = "pdf,docx,pptx"

    # AI
    AI_PROVIDER: str = "http"  # http | openai
    AI_ENDPOINT: str = "https://api.example.com/google-ai"
    AI_MODEL: str = "gpt-4o-mini"
    AI_API_KEY: str = ""
    AI_MAX_TOKENS: int = 1000
    AI_TEMPERATURE: float = 0.7
    AI_TIMEOUT_SECONDS: float = 60.0
    PROMPT_CHAR_BUDGET: int = 5000
    AUDIO_SEGMENT_CHARS: int = Field(default=1500, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def allowed_extensions(self) -> set[str]:
        return {e.strip().lower().lstrip(".") for e in self.ALLOWED_EXTENSIONS.split(",") if e.strip()}

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{self.STORAGE_PATH.rstrip('/')}/studybuddy.db"


@lru_cache
def get_settings() -> Settings:
    return Settings()
