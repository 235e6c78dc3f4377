# timetrack/config.py
from pydantic_settings import BaseSettings
from typing import List, Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(7)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./timetrack.db")
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = Field(False)

    LOG_LEVEL: str = Field("INFO")

    # Comma-separated list of allowed browser origins.
    CORS_ORIGINS: str = Field("http://localhost:3000,http://localhost:5173")

    # "template" or "huggingface"
    NARRATIVE_BACKEND: str = Field("template")
    HUGGING_FACE_API_KEY: Optional[str] = None
    HUGGING_FACE_MODEL: str = Field("meta-llama/Llama-3.1-8B-Instruct")
    HUGGING_FACE_BASE_URL: str = Field("https://router.huggingface.co/v1")
    NARRATIVE_TIMEOUT_SECONDS: float = Field(15.0)
    NARRATIVE_MAX_TOKENS: int = Field(100)
    NARRATIVE_TEMPERATURE: float = Field(0.7)

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL
        # Ensure asyncpg is used
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

settings = Settings()
