"""Application configuration settings."""
from __future__ import annotations
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Video Fake Detection"
    DEBUG: bool = False
    VERSION: str = "1.0.0"

    # Database (KYC audit trail)
    DATABASE_URL: str = "sqlite+aiosqlite:///./deepcheck.db"

    # Remote deepfake classifier
    ANALYSIS_URL: str = "https://dhairyashah-deepfake-alpha-version.hf.space/analyze"
    ANALYSIS_TIMEOUT_SECONDS: float = 300.0
    MAX_UPLOAD_BYTES: int = 800 * 1024 * 1024   # 800 MB

    # Narrative report (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    REPORT_MODEL: str = "gpt-3.5-turbo"
    REPORT_TIMEOUT_SECONDS: float = 60.0
    REPORT_ENDPOINT_URL: str = ""              # remote /api/generate-report; empty = in-process

    # Camera capture
    CAMERA_INDEX: int = 0
    RECORDING_SECONDS: int = 5
    RECORDING_FPS: float = 20.0

    # Idle upload sessions / KYC wizards are dropped after this long
    SESSION_TTL_SECONDS: int = 30 * 60

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    @property
    def report_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)

    @property
    def remote_report_configured(self) -> bool:
        return bool(self.REPORT_ENDPOINT_URL)


@lru_cache
def get_settings() -> Settings:
    return Settings()
