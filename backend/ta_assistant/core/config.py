"""
Core configuration for the TA Assignment Assistant.

This module centralizes all application settings using Pydantic for type safety
and validation. Settings are loaded from environment variables.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # ==================== Pydantic Settings ====================
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._create_directories()

    APP_NAME: str = "TA Assignment Assistant"
    APP_VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ==================== Development Defaults ====================
    DEBUG: bool = True
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"

    # CORS - Development default
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # ==================== File Storage ====================
    DATA_DIR: Path = Path("data")

    @property
    def SUBMISSIONS_DIR(self) -> Path:
        return self.DATA_DIR / "submissions"

    # File upload constraints
    MAX_UPLOAD_SIZE: int = 52428800  # 50MB in bytes
    ALLOWED_EXTENSIONS: set[str] = {".pdf"}

    # ==================== LLM Configuration ====================
    LLM_PROVIDER: str = "openai"

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llava"

    # LLM parameters - can be tuned via .env
    LLM_TIMEOUT: int = 120
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 2048
    VALIDATE_LLM_ON_STARTUP: bool = True

    # ==================== Document Ingestion ====================
    # Minimum characters of directly extracted text before falling back to OCR
    INGEST_TEXT_THRESHOLD: int = 500
    INGEST_MAX_PAGES: int = 30
    INGEST_RENDER_SCALE: float = 2.0
    INGEST_RENDER_CONCURRENCY: int = 4
    INGEST_TIMEOUT_SECONDS: Optional[float] = 300.0

    OCR_CONCURRENCY: int = 4
    OCR_MODEL: Optional[str] = None  # defaults to the chat model

    # ==================== Evaluation ====================
    QUESTIONS_MIN: int = 10
    QUESTIONS_MAX: int = 14
    SYSTEM_PROMPT_FILE: Optional[Path] = None
    ASSIGNMENT_FILE: Optional[Path] = None
    RUBRIC_FILE: Optional[Path] = None

    # ==================== Logging ====================
    LOG_FORMAT: str = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"

    # ==================== Telemetry ====================
    OTEL_ENABLED: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://localhost:4318"

    @property
    def default_model(self) -> str:
        """Chat model for the configured provider."""
        if self.LLM_PROVIDER == "ollama":
            return self.OLLAMA_MODEL
        return self.OPENAI_MODEL

    @property
    def ocr_model(self) -> str:
        return self.OCR_MODEL or self.default_model

    def _create_directories(self) -> None:
        """Create necessary directories on initialization."""
        directories = [
            self.DATA_DIR,
            self.SUBMISSIONS_DIR,
        ]

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    def validate_required_settings(self) -> list[str]:
        """
        Validate that all required external dependencies are configured.

        Returns:
            List of validation errors (empty if all valid)
        """
        errors = []

        if self.LLM_PROVIDER == "openai":
            if not self.OPENAI_API_KEY:
                errors.append("OPENAI_API_KEY is required")
            if not self.OPENAI_MODEL:
                errors.append("OPENAI_MODEL is required")

        elif self.LLM_PROVIDER == "ollama":
            if not self.OLLAMA_BASE_URL:
                errors.append("OLLAMA_BASE_URL is required")
            if not self.OLLAMA_MODEL:
                errors.append("OLLAMA_MODEL is required")

        else:
            errors.append(f"Unsupported LLM_PROVIDER: {self.LLM_PROVIDER}")

        if self.QUESTIONS_MIN > self.QUESTIONS_MAX:
            errors.append("QUESTIONS_MIN must not exceed QUESTIONS_MAX")

        return errors


# ==================== Global Settings Instance ====================
settings = Settings()


# ==================== Helper Functions ====================
@lru_cache()
def get_settings() -> Settings:
    """
    Dependency function for FastAPI routes.

    Usage:
        @app.get("/config")
        def get_config(settings: Settings = Depends(get_settings)):
            return {"model": settings.OPENAI_MODEL}
    """
    return settings
