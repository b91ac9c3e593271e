from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


DEFAULT_ALLOWED_ORIGINS = (
    "http://localhost:5173,"
    "http://localhost:3000,"
    "https://turomoko-ai.vercel.app"
)


def _split_origins(raw: str) -> List[str]:
    # Browsers send Origin without a trailing slash.
    return [item.strip().rstrip("/") for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.google_api_key: Optional[str] = (
            os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None
        )
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.6"))
        self.top_p: float = float(os.getenv("MODEL_TOP_P", "0.95"))
        self.max_output_tokens: int = int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "4096"))
        self.history_limit: int = int(os.getenv("HISTORY_LIMIT", "12"))
        self.max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", str(1024 * 1024)))
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "4000"))
        self.allowed_origins: List[str] = _split_origins(
            os.getenv("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS)
        )
        self.app_base_url: str = os.getenv("APP_BASE_URL", "http://localhost")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
