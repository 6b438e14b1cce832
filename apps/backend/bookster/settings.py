# apps/backend/bookster/settings.py
from __future__ import annotations
import os
from pydantic import BaseModel
from typing import List, Optional


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, "").strip() or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "").strip() or default)
    except ValueError:
        return default


class Settings(BaseModel):
    environment: str = os.getenv("ENV", "production")

    # storage root (books, exports, admin json)
    storage_root: str = os.getenv("STORAGE_ROOT", "./data/bookster")
    exports_dir: Optional[str] = os.getenv("EXPORTS_DIR") or None
    uploads_dir: Optional[str] = os.getenv("UPLOADS_DIR") or None

    # text generation
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "").strip()
    openai_model: str = os.getenv("OPENAI_MODEL", "").strip() or "gpt-4o-mini"
    ai_timeout_seconds: float = _env_float("AI_TIMEOUT_SECONDS", 60.0)
    outline_max_tokens: int = _env_int("OUTLINE_MAX_TOKENS", 4000)
    chapter_max_tokens: int = _env_int("CHAPTER_MAX_TOKENS", 2000)

    # PDF rendering via headless Chromium
    pdf_render_timeout_seconds: float = _env_float("PDF_RENDER_TIMEOUT_SECONDS", 60.0)
    pdf_settle_ms: int = _env_int("PDF_SETTLE_MS", 2000)
    chrome_executable_path: str = os.getenv("CHROME_EXECUTABLE_PATH", "").strip()

    # requests without x-api-key get the demo owner (local dev only)
    allow_open_api: bool = os.getenv("ALLOW_OPEN_API", "0").lower() in ("1", "true", "yes")

    cors_allow_origins: List[str] = []

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [o.strip() for o in origins.split(",") if o.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @property
    def ai_configured(self) -> bool:
        return bool(self.openai_api_key)


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
