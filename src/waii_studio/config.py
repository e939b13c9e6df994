from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


DEFAULT_COMPOSITE_MODEL = "gemini-2.5-flash-image-preview"
DEFAULT_TEXT_MODEL = "imagen-4.0-generate-001"

_API_KEY_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY")


class Settings(BaseModel):
    api_key: Optional[str] = None
    composite_model: str = DEFAULT_COMPOSITE_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    fetch_timeout: float = 20.0
    jpeg_quality: float = Field(default=0.92, ge=0.0, le=1.0)
    watermark_font: Optional[str] = None
    log_level: str = "INFO"


def _env_api_key() -> Optional[str]:
    for name in _API_KEY_VARS:
        key = os.getenv(name)
        if key:
            return key
    return None


def load_settings(dotenv: bool = True) -> Settings:
    """Build settings from the environment, reading a local .env first if present."""
    if dotenv:
        load_dotenv()
    values = {
        "api_key": _env_api_key(),
        "composite_model": os.getenv("WAII_COMPOSITE_MODEL"),
        "text_model": os.getenv("WAII_TEXT_MODEL"),
        "fetch_timeout": os.getenv("WAII_FETCH_TIMEOUT"),
        "jpeg_quality": os.getenv("WAII_JPEG_QUALITY"),
        "watermark_font": os.getenv("WAII_WATERMARK_FONT"),
        "log_level": os.getenv("WAII_LOG_LEVEL"),
    }
    return Settings(**{k: v for k, v in values.items() if v is not None})


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    )
