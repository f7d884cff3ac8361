from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from constants import DEFAULT_OCR_MODEL

API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    ocr_model: str = DEFAULT_OCR_MODEL
    camera_index: int = 0
    log_level: int = logging.INFO

    @property
    def ocr_enabled(self) -> bool:
        return bool(self.api_key)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables. The first non-empty of
    GEMINI_API_KEY, GOOGLE_API_KEY and API_KEY is the recognition key.
    """
    env = os.environ if environ is None else environ
    api_key = next((env[k].strip() for k in API_KEY_VARS if env.get(k, "").strip()), "")

    raw_index = env.get("FEVER_CAMERA_INDEX", "0").strip() or "0"
    try:
        camera_index = int(raw_index)
    except ValueError:
        raise ValueError(f"FEVER_CAMERA_INDEX must be an integer, got {raw_index!r}.") from None

    level_name = env.get("FEVER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown FEVER_LOG_LEVEL {level_name!r}.")

    return Settings(
        api_key=api_key,
        ocr_model=env.get("FEVER_OCR_MODEL", "").strip() or DEFAULT_OCR_MODEL,
        camera_index=camera_index,
        log_level=log_level,
    )
