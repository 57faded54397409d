from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allow selecting which .env to read (host vs docker)
ENV_FILE = os.environ.get(
    "ENV_FILE",
    str(Path(__file__).resolve().parent.parent / ".env"),
)

ALL_ORIGINS = ["*"]


def _clean(items: list[Any]) -> list[str]:
    return [str(item).strip() for item in items if str(item).strip()]


def split_origins(raw: Any) -> list[str]:
    """Turn a CORS origin setting into a list of origins.

    Accepts a list, a JSON array string or a comma-separated string; blank
    input and ``*`` mean every origin.
    """
    if isinstance(raw, list):
        return _clean(raw)
    if not isinstance(raw, str) or raw.strip() in {"", "*"}:
        return list(ALL_ORIGINS)

    text = raw.strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return _clean(parsed)
    return _clean(text.split(","))


class Settings(BaseSettings):
    # ---- App ----
    app_name: str = "Users API"
    env: str = "development"

    # ---- DB ----
    database_url: str = "sqlite:///./dev.db"

    # ---- Other ----
    log_level: str = "info"
    cors_allow_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _parse_cors(cls, v: Any) -> list[str]:
        return split_origins(v)


settings = Settings()
