# sqtp/config/settings.py
from __future__ import annotations

from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TraceSink = Callable[[str, Dict[str, Any]], None]


class ClientSettings(BaseSettings):
    BASE_URL: str = "http://localhost:8080"
    PROTOCOL: str = "SQTP/1.0"
    TIMEOUT: float = Field(default=30.0, gt=0)  # seconds
    TRACE: bool = False
    USER_AGENT: str = "sqtp-python/0.1"

    # capability, not loaded from the environment
    TRACE_SINK: Optional[TraceSink] = Field(default=None, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="SQTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("BASE_URL must not be empty")
        return v.rstrip("/")


@lru_cache
def get_settings() -> ClientSettings:
    return ClientSettings()
