"""Pydantic schema for lookup configuration validation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    DEFAULT_CACHE_SECONDS,
    DEFAULT_GROUP_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MALFORMED_LINES,
    DEFAULT_PASSWD_FILE,
)

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LookupSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    passwd_file: str = Field(default=DEFAULT_PASSWD_FILE, min_length=1)
    group_file: str = Field(default=DEFAULT_GROUP_FILE, min_length=1)
    cache_seconds: float = Field(
        default=DEFAULT_CACHE_SECONDS,
        ge=0,
        allow_inf_nan=False,
        description="Snapshot freshness in seconds",
    )
    malformed_lines: Literal["skip", "abort"] = Field(default=DEFAULT_MALFORMED_LINES)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL)

    @field_validator("malformed_lines", mode="before")
    @classmethod
    def _normalize_policy(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}")
        return level
