"""Pydantic-based configuration helpers for the interaction router."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from typing import Iterable, List, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

_PUBLIC_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")

# Discord KV-style stores refuse TTLs below one minute.
MIN_COMPONENT_TTL = 60


class AppSettings(BaseModel):
    """Settings required to verify, route and answer Discord interactions."""

    application_id: str = Field(..., alias="DISCORD_APPLICATION_ID")
    public_key: str = Field(..., alias="DISCORD_PUBLIC_KEY")
    bot_token: str = Field(..., alias="DISCORD_TOKEN")
    database_url: str = Field(..., alias="DATABASE_URL")
    environment: Literal["dev", "production"] = Field("production", alias="ENVIRONMENT")
    development_guild_id: str | None = Field(None, alias="DEVELOPMENT_SERVER_ID")
    origin: str | None = Field(None, alias="DISCOHOOK_ORIGIN")
    component_ttl_seconds: int = Field(900, alias="COMPONENT_TTL_SECONDS")
    signature_max_age_seconds: int | None = Field(None, alias="SIGNATURE_MAX_AGE_SECONDS")

    @field_validator("public_key")
    @classmethod
    def _validate_public_key(cls, value: str) -> str:
        value = value.strip()
        if not _PUBLIC_KEY_RE.match(value):
            raise ValueError("DISCORD_PUBLIC_KEY must be 64 hexadecimal characters")
        return value.lower()

    @field_validator("component_ttl_seconds")
    @classmethod
    def _ensure_minimum_ttl(cls, value: int) -> int:
        if value < MIN_COMPONENT_TTL:
            raise ValueError(f"Component TTL must be at least {MIN_COMPONENT_TTL} seconds")
        return value

    @field_validator("signature_max_age_seconds")
    @classmethod
    def _ensure_positive_age(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("Signature max age must be greater than zero")
        return value

    @field_validator("development_guild_id", "origin", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of missing env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        if not missing:
            raise RuntimeError(f"Invalid configuration: {exc}") from exc
        message = (
            "Missing required environment variables: "
            f"{_format_missing(missing)}"
        )
        raise RuntimeError(message) from exc
