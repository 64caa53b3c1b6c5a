"""Application configuration objects."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .storage import DEFAULT_SEED_SOURCE, DEFAULT_STORAGE_FILENAME


class Settings(BaseSettings):
    """Pydantic settings used to configure the application."""

    model_config = SettingsConfigDict(
        env_prefix="PARTS_INVENTORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(
        default="Parts Inventory",
        description="Human friendly name for the app.",
    )
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Deployment environment flag.",
    )
    storage_path: Path = Field(
        default=Path(DEFAULT_STORAGE_FILENAME),
        description="JSON file holding the live inventory document.",
    )
    seed_source: Optional[str] = Field(
        default=DEFAULT_SEED_SOURCE,
        description="Path or http(s) URL of the seed document used on first start.",
    )
    backup_path: Optional[Path] = Field(
        default=None,
        description="Optional mirror file rewritten with every save.",
    )
    seed_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds to wait for a remote seed document.",
    )
    secret_key: str = Field(
        default="parts-inventory-secret-key",
        description="Flask session signing key.",
    )
    host: str = "127.0.0.1"
    port: int = Field(default=5000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @field_validator("seed_source")
    @classmethod
    def _blank_seed_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of :class:`Settings`."""

    return Settings()


__all__ = ["Settings", "get_settings"]
