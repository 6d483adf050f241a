"""
Lovebirds Assistant: centralized configuration.

Loads all settings from .env and validates required keys.
Every adapter and the entry point read their configuration from here.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Data provider: "sqlite" | "rest"
    DATA_PROVIDER: str = "sqlite"

    # SQLite (only needed when DATA_PROVIDER=sqlite)
    DATABASE_PATH: str = "data/lovebirds.db"

    # REST data API (only needed when DATA_PROVIDER=rest)
    API_BASE_URL: str = ""
    API_KEY: str = ""
    API_TIMEOUT_SECONDS: float = 10.0

    # Clock used for "now" and calendar-day boundaries
    TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"

    @field_validator("API_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def parse_timeout(cls, v: str | float) -> float:
        return float(v)

    @field_validator("TIMEZONE", mode="before")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        name = str(v).strip() or "UTC"
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown TIMEZONE: {name!r}") from exc
        return name

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return str(v).strip().upper() or "INFO"


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    provider = os.getenv("DATA_PROVIDER", "sqlite")
    api_base_url = os.getenv("API_BASE_URL", "")

    if provider.lower() == "rest" and (not api_base_url or api_base_url.startswith("your-")):
        print("ERROR: API_BASE_URL is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    try:
        return Settings(
            DATA_PROVIDER=provider,
            DATABASE_PATH=os.getenv("DATABASE_PATH", "data/lovebirds.db"),
            API_BASE_URL=api_base_url,
            API_KEY=os.getenv("API_KEY", ""),
            API_TIMEOUT_SECONDS=os.getenv("API_TIMEOUT_SECONDS", "10"),
            TIMEZONE=os.getenv("TIMEZONE", "UTC"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid settings in .env: {exc}", file=sys.stderr)
        sys.exit(1)


# Singleton, imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
