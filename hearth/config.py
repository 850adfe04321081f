"""
Hearth — Centralized configuration.

Loads all settings from .env and validates them.
Only the wiring layer (hearth.app) reads these; core classes take their
tunables as constructor arguments.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator

# Load .env from project root (one level up from hearth/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Reminder scheduler
    SCHEDULER_INTERVAL_SECONDS: float = 60

    # Realtime sessions
    WRITE_TIMEOUT_SECONDS: float = 5
    SEND_BUFFER_SIZE: int = 16

    # Janitor
    JANITOR_INTERVAL_SECONDS: float = 3600
    SENT_RETENTION_DAYS: int = 7

    # Grocery notification throttle (per household)
    GROCERY_NOTIFY_LIMIT: int = 10
    GROCERY_NOTIFY_WINDOW_SECONDS: float = 60

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator(
        "SCHEDULER_INTERVAL_SECONDS",
        "WRITE_TIMEOUT_SECONDS",
        "SEND_BUFFER_SIZE",
        "JANITOR_INTERVAL_SECONDS",
        "SENT_RETENTION_DAYS",
        "GROCERY_NOTIFY_LIMIT",
        "GROCERY_NOTIFY_WINDOW_SECONDS",
    )
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level


def _load_settings() -> Settings:
    """Load settings from environment, exiting on invalid values."""
    try:
        return Settings(
            SCHEDULER_INTERVAL_SECONDS=os.getenv("SCHEDULER_INTERVAL_SECONDS", "60"),
            WRITE_TIMEOUT_SECONDS=os.getenv("WRITE_TIMEOUT_SECONDS", "5"),
            SEND_BUFFER_SIZE=os.getenv("SEND_BUFFER_SIZE", "16"),
            JANITOR_INTERVAL_SECONDS=os.getenv("JANITOR_INTERVAL_SECONDS", "3600"),
            SENT_RETENTION_DAYS=os.getenv("SENT_RETENTION_DAYS", "7"),
            GROCERY_NOTIFY_LIMIT=os.getenv("GROCERY_NOTIFY_LIMIT", "10"),
            GROCERY_NOTIFY_WINDOW_SECONDS=os.getenv("GROCERY_NOTIFY_WINDOW_SECONDS", "60"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        )
    except ValidationError as exc:
        print(f"ERROR: invalid configuration in environment/.env:\n{exc}", file=sys.stderr)
        sys.exit(1)


# Singleton — imported by the wiring layer as:
#   from hearth.config import settings
settings = _load_settings()
