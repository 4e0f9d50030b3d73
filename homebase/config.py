"""
Homebase Assistant — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from homebase/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

_KNOWN_PROVIDERS = ("gemini", "anthropic", "openai", "cohere")


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram (only needed by the bot entry point)
    TELEGRAM_BOT_TOKEN: str = ""

    # LLM: provider-agnostic for single-shot completions (gemini, anthropic, openai, cohere).
    # Tool calling in the conversational assistant needs an OpenAI-compatible provider.
    LLM_PROVIDER: str = "openai"
    LLM_MODEL: str = ""          # empty → smart default per provider
    LLM_API_KEY: str = ""        # empty → AI features disabled

    # SQLite
    DATABASE_PATH: str = "data/homebase.db"

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Assistant
    ASSISTANT_MAX_TOOL_ROUNDS: int = 5
    CHAT_HISTORY_LIMIT: int = 10

    # Daily insights
    INSIGHTS_HOUR: int = 7
    INSIGHTS_AI_ENABLED: bool = True
    TIMEZONE: str = "America/Chicago"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("ASSISTANT_MAX_TOOL_ROUNDS", "CHAT_HISTORY_LIMIT", "INSIGHTS_HOUR", mode="before")
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("INSIGHTS_AI_ENABLED", mode="before")
    @classmethod
    def parse_bool(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() not in ("0", "false", "no", "off", "")

    @property
    def ai_configured(self) -> bool:
        """True when an LLM key is present and AI insights are enabled."""
        return bool(self.LLM_API_KEY) and not self.LLM_API_KEY.startswith("your-") and self.INSIGHTS_AI_ENABLED

    def local_today(self) -> date:
        """The current calendar day in TIMEZONE, the zone the daily job runs in."""
        return datetime.now(ZoneInfo(self.TIMEZONE)).date()


def _load_settings() -> Settings:
    """Load settings from environment, validating the provider name."""
    provider = os.getenv("LLM_PROVIDER", "openai").strip().lower()

    if provider not in _KNOWN_PROVIDERS:
        print(
            f"ERROR: LLM_PROVIDER={provider!r} is not supported "
            f"(expected one of: {', '.join(_KNOWN_PROVIDERS)})",
            file=sys.stderr,
        )
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        LLM_PROVIDER=provider,
        LLM_MODEL=os.getenv("LLM_MODEL", ""),
        LLM_API_KEY=os.getenv("LLM_API_KEY", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/homebase.db"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        ASSISTANT_MAX_TOOL_ROUNDS=os.getenv("ASSISTANT_MAX_TOOL_ROUNDS", "5"),
        CHAT_HISTORY_LIMIT=os.getenv("CHAT_HISTORY_LIMIT", "10"),
        INSIGHTS_HOUR=os.getenv("INSIGHTS_HOUR", "7"),
        INSIGHTS_AI_ENABLED=os.getenv("INSIGHTS_AI_ENABLED", "true"),
        TIMEZONE=os.getenv("TIMEZONE", "America/Chicago"),
    )


# Singleton, imported by all other modules as:
#   from homebase.config import settings
settings = _load_settings()
