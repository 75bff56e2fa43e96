"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from environment (.env is read
via python-dotenv) or passed explicitly in tests.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

APP_ENVS = ("development", "production", "test")
MIN_PRODUCTION_SECRET_LENGTH = 32


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the meal planner backend.

    No module-level globals — construct via from_env() or pass explicitly
    in tests.
    """
    project_root: Path

    app_env: str = "development"
    port: int = 8000
    log_level: str = "INFO"

    # Database
    db_path: str = "meal_planner.db"

    # JWT
    jwt_secret: str = "change-me-in-production"
    jwt_expiry_hours: int = 168

    # Users without an explicit timezone get this one
    default_timezone: str = "Asia/Bangkok"

    # REST
    cors_origins: tuple[str, ...] = ("*",)
    docs_enabled: bool = True

    # Suggestion engine
    suggestion_cache_ttl_seconds: float = 300.0
    suggestion_sample_size: int = 10

    def __post_init__(self) -> None:
        if self.app_env not in APP_ENVS:
            raise ValueError(f"APP_ENV must be one of {APP_ENVS}, got '{self.app_env}'")
        if self.app_env == "production" and len(self.jwt_secret) < MIN_PRODUCTION_SECRET_LENGTH:
            raise ValueError(
                f"JWT_SECRET must be at least {MIN_PRODUCTION_SECRET_LENGTH} characters in production"
            )
        if self.suggestion_cache_ttl_seconds < 0:
            raise ValueError("SUGGESTION_CACHE_TTL_SECONDS must be >= 0")
        if self.suggestion_sample_size < 1:
            raise ValueError("SUGGESTION_SAMPLE_SIZE must be >= 1")

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from environment variables."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        return cls(
            project_root=root,
            app_env=os.getenv("APP_ENV", "development"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            db_path=os.getenv("DB_PATH", "meal_planner.db"),
            jwt_secret=os.getenv("JWT_SECRET", "change-me-in-production"),
            jwt_expiry_hours=int(os.getenv("JWT_EXPIRY_HOURS", "168")),
            default_timezone=os.getenv("DEFAULT_TIMEZONE", "Asia/Bangkok"),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")),
            docs_enabled=_parse_bool(os.getenv("DOCS_ENABLED", "true")),
            suggestion_cache_ttl_seconds=float(os.getenv("SUGGESTION_CACHE_TTL_SECONDS", "300")),
            suggestion_sample_size=int(os.getenv("SUGGESTION_SAMPLE_SIZE", "10")),
        )


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for entry points (REST app, CLI)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(v.strip() for v in value.split(",") if v.strip()) or ("*",)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")
