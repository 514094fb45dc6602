"""
Configuration for the pocket-money core.

Loaded from environment variables prefixed with POCKETBANK_ and from a .env file.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DEFAULT_TERM_RATES, SUPPORTED_TERMS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POCKETBANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    snapshot_path: str = Field(
        default="pocketbank_snapshot.json",
        description=(
            "Where the JSON snapshot is written. Relative paths resolve against the working "
            "directory; on Lambda set POCKETBANK_SNAPSHOT_PATH=/tmp/pocketbank_snapshot.json "
            "since the task directory is read-only"
        ),
    )
    default_parental_password: str = Field(
        default="1234",
        min_length=1,
        description="Guardian secret used when no snapshot exists yet",
    )
    default_term_rates: dict[int, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_TERM_RATES),
        description="Annual rate percent per term length for a fresh profile",
    )
    max_term_rate: Decimal = Field(
        default=Decimal("20"),
        ge=0,
        description="Highest annual rate a guardian may configure",
    )
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True, description="Render logs as JSON lines")

    @field_validator("default_term_rates")
    @classmethod
    def validate_terms(cls, v: dict[int, Decimal]) -> dict[int, Decimal]:
        unknown = set(v) - set(SUPPORTED_TERMS)
        if unknown:
            raise ValueError(f"Unsupported terms in default_term_rates: {sorted(unknown)}")
        return {**DEFAULT_TERM_RATES, **v}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Cached settings; call get_settings.cache_clear() to reload."""
    return Settings()
