"""
Configuration settings for the reciprocal-headings trainer.

Uses Pydantic Settings for environment variable management with .env file support.
Algorithm constants (stability threshold, latency bands, level time limits)
are fixed constants in their own modules.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HEADINGS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Log level for the CLI",
    )

    # ========================================
    # Session
    # ========================================
    level2_keypad_offset_ms: int = Field(
        default=500,
        ge=0,
        description="Keypad lookup allowance subtracted from level 2 response times",
    )
    sandwich_max_redraws: int = Field(
        default=20,
        ge=1,
        description="Draws attempted to find a distractor during a sandwich retry",
    )

    # ========================================
    # Mastery Challenge
    # ========================================
    mastery_challenge_limit_ms: int = Field(
        default=1200,
        gt=0,
        description="Green window for tap-input mastery challenges",
    )
    mastery_challenge_verbal_limit_ms: int = Field(
        default=1700,
        gt=0,
        description="Green window for voice-input mastery challenges",
    )
    mastery_challenge_keypad_limit_ms: int = Field(
        default=3000,
        gt=0,
        description="Green window for keypad-input mastery challenges",
    )

    # ========================================
    # Simulation
    # ========================================
    random_seed: int | None = Field(
        default=None,
        description="Seed for simulated sessions (unseeded if unset)",
    )
    simulation_max_turns: int = Field(
        default=20000,
        gt=0,
        description="Turn cap for simulated sessions",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
