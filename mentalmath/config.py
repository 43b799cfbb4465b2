"""
Configuration settings for the adaptive personalization engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every weight and threshold used by the scoring components is a setting, so a
deployment can retune the engine without code changes (MENTALMATH_* variables).
"""
from __future__ import annotations

import sys
from functools import lru_cache
from typing import Literal

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdaptiveSettings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MENTALMATH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # History aggregation
    # ========================================
    history_decay: float = Field(
        default=0.9,
        gt=0.0,
        le=1.0,
        description="Per-step decay of older sessions in rolling averages",
    )

    # ========================================
    # Area classification
    # ========================================
    area_slice_fraction: float = Field(
        default=0.3,
        gt=0.0,
        le=1.0,
        description="Fraction of exercise types labelled strength / weakness",
    )
    area_min_average_time: float = Field(
        default=1.0,
        gt=0.0,
        description="Floor (seconds) for average time in area scores",
    )

    # ========================================
    # Learning style detection
    # ========================================
    style_dominance_threshold: float = Field(
        default=0.6,
        description="Share of correct answers a modality must exceed to become the style",
    )

    # ========================================
    # Difficulty adjustment
    # ========================================
    weight_accuracy: float = Field(default=0.4, description="Performance score weight: accuracy")
    weight_speed: float = Field(default=0.3, description="Performance score weight: speed")
    weight_consistency: float = Field(default=0.2, description="Performance score weight: consistency")
    weight_difficulty_handling: float = Field(
        default=0.1, description="Performance score weight: difficulty handling"
    )
    speed_reference_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Average time at which the speed component reaches zero",
    )
    promote_threshold: float = Field(default=0.85, description="Score above which difficulty rises")
    demote_threshold: float = Field(default=0.65, description="Score below which difficulty falls")
    adjustment_rate: float = Field(default=0.1, description="Scale applied to the score delta")

    # ========================================
    # Session personalization
    # ========================================
    recent_session_limit: int = Field(
        default=10,
        ge=1,
        description="Completed sessions considered for the recent trend",
    )
    base_time_limit_seconds: float = Field(default=60.0, description="Base per-question time limit")
    min_question_count: int = Field(default=5, description="Lower bound on questions per session")
    max_question_count: int = Field(default=50, description="Upper bound on questions per session")
    max_focus_areas: int = Field(default=3, description="Maximum focus areas per session")

    # ========================================
    # Real-time adaptation
    # ========================================
    realtime_min_responses: int = Field(
        default=3,
        description="Responses required in the buffer before evaluating",
    )
    realtime_cooldown_minutes: float = Field(
        default=5.0,
        ge=0.0,
        description="Minimum minutes between two adaptations of one session",
    )
    realtime_max_adaptations: int = Field(default=3, description="Adaptations allowed per session")
    realtime_breakpoint_interval: int = Field(
        default=5,
        ge=1,
        description="Evaluate when (exercise_index + 1) is a multiple of this",
    )
    realtime_min_time_limit_seconds: int = Field(
        default=15,
        description="Floor for retuned per-exercise time limits",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    @property
    def score_weights(self) -> dict[str, float]:
        return {
            "accuracy": self.weight_accuracy,
            "speed": self.weight_speed,
            "consistency": self.weight_consistency,
            "difficulty_handling": self.weight_difficulty_handling,
        }


@lru_cache(maxsize=1)
def get_settings() -> AdaptiveSettings:
    """Get cached settings instance."""
    return AdaptiveSettings()


def configure_logging(settings: AdaptiveSettings | None = None) -> None:
    """Install loguru sinks for the host process."""
    settings = settings or get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name} | {message}",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention=5,
        )
