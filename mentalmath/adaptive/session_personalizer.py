"""
Session Personalizer.

Builds the SessionConfig for a new session from:
- the learner's AdaptiveProfile (difficulty, style, areas, rolling averages)
- RecentPerformance over the last ~10 completed sessions
- the base SessionRequest (curriculum, level, question count, preferences)

Each parameter is tuned independently:
- target difficulty: trend, recent accuracy and level jump nudges
- question count: consistency, response speed and length preferences
- time limit: learning style, response speed and time preferences
- focus areas: weakness, strength, struggling areas, requested areas (max 3)
- adaptive features: real-time adjustment only for consistent learners

Also produces the GenerationProfile for the exercise generator, the
session plan (breakpoints and pacing) and reasoning codes.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.models import (
    MAX_DIFFICULTY_SCORE,
    MIN_DIFFICULTY_SCORE,
    AdaptiveFeatureFlags,
    AdaptiveProfile,
    GenerationProfile,
    LearningStyle,
    LiveExercise,
    PerformanceTrend,
    RecentPerformance,
    SessionConfig,
    SessionPlan,
    SessionPreferences,
    SessionRequest,
    clamp,
)

# Per-question time factor by learning style
LEARNING_STYLE_TIME_FACTORS = {
    LearningStyle.VISUAL: 1.1,
    LearningStyle.AUDITORY: 1.0,
    LearningStyle.KINESTHETIC: 1.2,
    LearningStyle.MIXED: 1.0,
}

BREAKPOINT_FRACTIONS = (0.3, 0.6, 0.8)
MAX_AVOID_TYPES = 2


class SessionPersonalizer:
    """
    Tune session parameters to a learner.

    All methods are pure: they read the profile and recent performance
    and return new values without mutating either.
    """

    def __init__(self, settings: AdaptiveSettings | None = None):
        self.settings = settings or get_settings()

    # ==================== Difficulty ====================

    def calculate_target_difficulty(
        self,
        profile: AdaptiveProfile,
        recent: RecentPerformance,
        requested_level: int,
    ) -> float:
        """
        Start from the profile difficulty and apply bounded nudges.

        Each step is clamped to [0.1, 1.0]; the result is rounded to 2 decimals.
        """

        def bounded(value: float) -> float:
            return clamp(value, MIN_DIFFICULTY_SCORE, MAX_DIFFICULTY_SCORE)

        target = bounded(profile.difficulty_score)

        if recent.trend == PerformanceTrend.IMPROVING:
            target = bounded(target + 0.1)
        elif recent.trend == PerformanceTrend.DECLINING:
            target = bounded(target - 0.1)

        if recent.session_count > 0:
            if recent.average_accuracy > 0.85:
                target = bounded(target + 0.05)
            elif recent.average_accuracy < 0.65:
                target = bounded(target - 0.05)

        level_difference = requested_level - profile.current_level
        if abs(level_difference) > 1:
            target = bounded(target + (0.1 if level_difference > 0 else -0.1))

        return round(target, 2)

    # ==================== Question count ====================

    def effective_consistency(self, profile: AdaptiveProfile, recent: RecentPerformance) -> float:
        """Rolling consistency, or recent-session consistency for a profile without history."""
        if profile.performance_history:
            return profile.rolling_averages.consistency
        return recent.consistency

    def optimize_question_count(
        self,
        requested_count: int,
        consistency: float,
        recent: RecentPerformance,
        preferences: SessionPreferences,
    ) -> int:
        low = self.settings.min_question_count
        high = self.settings.max_question_count
        count = requested_count

        if consistency < 0.5:
            count = max(low, math.floor(count * 0.8))
        elif consistency > 0.8:
            count = min(high, math.floor(count * 1.2))

        if recent.average_speed > 60:
            count = max(low, math.floor(count * 0.9))

        if preferences.prefer_shorter_sessions:
            count = max(low, math.floor(count * 0.8))
        elif preferences.prefer_longer_sessions:
            count = min(high, math.floor(count * 1.3))

        return int(clamp(count, low, high))

    # ==================== Time limit ====================

    def optimize_time_limit(
        self,
        profile: AdaptiveProfile,
        recent: RecentPerformance,
        preferences: SessionPreferences,
    ) -> int:
        """Per-question time limit in whole seconds."""
        time_limit = self.settings.base_time_limit_seconds
        time_limit *= LEARNING_STYLE_TIME_FACTORS.get(profile.learning_style, 1.0)

        if recent.average_speed > 45:
            time_limit *= 1.2
        elif 0 < recent.average_speed < 20:
            time_limit *= 0.9

        if preferences.prefer_more_time:
            time_limit *= 1.3
        elif preferences.prefer_less_time:
            time_limit *= 0.8

        return int(round(time_limit))

    # ==================== Focus areas ====================

    def determine_focus_areas(
        self,
        profile: AdaptiveProfile,
        recent: RecentPerformance,
        preferences: SessionPreferences,
    ) -> list[str]:
        focus: list[str] = []

        def add(area: str) -> None:
            if area and area not in focus:
                focus.append(area)

        if profile.weakness_areas:
            add(profile.weakness_areas[0])
        if profile.strength_areas:
            add(profile.strength_areas[0])
        for area in recent.struggling_areas[:2]:
            add(area)
        for area in preferences.focus_areas:
            add(area)

        return focus[: self.settings.max_focus_areas]

    # ==================== Adaptive features ====================

    def configure_features(
        self,
        consistency: float,
        recent: RecentPerformance,
        preferences: SessionPreferences,
    ) -> AdaptiveFeatureFlags:
        if consistency > 0.8:
            sensitivity = "low"
        elif consistency > 0.6:
            sensitivity = "medium"
        else:
            sensitivity = "high"

        return AdaptiveFeatureFlags(
            enable_real_time_adjustment=consistency > 0.6,
            enable_hints=preferences.enable_hints,
            enable_progressive_difficulty=recent.trend == PerformanceTrend.IMPROVING,
            enable_weakness_detection=True,
            adaptation_sensitivity=sensitivity,
            breakpoint_fractions=BREAKPOINT_FRACTIONS,
        )

    # ==================== Assembly ====================

    def personalize(
        self,
        profile: AdaptiveProfile,
        recent: RecentPerformance,
        request: SessionRequest,
    ) -> SessionConfig:
        """
        Build the personalized SessionConfig.

        Args:
            profile: Learner profile (not modified)
            recent: Recent-session summary
            request: Base request from the caller

        Returns:
            SessionConfig for the exercise generator
        """
        consistency = self.effective_consistency(profile, recent)
        preferences = request.preferences

        return SessionConfig(
            curriculum=request.curriculum,
            requested_level=request.requested_level,
            target_difficulty=self.calculate_target_difficulty(profile, recent, request.requested_level),
            question_count=self.optimize_question_count(
                request.question_count, consistency, recent, preferences
            ),
            time_limit_seconds=self.optimize_time_limit(profile, recent, preferences),
            focus_areas=self.determine_focus_areas(profile, recent, preferences),
            adaptive_features=self.configure_features(consistency, recent, preferences),
            duration_minutes=request.duration_minutes,
        )

    def build_generation_profile(self, profile: AdaptiveProfile, config: SessionConfig) -> GenerationProfile:
        """Parameters handed to the exercise generator with the config."""
        return GenerationProfile(
            target_difficulty=config.target_difficulty,
            preferred_types=list(config.focus_areas),
            avoid_types=list(profile.weakness_areas[:MAX_AVOID_TYPES]),
            learning_style=profile.learning_style,
            focus_areas=list(config.focus_areas),
            weakness_areas=list(profile.weakness_areas),
            strength_areas=list(profile.strength_areas),
        )

    def build_session_plan(
        self,
        config: SessionConfig,
        exercises: Sequence[LiveExercise],
        profile: AdaptiveProfile,
    ) -> SessionPlan:
        """Breakpoints, difficulty progression and pacing for a generated session."""
        total_time = config.question_count * config.time_limit_seconds
        return SessionPlan(
            total_exercises=len(exercises),
            estimated_duration_minutes=total_time / 60,
            breakpoints=[
                math.floor(len(exercises) * fraction)
                for fraction in config.adaptive_features.breakpoint_fractions
            ],
            difficulty_progression=[
                {
                    "exercise_index": index,
                    "difficulty": exercise.difficulty,
                    "type": exercise.exercise_type,
                    "estimated_time": exercise.time_limit_seconds,
                }
                for index, exercise in enumerate(exercises)
            ],
            pacing={
                "average_time_per_exercise": config.time_limit_seconds,
                "total_estimated_time": total_time,
                "recommended_breaks": config.question_count // 10,
                "pacing_strategy": "relaxed" if profile.rolling_averages.speed > 45 else "standard",
            },
        )

    def personalization_reasoning(self, config: SessionConfig, recent: RecentPerformance) -> dict[str, object]:
        """Machine-readable reasons behind the config; rendered to text by the caller."""
        return {
            "difficulty_percent": round(config.target_difficulty * 100),
            "trend": recent.trend.value,
            "question_count": config.question_count,
            "focus": "focus_areas" if config.focus_areas else "balanced_practice",
            "focus_areas": list(config.focus_areas),
            "difficulty_mode": (
                "real_time" if config.adaptive_features.enable_real_time_adjustment else "fixed"
            ),
        }
