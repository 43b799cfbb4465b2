"""
Difficulty Adjuster.

Combines a session snapshot into one performance score and nudges the
profile's difficulty score.

Formula:
    score = accuracy x 0.4
          + (1 - min(average_time / 60, 1)) x 0.3
          + consistency x 0.2
          + difficulty_handling x 0.1

    score > 0.85  ->  adjustment = (score - 0.85) x 0.1
    score < 0.65  ->  adjustment = (score - 0.65) x 0.1
    otherwise     ->  0

    new = round(clamp(current + adjustment, 0.1, 1.0), 2)

The dead band between the thresholds plus the small rate keeps the
difficulty from oscillating between sessions.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.models import (
    MAX_DIFFICULTY_SCORE,
    MIN_DIFFICULTY_SCORE,
    AdaptationHistoryEntry,
    AdaptiveProfile,
    PerformanceMetrics,
    clamp,
)


@dataclass
class DifficultyAdjustment:
    """Result of a between-session difficulty update."""

    performance_score: float
    adjustment: float
    old_difficulty: float
    new_difficulty: float
    reason: str

    @property
    def changed(self) -> bool:
        return self.new_difficulty != self.old_difficulty


class DifficultyAdjuster:
    """Score a session and derive the next difficulty score."""

    def __init__(self, settings: AdaptiveSettings | None = None):
        self.settings = settings or get_settings()

    def performance_score(self, metrics: PerformanceMetrics) -> float:
        speed_component = 1.0 - min(metrics.average_time_seconds / self.settings.speed_reference_seconds, 1.0)
        components = {
            "accuracy": metrics.accuracy,
            "speed": speed_component,
            "consistency": metrics.consistency,
            "difficulty_handling": metrics.difficulty_handling,
        }
        weights = self.settings.score_weights
        return sum(value * weights[name] for name, value in components.items())

    def adjustment_for(self, performance_score: float) -> float:
        s = self.settings
        if performance_score > s.promote_threshold:
            return (performance_score - s.promote_threshold) * s.adjustment_rate
        if performance_score < s.demote_threshold:
            return (performance_score - s.demote_threshold) * s.adjustment_rate
        return 0.0

    def next_difficulty(self, current: float, metrics: PerformanceMetrics) -> DifficultyAdjustment:
        """
        Compute the next difficulty score without touching a profile.

        Args:
            current: Current difficulty score (clamped if out of range)
            metrics: Session snapshot

        Returns:
            DifficultyAdjustment with score, delta and clamped result
        """
        current = clamp(current, MIN_DIFFICULTY_SCORE, MAX_DIFFICULTY_SCORE)
        score = self.performance_score(metrics)
        adjustment = self.adjustment_for(score)
        new_difficulty = round(clamp(current + adjustment, MIN_DIFFICULTY_SCORE, MAX_DIFFICULTY_SCORE), 2)

        if adjustment > 0:
            reason = "high_performance"
        elif adjustment < 0:
            reason = "low_performance"
        else:
            reason = "within_target_band"

        return DifficultyAdjustment(
            performance_score=score,
            adjustment=adjustment,
            old_difficulty=current,
            new_difficulty=new_difficulty,
            reason=reason,
        )

    @staticmethod
    def unchanged(current: float, reason: str) -> DifficultyAdjustment:
        """Result for a session that must not move the difficulty."""
        return DifficultyAdjustment(
            performance_score=0.0,
            adjustment=0.0,
            old_difficulty=current,
            new_difficulty=current,
            reason=reason,
        )

    def adjust_profile(
        self,
        profile: AdaptiveProfile,
        metrics: PerformanceMetrics,
        session_id: str,
    ) -> DifficultyAdjustment:
        """Apply the adjustment to the profile and log it in its adaptation history."""
        result = self.next_difficulty(profile.difficulty_score, metrics)
        profile.difficulty_score = result.new_difficulty

        if result.changed:
            profile.adaptation_history.append(
                AdaptationHistoryEntry(
                    session_id=session_id,
                    old_difficulty=result.old_difficulty,
                    new_difficulty=result.new_difficulty,
                    reason=result.reason,
                )
            )
            logger.info(
                f"Difficulty for {profile.student_id}/{profile.curriculum}: "
                f"{result.old_difficulty:.2f} -> {result.new_difficulty:.2f} "
                f"(score {result.performance_score:.3f}, {result.reason})"
            )
        return result
