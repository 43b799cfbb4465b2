"""
Recommendation and insight builders.

Produces decision data only (type, priority, action code, areas); turning
it into learner-facing text is the presentation layer's job.
"""

from __future__ import annotations

from collections.abc import Sequence

from mentalmath.core.models import (
    AdaptiveProfile,
    PerformanceMetrics,
    Priority,
    Recommendation,
    RecommendationType,
    ResponseRecord,
)

LOW_ACCURACY = 0.6
SLOW_AVERAGE_SECONDS = 60.0
LOW_CONSISTENCY = 0.5
TARGET_ACCURACY = 0.75


def build_recommendations(
    metrics: PerformanceMetrics,
    profile: AdaptiveProfile,
    performance_score: float | None = None,
) -> list[Recommendation]:
    """
    Recommendations for a completed session, highest priority first.

    Args:
        metrics: The session's snapshot
        profile: Profile after the session was analysed
        performance_score: Combined score from the difficulty adjuster, if known
    """
    recommendations: list[Recommendation] = []

    if metrics.total_attempts and metrics.accuracy < LOW_ACCURACY:
        recommendations.append(
            Recommendation(RecommendationType.ACCURACY, Priority.HIGH, "focus_on_accuracy")
        )
    if metrics.average_time_seconds > SLOW_AVERAGE_SECONDS:
        recommendations.append(
            Recommendation(RecommendationType.SPEED, Priority.MEDIUM, "practice_fundamentals")
        )
    if profile.weakness_areas:
        recommendations.append(
            Recommendation(
                RecommendationType.WEAKNESS,
                Priority.HIGH,
                "targeted_practice",
                areas=[profile.weakness_areas[0]],
            )
        )
    if metrics.error_patterns:
        recommendations.append(
            Recommendation(RecommendationType.ERROR_PATTERN, Priority.MEDIUM, "review_mistakes")
        )
    if metrics.total_attempts and metrics.consistency < LOW_CONSISTENCY:
        recommendations.append(
            Recommendation(RecommendationType.CONSISTENCY, Priority.MEDIUM, "shorter_sessions")
        )
    if performance_score is not None and performance_score > 0.85:
        recommendations.append(
            Recommendation(RecommendationType.PROGRESSION, Priority.LOW, "advance_difficulty")
        )

    # sorted() is stable, so insertion order breaks priority ties
    return sorted(recommendations, key=lambda r: r.priority.rank)


def live_session_metrics(responses: Sequence[ResponseRecord]) -> dict[str, float | int]:
    """Running metrics over the answers submitted so far in a session."""
    if not responses:
        return {"accuracy": 0.0, "average_time": 0.0, "total_time": 0.0, "completed": 0, "skipped": 0, "correct": 0}

    correct = sum(1 for r in responses if r.is_correct and not r.skipped)
    total_time = sum(r.time_spent_seconds for r in responses)
    return {
        "accuracy": correct / len(responses),
        "average_time": total_time / len(responses),
        "total_time": total_time,
        "completed": len(responses),
        "skipped": sum(1 for r in responses if r.skipped),
        "correct": correct,
    }


def adaptive_insights(live_metrics: dict, profile: AdaptiveProfile) -> dict:
    """In-session insight block: profile summary plus progress against the target."""
    accuracy = float(live_metrics.get("accuracy", 0.0))
    return {
        "learning_style": profile.learning_style.value,
        "difficulty_percent": round(profile.difficulty_score * 100),
        "strong_areas": list(profile.strength_areas),
        "improvement_areas": list(profile.weakness_areas),
        "session_progress": {
            "current_accuracy": accuracy,
            "target_accuracy": TARGET_ACCURACY,
            "improvement_trend": (
                "improving" if accuracy > profile.rolling_averages.accuracy else "stable"
            ),
        },
    }
