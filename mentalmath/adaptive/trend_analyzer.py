"""
Recent Performance Trend Analyzer.

Summarises the learner's last completed sessions (oldest first) for the
session personalizer:
- trend: second-half vs first-half mean accuracy (+/-0.1)
- average accuracy and average response time
- consistency: 1 - variance of per-session accuracy
- struggling / strong areas: exercise types ranked by pooled accuracy
"""

from __future__ import annotations

from collections.abc import Sequence

from mentalmath.adaptive.metrics_calculator import calculate_metrics
from mentalmath.core.models import (
    AttemptRecord,
    PerformanceMetrics,
    PerformanceTrend,
    RecentPerformance,
)

MIN_SESSIONS_FOR_TREND = 3
TREND_THRESHOLD = 0.1
AREA_COUNT = 2


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def improvement_rate(metrics: Sequence[PerformanceMetrics]) -> float:
    """Mean accuracy of the newer half minus that of the older half."""
    if len(metrics) < 2:
        return 0.0
    midpoint = len(metrics) // 2
    older = [m.accuracy for m in metrics[:midpoint]]
    newer = [m.accuracy for m in metrics[midpoint:]]
    return _mean(newer) - _mean(older)


def classify_trend(metrics: Sequence[PerformanceMetrics]) -> PerformanceTrend:
    if not metrics:
        return PerformanceTrend.NO_DATA
    if len(metrics) < MIN_SESSIONS_FOR_TREND:
        return PerformanceTrend.INSUFFICIENT_DATA

    rate = improvement_rate(metrics)
    if rate > TREND_THRESHOLD:
        return PerformanceTrend.IMPROVING
    if rate < -TREND_THRESHOLD:
        return PerformanceTrend.DECLINING
    return PerformanceTrend.STABLE


def session_consistency(metrics: Sequence[PerformanceMetrics]) -> float:
    """1 - population variance of session accuracies; 0 below two sessions."""
    if len(metrics) < 2:
        return 0.0
    accuracies = [m.accuracy for m in metrics]
    mean = _mean(accuracies)
    variance = _mean([(a - mean) ** 2 for a in accuracies])
    return max(0.0, 1.0 - variance)


def rank_areas(sessions: Sequence[Sequence[AttemptRecord]]) -> list[tuple[str, float]]:
    """Exercise types by pooled accuracy, lowest first (ties by name)."""
    totals: dict[str, list[int]] = {}
    for attempts in sessions:
        for attempt in attempts:
            counts = totals.setdefault(attempt.exercise_type, [0, 0])
            counts[1] += 1
            if attempt.is_correct:
                counts[0] += 1
    ranked = [(area, correct / total) for area, (correct, total) in totals.items()]
    ranked.sort(key=lambda item: (item[1], item[0]))
    return ranked


def summarize_metrics(metrics: Sequence[PerformanceMetrics], limit: int = 10) -> RecentPerformance:
    """Trend and averages from session snapshots alone (no area ranking)."""
    recent = list(metrics)[-limit:]
    if not recent:
        return RecentPerformance()

    return RecentPerformance(
        trend=classify_trend(recent),
        average_accuracy=_mean([m.accuracy for m in recent]),
        average_speed=_mean([m.average_time_seconds for m in recent]),
        consistency=session_consistency(recent),
        improvement_rate=improvement_rate(recent),
        session_count=len(recent),
    )


def analyze_recent_performance(
    sessions: Sequence[Sequence[AttemptRecord]] | None,
    limit: int = 10,
) -> RecentPerformance:
    """
    Summarise the most recent completed sessions.

    Args:
        sessions: Attempt lists per session, oldest first
        limit: Number of most recent sessions to keep

    Returns:
        RecentPerformance (trend NO_DATA when there are no sessions)
    """
    recent = [list(s) for s in (sessions or [])][-limit:]
    if not recent:
        return RecentPerformance()

    summary = summarize_metrics([calculate_metrics(attempts) for attempts in recent], limit)
    ranked = rank_areas(recent)
    summary.struggling_areas = [area for area, _ in ranked[:AREA_COUNT]]
    summary.strong_areas = [area for area, _ in reversed(ranked[-AREA_COUNT:])]
    return summary
