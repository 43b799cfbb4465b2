"""
Session Metrics Calculator.

Turns one session's ordered attempt records into a PerformanceMetrics
snapshot:

    accuracy            = correct / total
    average_time        = mean(time_spent)
    consistency         = max(0, 1 - variance(times) / average_time^2)
    difficulty_handling = mean(difficulty if correct else 0)
    error_patterns      = runs of >= 2 consecutive wrong answers
    speed_trend         = first-half vs second-half mean time (+/-10%)

Empty input yields zero-valued metrics; no input ever produces NaN.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from mentalmath.core.models import (
    AttemptRecord,
    ErrorPattern,
    PerformanceMetrics,
    SpeedTrend,
    clamp,
)

MIN_ERROR_RUN = 2
MIN_ATTEMPTS_FOR_TREND = 3
SPEED_TREND_TOLERANCE = 0.10


def calculate_metrics(attempts: Sequence[AttemptRecord] | None) -> PerformanceMetrics:
    """
    Calculate performance metrics for one session.

    Args:
        attempts: Attempts in chronological order (None is treated as empty)

    Returns:
        PerformanceMetrics snapshot
    """
    if not attempts:
        return PerformanceMetrics()

    times = np.array([a.time_spent_seconds for a in attempts], dtype=float)
    correct = np.array([a.is_correct for a in attempts], dtype=bool)
    difficulties = np.array([a.difficulty for a in attempts], dtype=float)

    total = len(attempts)
    correct_count = int(correct.sum())
    average_time = float(times.mean())

    return PerformanceMetrics(
        accuracy=correct_count / total,
        average_time_seconds=average_time,
        consistency=calculate_consistency(times),
        difficulty_handling=float(np.where(correct, difficulties, 0.0).mean()),
        error_patterns=find_error_patterns(attempts),
        speed_trend=calculate_speed_trend(times),
        total_attempts=total,
        correct_count=correct_count,
        skipped_count=sum(1 for a in attempts if a.skipped),
    )


def calculate_consistency(times: Sequence[float] | np.ndarray) -> float:
    """
    Consistency of response times in [0, 1].

    Uses the squared coefficient of variation; zero mean time returns 0.
    """
    values = np.asarray(times, dtype=float)
    if values.size == 0:
        return 0.0
    mean = float(values.mean())
    if mean <= 0:
        return 0.0
    variance = float(values.var())
    return clamp(1.0 - variance / (mean * mean), 0.0, 1.0)


def find_error_patterns(attempts: Sequence[AttemptRecord]) -> list[ErrorPattern]:
    """Find contiguous runs of wrong answers of length >= 2."""
    patterns: list[ErrorPattern] = []
    run_start: int | None = None

    for index, attempt in enumerate(attempts):
        if not attempt.is_correct:
            if run_start is None:
                run_start = index
            continue
        if run_start is not None and index - run_start >= MIN_ERROR_RUN:
            patterns.append(ErrorPattern(start_index=run_start, length=index - run_start))
        run_start = None

    if run_start is not None and len(attempts) - run_start >= MIN_ERROR_RUN:
        patterns.append(ErrorPattern(start_index=run_start, length=len(attempts) - run_start))

    return patterns


def calculate_speed_trend(times: Sequence[float] | np.ndarray) -> SpeedTrend:
    """
    Compare mean time of the first half against the second half.

    A second half more than 10% faster is "improving", more than 10%
    slower is "declining". Fewer than 3 attempts is insufficient data.
    """
    values = np.asarray(times, dtype=float)
    if values.size < MIN_ATTEMPTS_FOR_TREND:
        return SpeedTrend.INSUFFICIENT_DATA

    midpoint = values.size // 2
    first_mean = float(values[:midpoint].mean())
    second_mean = float(values[midpoint:].mean())

    if first_mean <= 0:
        return SpeedTrend.STABLE

    relative_delta = (first_mean - second_mean) / first_mean
    if relative_delta > SPEED_TREND_TOLERANCE:
        return SpeedTrend.IMPROVING
    if relative_delta < -SPEED_TREND_TOLERANCE:
        return SpeedTrend.DECLINING
    return SpeedTrend.STABLE
