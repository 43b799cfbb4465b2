"""
Performance History Aggregator.

Appends a session snapshot to the profile's bounded history (20 most recent
sessions) and recomputes the decayed rolling averages:

    w_i = decay^(n - 1 - i)      (oldest i = 0, newest weight 1)
    avg = sum(metric_i * w_i) / sum(w_i)

Recent sessions dominate without discarding older signal entirely.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from loguru import logger

from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.models import (
    AdaptiveProfile,
    PerformanceMetrics,
    PerformanceSnapshot,
    RollingAverages,
    utc_now,
)


def weighted_average(values: Sequence[float], decay: float = 0.9) -> float:
    """
    Exponentially decayed average favouring the end of the sequence.

    Args:
        values: Values ordered oldest first
        decay: Per-step weight multiplier for older values

    Returns:
        Weighted average (0.0 for an empty sequence)
    """
    n = len(values)
    if n == 0:
        return 0.0
    weights = [decay ** (n - 1 - i) for i in range(n)]
    return sum(v * w for v, w in zip(values, weights)) / sum(weights)


class HistoryAggregator:
    """Maintain performance history and rolling averages on a profile."""

    def __init__(self, settings: AdaptiveSettings | None = None):
        self.settings = settings or get_settings()

    def append_snapshot(
        self,
        profile: AdaptiveProfile,
        metrics: PerformanceMetrics,
        session_id: str,
        recorded_at: datetime | None = None,
    ) -> RollingAverages:
        """
        Append a session snapshot and recompute rolling averages.

        The history deque evicts its oldest entry once it holds 20 snapshots.

        Returns:
            The recomputed RollingAverages (also stored on the profile)
        """
        profile.performance_history.append(
            PerformanceSnapshot(
                session_id=session_id,
                metrics=metrics,
                recorded_at=recorded_at or utc_now(),
            )
        )
        profile.rolling_averages = self.compute_rolling_averages(profile.performance_history)
        profile.total_sessions += 1

        logger.debug(
            f"History for {profile.student_id}/{profile.curriculum}: "
            f"{len(profile.performance_history)} snapshots, "
            f"rolling accuracy {profile.rolling_averages.accuracy:.3f}"
        )
        return profile.rolling_averages

    def compute_rolling_averages(self, history: Sequence[PerformanceSnapshot]) -> RollingAverages:
        decay = self.settings.history_decay
        snapshots = list(history)
        return RollingAverages(
            accuracy=weighted_average([s.metrics.accuracy for s in snapshots], decay),
            speed=weighted_average([s.metrics.average_time_seconds for s in snapshots], decay),
            consistency=weighted_average([s.metrics.consistency for s in snapshots], decay),
        )
