"""
Unit tests for recommendation and insight builders.
"""

import pytest

from mentalmath.adaptive.recommendations import (
    adaptive_insights,
    build_recommendations,
    live_session_metrics,
)
from mentalmath.core.models import (
    ErrorPattern,
    PerformanceMetrics,
    Priority,
    RecommendationType,
    ResponseRecord,
    RollingAverages,
)


class TestBuildRecommendations:
    def test_struggling_session(self, fresh_profile):
        fresh_profile.weakness_areas = ["division", "logic"]
        metrics = PerformanceMetrics(
            accuracy=0.4,
            average_time_seconds=75.0,
            consistency=0.3,
            error_patterns=[ErrorPattern(0, 3)],
            total_attempts=10,
        )

        recommendations = build_recommendations(metrics, fresh_profile, performance_score=0.3)

        assert [r.type for r in recommendations] == [
            RecommendationType.ACCURACY,
            RecommendationType.WEAKNESS,
            RecommendationType.SPEED,
            RecommendationType.ERROR_PATTERN,
            RecommendationType.CONSISTENCY,
        ]
        weakness = recommendations[1]
        assert weakness.priority == Priority.HIGH
        assert weakness.action == "targeted_practice"
        assert weakness.areas == ["division"]

    def test_strong_session_suggests_progression(self, fresh_profile):
        metrics = PerformanceMetrics(accuracy=1.0, average_time_seconds=5.0, consistency=1.0, total_attempts=10)

        recommendations = build_recommendations(metrics, fresh_profile, performance_score=0.95)

        assert [r.to_dict() for r in recommendations] == [
            {"type": "progression", "priority": "low", "action": "advance_difficulty", "areas": []}
        ]

    def test_empty_session_has_no_accuracy_advice(self, fresh_profile):
        assert build_recommendations(PerformanceMetrics(), fresh_profile) == []


class TestLiveSessionMetrics:
    def test_empty(self):
        assert live_session_metrics([])["completed"] == 0

    def test_running_totals(self):
        responses = [
            ResponseRecord(0, True, 10.0),
            ResponseRecord(1, False, 20.0),
            ResponseRecord(2, False, 0.0, skipped=True),
        ]

        metrics = live_session_metrics(responses)

        assert metrics["accuracy"] == pytest.approx(1 / 3)
        assert metrics["average_time"] == pytest.approx(10.0)
        assert metrics["skipped"] == 1
        assert metrics["correct"] == 1


class TestAdaptiveInsights:
    def test_progress_against_rolling_accuracy(self, fresh_profile):
        fresh_profile.rolling_averages = RollingAverages(accuracy=0.6)

        insights = adaptive_insights({"accuracy": 0.8}, fresh_profile)

        assert insights["difficulty_percent"] == 50
        assert insights["session_progress"]["target_accuracy"] == 0.75
        assert insights["session_progress"]["improvement_trend"] == "improving"

    def test_stable_when_not_above_average(self, fresh_profile):
        fresh_profile.rolling_averages = RollingAverages(accuracy=0.9)

        insights = adaptive_insights({"accuracy": 0.8}, fresh_profile)

        assert insights["session_progress"]["improvement_trend"] == "stable"
