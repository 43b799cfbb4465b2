"""
Unit tests for the session metrics calculator.
"""

import pytest

from mentalmath.adaptive.metrics_calculator import (
    calculate_consistency,
    calculate_metrics,
    calculate_speed_trend,
    find_error_patterns,
)
from mentalmath.core.models import AttemptRecord, ErrorPattern, SpeedTrend


class TestCalculateMetrics:
    def test_empty_attempts_yield_zero_metrics(self):
        metrics = calculate_metrics([])

        assert metrics.accuracy == 0.0
        assert metrics.average_time_seconds == 0.0
        assert metrics.consistency == 0.0
        assert metrics.difficulty_handling == 0.0
        assert metrics.error_patterns == []
        assert metrics.speed_trend == SpeedTrend.INSUFFICIENT_DATA

    def test_none_is_treated_as_empty(self):
        assert calculate_metrics(None).total_attempts == 0

    def test_accuracy_is_correct_over_total(self, make_attempt):
        attempts = [make_attempt(is_correct=c) for c in (True, True, False, True)]

        metrics = calculate_metrics(attempts)

        assert metrics.accuracy == pytest.approx(0.75)
        assert metrics.correct_count == 3
        assert metrics.total_attempts == 4

    def test_accuracy_stays_in_unit_interval(self, make_attempt):
        for correct in range(0, 6):
            attempts = [make_attempt(is_correct=i < correct) for i in range(5)]
            assert 0.0 <= calculate_metrics(attempts).accuracy <= 1.0

    def test_skipped_attempts_count_as_incorrect(self, make_attempt):
        attempts = [make_attempt(is_correct=True), make_attempt(is_correct=True, skipped=True)]

        metrics = calculate_metrics(attempts)

        assert metrics.accuracy == pytest.approx(0.5)
        assert metrics.skipped_count == 1

    def test_difficulty_handling_is_mean_of_solved_difficulty(self, make_attempt):
        attempts = [
            make_attempt(is_correct=True, difficulty=4),
            make_attempt(is_correct=False, difficulty=5),
            make_attempt(is_correct=True, difficulty=2),
        ]

        assert calculate_metrics(attempts).difficulty_handling == pytest.approx(2.0)

    def test_uniform_times_are_fully_consistent(self, make_attempt):
        attempts = [make_attempt(time_spent=12.0) for _ in range(4)]

        metrics = calculate_metrics(attempts)

        assert metrics.average_time_seconds == pytest.approx(12.0)
        assert metrics.consistency == pytest.approx(1.0)


class TestConsistency:
    def test_zero_mean_time_returns_zero(self):
        assert calculate_consistency([0.0, 0.0, 0.0]) == 0.0

    def test_empty_returns_zero(self):
        assert calculate_consistency([]) == 0.0

    def test_high_variance_is_clamped_at_zero(self):
        assert calculate_consistency([1.0, 1.0, 1.0, 100.0]) == 0.0

    def test_moderate_variance(self):
        # mean 10, population variance 25 -> 1 - 25/100
        assert calculate_consistency([5.0, 15.0]) == pytest.approx(0.75)


class TestErrorPatterns:
    def _attempts(self, outcomes):
        return [
            AttemptRecord(
                exercise_id=str(i),
                exercise_type="addition",
                difficulty=1,
                is_correct=outcome,
                time_spent_seconds=5,
            )
            for i, outcome in enumerate(outcomes)
        ]

    def test_single_miss_is_not_a_pattern(self):
        assert find_error_patterns(self._attempts([True, False, True])) == []

    def test_run_in_the_middle(self):
        patterns = find_error_patterns(self._attempts([True, False, False, False, True]))
        assert patterns == [ErrorPattern(start_index=1, length=3)]

    def test_trailing_run_is_reported(self):
        patterns = find_error_patterns(self._attempts([True, True, False, False]))
        assert patterns == [ErrorPattern(start_index=2, length=2)]

    def test_multiple_runs(self):
        patterns = find_error_patterns(self._attempts([False, False, True, False, False]))
        assert patterns == [ErrorPattern(0, 2), ErrorPattern(3, 2)]


class TestSpeedTrend:
    def test_fewer_than_three_is_insufficient(self):
        assert calculate_speed_trend([10.0, 5.0]) == SpeedTrend.INSUFFICIENT_DATA

    def test_faster_second_half_is_improving(self):
        assert calculate_speed_trend([20.0, 20.0, 10.0, 10.0]) == SpeedTrend.IMPROVING

    def test_slower_second_half_is_declining(self):
        assert calculate_speed_trend([10.0, 10.0, 20.0, 20.0]) == SpeedTrend.DECLINING

    def test_within_ten_percent_is_stable(self):
        assert calculate_speed_trend([10.0, 10.0, 10.5, 10.5]) == SpeedTrend.STABLE

    def test_zero_first_half_is_stable(self):
        assert calculate_speed_trend([0.0, 0.0, 5.0, 5.0]) == SpeedTrend.STABLE
