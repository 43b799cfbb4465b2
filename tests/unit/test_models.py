"""
Unit tests for core records: clamping, bounds and payload parsing.
"""

import pytest

from mentalmath.core.models import (
    ADAPTATION_HISTORY_LIMIT,
    HISTORY_LIMIT,
    AdaptationDecision,
    AdaptiveProfile,
    AttemptRecord,
    SessionRequest,
)


class TestAttemptRecord:
    def test_out_of_range_values_are_clamped(self):
        attempt = AttemptRecord("e1", "addition", difficulty=9, is_correct=True, time_spent_seconds=-4)

        assert attempt.difficulty == 5
        assert attempt.time_spent_seconds == 0.0

    def test_skipped_is_never_correct(self):
        attempt = AttemptRecord("e1", "addition", 2, is_correct=True, time_spent_seconds=3, skipped=True)

        assert attempt.is_correct is False

    def test_from_camel_case_payload(self):
        attempt = AttemptRecord.from_dict(
            {
                "exerciseId": "e7",
                "exerciseType": "logic",
                "difficulty": "3",
                "isCorrect": True,
                "timeSpent": 12,
                "submittedAt": "2024-03-01T10:00:00Z",
                "metadata": {"isInteractive": True},
            }
        )

        assert attempt.exercise_id == "e7"
        assert attempt.exercise_type == "logic"
        assert attempt.difficulty == 3
        assert attempt.is_interactive is True
        assert attempt.timestamp.tzinfo is not None


class TestAdaptiveProfile:
    def test_bounds_on_construction(self):
        profile = AdaptiveProfile(
            student_id="s",
            curriculum="soroban",
            current_level=14,
            difficulty_score=0.01,
            performance_history=list(range(30)),
        )

        assert profile.current_level == 10
        assert profile.difficulty_score == pytest.approx(0.1)
        assert len(profile.performance_history) == HISTORY_LIMIT
        assert profile.adaptation_history.maxlen == ADAPTATION_HISTORY_LIMIT

    def test_copy_is_deep(self):
        profile = AdaptiveProfile(student_id="s", curriculum="soroban", weakness_areas=["division"])

        clone = profile.copy()
        clone.weakness_areas.append("logic")

        assert profile.weakness_areas == ["division"]


class TestSessionRequest:
    def test_aliases_and_clamping(self):
        request = SessionRequest.model_validate(
            {"curriculum": "vedic", "requestedLevel": 15, "questionCount": 0, "duration": 20}
        )

        assert request.requested_level == 10
        assert request.question_count == 1
        assert request.duration_minutes == 20
        assert request.preferences.enable_hints is True


class TestAdaptationDecision:
    def test_to_dict_omits_absent_fields(self):
        assert AdaptationDecision(adapted=False).to_dict() == {"adapted": False}
