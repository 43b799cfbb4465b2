"""
Integration Tests for the Adaptive Learning Engine.

Tests the full adaptive loop against an in-memory profile store:
1. A completed session is analysed and the profile saved
2. The next session is personalized from the updated profile
3. Exercises are generated through the personalization adapter
4. Answers are tracked and the live session is retuned
"""

import random
from unittest.mock import AsyncMock

import pytest

from mentalmath.adaptive.engine import AdaptiveLearningEngine
from mentalmath.core.exceptions import ProfileUnavailable
from mentalmath.core.models import (
    AdaptiveProfile,
    LearningStyle,
    LiveExercise,
    PerformanceTrend,
    ResponseRecord,
    SessionRequest,
    SpeedTrend,
)
from mentalmath.stores.profile_store import InMemoryProfileStore

pytestmark = pytest.mark.integration


class FakeGenerator:
    async def generate(self, curriculum, level, exercise_type, count, target_difficulty):
        difficulty = max(1, round(target_difficulty * 5))
        return [LiveExercise(f"{exercise_type}-{i}", exercise_type, difficulty, 30) for i in range(count)]


@pytest.fixture
def store():
    return InMemoryProfileStore()


@pytest.fixture
def engine(store, settings, clock):
    return AdaptiveLearningEngine(store, generator=FakeGenerator(), settings=settings, clock=clock, rng=random.Random(3))


def _perfect_session(make_attempt, count=10):
    return [make_attempt(is_correct=True, time_spent=5.0, difficulty=1) for _ in range(count)]


class TestAnalyzeSession:
    @pytest.mark.asyncio
    async def test_new_learner_profile_is_created_and_saved(self, engine, store, make_attempt):
        analysis = await engine.analyze_session("student-1", "soroban", "sess-1", _perfect_session(make_attempt))

        saved = await store.load("student-1", "soroban")
        assert saved is not None
        assert saved.difficulty_score == pytest.approx(0.51)
        assert saved.total_sessions == 1
        assert saved.learning_style == LearningStyle.MIXED
        assert analysis.profile.difficulty_score == saved.difficulty_score
        assert analysis.difficulty.reason == "high_performance"

    @pytest.mark.asyncio
    async def test_strong_and_weak_areas(self, engine, make_attempt):
        attempts = [make_attempt(exercise_type="addition", time_spent=5.0) for _ in range(5)]
        attempts += [make_attempt(exercise_type="subtraction", is_correct=i < 2, time_spent=20.0) for i in range(5)]

        analysis = await engine.analyze_session("student-1", "soroban", "sess-1", attempts)

        assert analysis.profile.strength_areas == ["addition"]
        assert "subtraction" in analysis.profile.weakness_areas
        assert analysis.recommendations[0].type.value in ("accuracy", "weakness")

    @pytest.mark.asyncio
    async def test_payload_dicts_are_accepted(self, engine):
        attempts = [
            {"exerciseId": f"e{i}", "type": "logic", "difficulty": 2, "isCorrect": True, "timeSpent": 8,
             "metadata": {"hasImage": True}}
            for i in range(5)
        ]

        analysis = await engine.analyze_session("student-1", "logic", "sess-1", attempts)

        assert analysis.metrics.accuracy == pytest.approx(1.0)
        assert analysis.profile.learning_style == LearningStyle.VISUAL

    @pytest.mark.asyncio
    async def test_empty_session(self, engine):
        analysis = await engine.analyze_session("student-1", "soroban", "sess-1", [])

        assert analysis.metrics.accuracy == 0.0
        assert analysis.metrics.speed_trend == SpeedTrend.INSUFFICIENT_DATA
        assert analysis.difficulty.reason == "no_attempts"
        assert analysis.profile.difficulty_score == pytest.approx(0.5)
        assert analysis.profile.total_sessions == 0
        assert len(analysis.profile.performance_history) == 0
        assert len(analysis.profile.adaptation_history) == 0

    @pytest.mark.asyncio
    async def test_abandoned_session_keeps_existing_profile(self, engine, store, make_attempt):
        await engine.analyze_session("student-1", "soroban", "sess-1", _perfect_session(make_attempt))
        before = await store.load("student-1", "soroban")

        analysis = await engine.analyze_session("student-1", "soroban", "sess-2", [])

        assert analysis.profile.difficulty_score == before.difficulty_score
        assert analysis.profile.total_sessions == before.total_sessions
        assert list(analysis.profile.performance_history) == list(before.performance_history)
        assert analysis.profile.strength_areas == before.strength_areas
        assert analysis.profile.learning_style == before.learning_style

    @pytest.mark.asyncio
    async def test_loaded_profile_is_not_mutated(self, engine, store, make_attempt):
        original = AdaptiveProfile(student_id="student-1", curriculum="soroban", difficulty_score=0.7)
        await store.save(original)

        await engine.analyze_session("student-1", "soroban", "sess-1", _perfect_session(make_attempt))

        assert original.difficulty_score == pytest.approx(0.7)
        assert original.total_sessions == 0


class TestStoreFailures:
    @pytest.mark.asyncio
    async def test_load_failure_propagates_and_nothing_is_saved(self, settings, make_attempt):
        store = AsyncMock()
        store.load.side_effect = OSError("disk gone")
        engine = AdaptiveLearningEngine(store, settings=settings)

        with pytest.raises(ProfileUnavailable) as exc_info:
            await engine.analyze_session("student-1", "soroban", "sess-1", _perfect_session(make_attempt))

        assert exc_info.value.curriculum == "soroban"
        store.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_failure_propagates(self, settings, make_attempt):
        store = AsyncMock()
        store.load.return_value = None
        store.save.side_effect = ProfileUnavailable("student-1", "soroban", "read-only")
        engine = AdaptiveLearningEngine(store, settings=settings)

        with pytest.raises(ProfileUnavailable):
            await engine.analyze_session("student-1", "soroban", "sess-1", _perfect_session(make_attempt))


class TestPersonalizeSession:
    @pytest.mark.asyncio
    async def test_uses_profile_history_without_recent_sessions(self, engine, make_attempt):
        for i in range(3):
            await engine.analyze_session("student-1", "soroban", f"sess-{i}", _perfect_session(make_attempt))

        session = await engine.personalize_session(
            "student-1", {"curriculum": "soroban", "requestedLevel": 1, "questionCount": 20}
        )

        assert session.recent.session_count == 3
        assert session.recent.trend == PerformanceTrend.STABLE
        assert session.config.question_count == 24
        assert session.config.adaptive_features.enable_real_time_adjustment is True
        assert session.reasoning["difficulty_mode"] == "real_time"

    @pytest.mark.asyncio
    async def test_recent_sessions_override_history(self, engine, make_attempt):
        recent = [[make_attempt(exercise_type="division", is_correct=False)] for _ in range(3)]

        session = await engine.personalize_session(
            "student-1", SessionRequest(curriculum="soroban"), recent_sessions=recent
        )

        assert session.recent.struggling_areas == ["division"]
        assert "division" in session.config.focus_areas


class TestLiveSession:
    @pytest.mark.asyncio
    async def test_create_track_adapt_end(self, engine, make_attempt):
        await engine.analyze_session("student-1", "soroban", "sess-0", _perfect_session(make_attempt))

        session = await engine.create_session(
            "student-1", "live-1", SessionRequest(curriculum="soroban", questionCount=20)
        )

        assert session.real_time_tracking is True
        assert len(session.exercises) == session.config.question_count
        assert session.plan.total_exercises == len(session.exercises)

        before = [e.difficulty for e in session.exercises[5:]]
        for index in range(5):
            decision = engine.submit_answer(
                "live-1", index, ResponseRecord(index, True, 5.0), session.exercises
            )

        assert decision.adapted is True
        assert [e.difficulty for e in session.exercises[5:]] == [min(5, d + 1) for d in before]

        engine.end_session("live-1")
        after_end = engine.submit_answer("live-1", 9, ResponseRecord(9, True, 5.0), session.exercises)
        assert after_end.error == "session_not_tracked"

    @pytest.mark.asyncio
    async def test_new_learner_is_not_tracked(self, engine):
        session = await engine.create_session("student-2", "live-2", SessionRequest(curriculum="vedic"))

        assert session.real_time_tracking is False
        assert engine.realtime.get_state("live-2") is None

    @pytest.mark.asyncio
    async def test_create_session_requires_generator(self, store, settings):
        engine = AdaptiveLearningEngine(store, settings=settings)

        with pytest.raises(RuntimeError):
            await engine.create_session("student-1", "live-1", SessionRequest(curriculum="soroban"))
