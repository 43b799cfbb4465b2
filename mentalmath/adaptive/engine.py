"""
Adaptive Learning Engine.

Async orchestration around the pure scoring components. All collaborators
are injected: profile store, exercise generator, settings and clock.

Batch analysis of a completed session:

    load profile (or fresh default)
      -> copy
      -> MetricsCalculator -> HistoryAggregator
      -> AreaClassifier + LearningStyleDetector
      -> DifficultyAdjuster
      -> recommendations
      -> save copy

Nothing is saved when any step fails; store failures surface as
ProfileUnavailable.

Session setup:

    profile + recent trend + request -> SessionPersonalizer -> SessionConfig
      -> PersonalizationAdapter(generator) -> exercises + session plan
      -> RealTimeAdapter tracking (when enabled)
"""

from __future__ import annotations

import random
from collections.abc import Callable, MutableSequence, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from mentalmath.adaptive.area_classifier import AreaClassification, AreaClassifier
from mentalmath.adaptive.difficulty_adjuster import DifficultyAdjuster, DifficultyAdjustment
from mentalmath.adaptive.history_aggregator import HistoryAggregator
from mentalmath.adaptive.learning_style import LearningStyleDetector, StyleDetection
from mentalmath.adaptive.metrics_calculator import calculate_metrics
from mentalmath.adaptive.realtime_adapter import RealTimeAdapter
from mentalmath.adaptive.recommendations import build_recommendations
from mentalmath.adaptive.session_personalizer import SessionPersonalizer
from mentalmath.adaptive.trend_analyzer import analyze_recent_performance, summarize_metrics
from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.exceptions import ProfileUnavailable
from mentalmath.core.models import (
    AdaptationDecision,
    AdaptiveProfile,
    AttemptRecord,
    GenerationProfile,
    LiveExercise,
    PerformanceMetrics,
    RecentPerformance,
    Recommendation,
    ResponseRecord,
    SessionConfig,
    SessionPlan,
    SessionRequest,
    utc_now,
)
from mentalmath.generation.personalization_adapter import ExerciseGenerator, PersonalizationAdapter
from mentalmath.stores.profile_store import ProfileStore


@dataclass
class SessionAnalysis:
    """Outcome of analysing one completed session."""

    session_id: str
    profile: AdaptiveProfile
    metrics: PerformanceMetrics
    difficulty: DifficultyAdjustment
    areas: AreaClassification
    style: StyleDetection
    recommendations: list[Recommendation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "metrics": self.metrics.to_dict(),
            "performance_score": self.difficulty.performance_score,
            "difficulty_score": self.profile.difficulty_score,
            "difficulty_reason": self.difficulty.reason,
            "learning_style": self.profile.learning_style.value,
            "strength_areas": list(self.profile.strength_areas),
            "weakness_areas": list(self.profile.weakness_areas),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass
class PersonalizedSession:
    """Personalized parameters, and once created, the session's exercises."""

    config: SessionConfig
    generation_profile: GenerationProfile
    recent: RecentPerformance
    reasoning: dict
    session_id: str | None = None
    exercises: list[LiveExercise] = field(default_factory=list)
    plan: SessionPlan | None = None
    real_time_tracking: bool = False


class AdaptiveLearningEngine:
    """
    Entry point for hosts: analyse sessions, personalize and track new ones.

    Example:
        engine = AdaptiveLearningEngine(InMemoryProfileStore(), generator=my_generator)
        analysis = await engine.analyze_session("s1", "soroban", "sess-1", attempts)
    """

    def __init__(
        self,
        store: ProfileStore,
        generator: ExerciseGenerator | None = None,
        settings: AdaptiveSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock

        self.history = HistoryAggregator(self.settings)
        self.areas = AreaClassifier(self.settings)
        self.styles = LearningStyleDetector(self.settings)
        self.difficulty = DifficultyAdjuster(self.settings)
        self.personalizer = SessionPersonalizer(self.settings)
        self.realtime = RealTimeAdapter(self.settings, clock=clock)
        self.adapter = PersonalizationAdapter(generator, rng) if generator is not None else None

    # ==================== Profiles ====================

    async def load_profile(self, student_id: str, curriculum: str) -> AdaptiveProfile:
        """Stored profile, or a fresh default one for a new learner."""
        try:
            profile = await self.store.load(student_id, curriculum)
        except ProfileUnavailable:
            raise
        except Exception as e:
            raise ProfileUnavailable(student_id, curriculum, str(e)) from e

        if profile is None:
            logger.info(f"Creating adaptive profile for {student_id}/{curriculum}")
            return AdaptiveProfile(student_id=student_id, curriculum=curriculum, last_updated=self.clock())
        return profile

    async def save_profile(self, profile: AdaptiveProfile) -> None:
        try:
            await self.store.save(profile)
        except ProfileUnavailable:
            raise
        except Exception as e:
            raise ProfileUnavailable(profile.student_id, profile.curriculum, str(e)) from e

    # ==================== Batch analysis ====================

    def analyze_attempts(
        self,
        profile: AdaptiveProfile,
        session_id: str,
        attempts: Sequence[AttemptRecord],
    ) -> SessionAnalysis:
        """
        Run the scoring pipeline on a copy of the profile.

        The passed profile is left untouched; the analysis carries the
        updated copy. A session without attempts leaves history, areas,
        style and difficulty as they were.
        """
        updated = profile.copy()
        now = self.clock()

        metrics = calculate_metrics(attempts)
        if metrics.total_attempts == 0:
            areas = self.areas.classify(attempts)
            style = self.styles.detect(attempts, updated.learning_style)
            difficulty = self.difficulty.unchanged(updated.difficulty_score, "no_attempts")
            logger.debug(f"Session {session_id} has no attempts; profile unchanged")
        else:
            self.history.append_snapshot(updated, metrics, session_id, recorded_at=now)
            areas = self.areas.apply(updated, attempts)
            style = self.styles.apply(updated, attempts)
            difficulty = self.difficulty.adjust_profile(updated, metrics, session_id)
        updated.last_updated = now

        return SessionAnalysis(
            session_id=session_id,
            profile=updated,
            metrics=metrics,
            difficulty=difficulty,
            areas=areas,
            style=style,
            recommendations=build_recommendations(metrics, updated, difficulty.performance_score),
        )

    async def analyze_session(
        self,
        student_id: str,
        curriculum: str,
        session_id: str,
        attempts: Sequence[AttemptRecord | dict] | None,
    ) -> SessionAnalysis:
        """
        Update the learner's profile from a completed session.

        Args:
            student_id: Learner id
            curriculum: Curriculum the session belongs to
            session_id: Completed session id
            attempts: Attempts in chronological order (records or payload dicts)

        Returns:
            SessionAnalysis holding the saved profile

        Raises:
            ProfileUnavailable: The profile could not be loaded or saved
        """
        records = [a if isinstance(a, AttemptRecord) else AttemptRecord.from_dict(a) for a in attempts or []]
        profile = await self.load_profile(student_id, curriculum)
        analysis = self.analyze_attempts(profile, session_id, records)
        await self.save_profile(analysis.profile)

        logger.info(
            f"Analysed session {session_id} for {student_id}/{curriculum}: "
            f"accuracy {analysis.metrics.accuracy:.0%}, "
            f"difficulty {analysis.profile.difficulty_score:.2f}"
        )
        return analysis

    # ==================== Session setup ====================

    def recent_performance(
        self,
        profile: AdaptiveProfile,
        recent_sessions: Sequence[Sequence[AttemptRecord]] | None,
    ) -> RecentPerformance:
        """From recent attempt lists when given, otherwise from the profile's snapshots."""
        limit = self.settings.recent_session_limit
        if recent_sessions is not None:
            return analyze_recent_performance(recent_sessions, limit)
        return summarize_metrics([s.metrics for s in profile.performance_history], limit)

    async def personalize_session(
        self,
        student_id: str,
        request: SessionRequest | dict,
        recent_sessions: Sequence[Sequence[AttemptRecord]] | None = None,
    ) -> PersonalizedSession:
        """Personalized SessionConfig and generation parameters for a new session."""
        request = self._validate_request(request)
        profile = await self.load_profile(student_id, request.curriculum)
        return self._personalize(student_id, profile, request, recent_sessions)

    @staticmethod
    def _validate_request(request: SessionRequest | dict) -> SessionRequest:
        if isinstance(request, SessionRequest):
            return request
        return SessionRequest.model_validate(request)

    def _personalize(
        self,
        student_id: str,
        profile: AdaptiveProfile,
        request: SessionRequest,
        recent_sessions: Sequence[Sequence[AttemptRecord]] | None,
    ) -> PersonalizedSession:
        recent = self.recent_performance(profile, recent_sessions)
        config = self.personalizer.personalize(profile, recent, request)

        logger.debug(
            f"Personalized {request.curriculum} session for {student_id}: "
            f"difficulty {config.target_difficulty:.2f}, {config.question_count} questions, "
            f"{config.time_limit_seconds}s per question"
        )
        return PersonalizedSession(
            config=config,
            generation_profile=self.personalizer.build_generation_profile(profile, config),
            recent=recent,
            reasoning=self.personalizer.personalization_reasoning(config, recent),
        )

    async def create_session(
        self,
        student_id: str,
        session_id: str,
        request: SessionRequest | dict,
        recent_sessions: Sequence[Sequence[AttemptRecord]] | None = None,
    ) -> PersonalizedSession:
        """
        Personalize, generate exercises and start real-time tracking.

        Raises:
            RuntimeError: No exercise generator was configured
        """
        if self.adapter is None:
            raise RuntimeError("AdaptiveLearningEngine has no exercise generator")

        request = self._validate_request(request)
        profile = await self.load_profile(student_id, request.curriculum)
        session = self._personalize(student_id, profile, request, recent_sessions)
        config = session.config

        session.session_id = session_id
        session.exercises = await self.adapter.generate_set(
            config.curriculum, config.requested_level, config.question_count, session.generation_profile
        )
        session.plan = self.personalizer.build_session_plan(config, session.exercises, profile)

        if config.adaptive_features.enable_real_time_adjustment:
            self.realtime.start_session(session_id, config.time_limit_seconds)
            session.real_time_tracking = True

        logger.info(
            f"Created session {session_id} for {student_id}: {len(session.exercises)} exercises, "
            f"real-time {'on' if session.real_time_tracking else 'off'}"
        )
        return session

    # ==================== Live session ====================

    def submit_answer(
        self,
        session_id: str,
        exercise_index: int,
        response: ResponseRecord,
        exercises: MutableSequence[LiveExercise],
        now: datetime | None = None,
    ) -> AdaptationDecision:
        return self.realtime.record_answer(session_id, exercise_index, response, exercises, now)

    def end_session(self, session_id: str) -> None:
        self.realtime.end_session(session_id)
