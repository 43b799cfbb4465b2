"""
Real-Time Session Adapter.

Retunes the remaining exercises of a live session from the last few answers.

Per session:
    start_session()  ->  tracking (state created)
    record_answer()  ->  buffer the response, maybe adapt
    end_session()    ->  state discarded

An answer is only evaluated at a breakpoint:
- at least 3 responses buffered (5-slot ring buffer)
- no adaptation within the cooldown window (5 minutes)
- fewer than 3 adaptations so far in this session
- (exercise_index + 1) is a multiple of 5

Triggers on the buffered responses, first match names the reason:
- accuracy < 0.4                          -> too_hard  (difficulty -0.2)
- accuracy > 0.9                          -> too_easy  (difficulty +0.2)
- average time > 1.5 x time limit         -> too_slow  (time +15 s)
- average time < 10 s and accuracy < 0.7  -> guessing  (time -10 s)

Failures are returned as {adapted: false, error} and never raised.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, MutableSequence
from datetime import datetime, timedelta

from loguru import logger

from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.exceptions import AdaptationError
from mentalmath.core.models import (
    MAX_EXERCISE_DIFFICULTY,
    MIN_EXERCISE_DIFFICULTY,
    AdaptationAdjustments,
    AdaptationDecision,
    AdaptationEvent,
    AdaptationReason,
    LiveExercise,
    ResponseRecord,
    SessionAdaptationState,
    clamp,
    utc_now,
)

TOO_HARD_ACCURACY = 0.4
TOO_EASY_ACCURACY = 0.9
TOO_SLOW_FACTOR = 1.5
GUESSING_MAX_TIME = 10.0
GUESSING_MAX_ACCURACY = 0.7
BUFFER_TREND_THRESHOLD = 0.2

DIFFICULTY_STEP = 0.2
SLOW_TIME_BONUS = 15
GUESSING_TIME_PENALTY = -10

# Reasoning codes per trigger, rendered to text by the transport layer
REASONING_CODES = {
    AdaptationReason.TOO_HARD: "decrease_difficulty_low_accuracy",
    AdaptationReason.TOO_EASY: "increase_difficulty_high_accuracy",
    AdaptationReason.TOO_SLOW: "increase_time_limit",
    AdaptationReason.GUESSING: "decrease_time_limit",
}

SESSION_NOT_TRACKED = "session_not_tracked"
NO_REMAINING_EXERCISES = "no_remaining_exercises"


def summarize_responses(responses: list[ResponseRecord]) -> tuple[float, float, str]:
    """Accuracy, average time and trend of buffered responses."""
    if not responses:
        return 0.0, 0.0, "no_data"

    accuracy = sum(1 for r in responses if r.is_correct) / len(responses)
    average_time = sum(r.time_spent_seconds for r in responses) / len(responses)

    trend = "stable"
    if len(responses) >= 3:
        midpoint = len(responses) // 2
        first, second = responses[:midpoint], responses[midpoint:]
        first_accuracy = sum(1 for r in first if r.is_correct) / len(first)
        second_accuracy = sum(1 for r in second if r.is_correct) / len(second)
        if second_accuracy > first_accuracy + BUFFER_TREND_THRESHOLD:
            trend = "improving"
        elif second_accuracy < first_accuracy - BUFFER_TREND_THRESHOLD:
            trend = "declining"

    return accuracy, average_time, trend


def detect_triggers(accuracy: float, average_time: float, time_limit: float) -> list[AdaptationReason]:
    """All triggers that fire, in priority order."""
    triggers = []
    if accuracy < TOO_HARD_ACCURACY:
        triggers.append(AdaptationReason.TOO_HARD)
    elif accuracy > TOO_EASY_ACCURACY:
        triggers.append(AdaptationReason.TOO_EASY)
    if average_time > time_limit * TOO_SLOW_FACTOR:
        triggers.append(AdaptationReason.TOO_SLOW)
    elif average_time < GUESSING_MAX_TIME and accuracy < GUESSING_MAX_ACCURACY:
        triggers.append(AdaptationReason.GUESSING)
    return triggers


def adjustments_for(triggers: list[AdaptationReason]) -> AdaptationAdjustments:
    adjustments = AdaptationAdjustments(reason=triggers[0] if triggers else None)
    if AdaptationReason.TOO_HARD in triggers:
        adjustments.difficulty_adjustment = -DIFFICULTY_STEP
    elif AdaptationReason.TOO_EASY in triggers:
        adjustments.difficulty_adjustment = DIFFICULTY_STEP
    if AdaptationReason.TOO_SLOW in triggers:
        adjustments.time_adjustment = SLOW_TIME_BONUS
    elif AdaptationReason.GUESSING in triggers:
        adjustments.time_adjustment = GUESSING_TIME_PENALTY
    return adjustments


class RealTimeAdapter:
    """
    In-session adaptation state machine.

    State is keyed by session id. The registry and each session's buffers
    are guarded by locks, so answers for different sessions may be recorded
    from different threads.
    """

    def __init__(
        self,
        settings: AdaptiveSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self._sessions: dict[str, SessionAdaptationState] = {}
        self._registry_lock = threading.Lock()

    # ==================== Lifecycle ====================

    def start_session(self, session_id: str, time_limit_per_question: float = 60.0) -> SessionAdaptationState:
        state = SessionAdaptationState(
            session_id=session_id,
            time_limit_per_question=time_limit_per_question,
            started_at=self.clock(),
        )
        with self._registry_lock:
            self._sessions[session_id] = state
        logger.debug(f"Real-time tracking started for session {session_id}")
        return state

    def end_session(self, session_id: str) -> SessionAdaptationState | None:
        with self._registry_lock:
            state = self._sessions.pop(session_id, None)
        if state is not None:
            logger.debug(
                f"Real-time tracking ended for session {session_id} "
                f"({state.adaptation_count} adaptations)"
            )
        return state

    def get_state(self, session_id: str) -> SessionAdaptationState | None:
        with self._registry_lock:
            return self._sessions.get(session_id)

    @property
    def active_sessions(self) -> list[str]:
        with self._registry_lock:
            return list(self._sessions)

    # ==================== Answers ====================

    def should_evaluate(self, state: SessionAdaptationState, exercise_index: int, now: datetime) -> bool:
        """Breakpoint gate. Caller holds the session lock."""
        s = self.settings
        if len(state.recent_responses) < s.realtime_min_responses:
            return False
        if state.last_adaptation_at is not None:
            if now - state.last_adaptation_at < timedelta(minutes=s.realtime_cooldown_minutes):
                return False
        if state.adaptation_count >= s.realtime_max_adaptations:
            return False
        return (exercise_index + 1) % s.realtime_breakpoint_interval == 0

    def record_answer(
        self,
        session_id: str,
        exercise_index: int,
        response: ResponseRecord,
        exercises: MutableSequence[LiveExercise],
        now: datetime | None = None,
    ) -> AdaptationDecision:
        """
        Buffer an answer and adapt the remaining exercises when warranted.

        Args:
            session_id: Tracked session
            exercise_index: Index of the answered exercise
            response: The submitted answer
            exercises: The session's exercise list, retuned in place
            now: Evaluation time (defaults to the adapter clock)

        Returns:
            AdaptationDecision; errors are reported, not raised
        """
        try:
            return self._record(session_id, exercise_index, response, exercises, now or self.clock())
        except AdaptationError as e:
            logger.warning(f"Real-time adaptation failed for session {session_id}: {e}")
            return AdaptationDecision(adapted=False, error=e.code)

    def _record(
        self,
        session_id: str,
        exercise_index: int,
        response: ResponseRecord,
        exercises: MutableSequence[LiveExercise],
        now: datetime,
    ) -> AdaptationDecision:
        state = self.get_state(session_id)
        if state is None:
            raise AdaptationError(SESSION_NOT_TRACKED, session_id)

        with state.lock:
            state.recent_responses.append(response)
            state.current_exercise_index = exercise_index

            if not self.should_evaluate(state, exercise_index, now):
                return AdaptationDecision(adapted=False)

            buffered = list(state.recent_responses)
            accuracy, average_time, trend = summarize_responses(buffered)
            triggers = detect_triggers(accuracy, average_time, state.time_limit_per_question)
            if not triggers:
                return AdaptationDecision(adapted=False)

            remaining = exercises[exercise_index + 1:]
            if not remaining:
                raise AdaptationError(NO_REMAINING_EXERCISES, f"index {exercise_index} is the last exercise")

            adjustments = adjustments_for(triggers)
            self._apply(remaining, adjustments)

            state.adaptation_count += 1
            state.last_adaptation_at = now
            state.events.append(
                AdaptationEvent(
                    exercise_index=exercise_index,
                    adjustments=adjustments,
                    accuracy=accuracy,
                    average_time_seconds=average_time,
                    trend=trend,
                    timestamp=now,
                )
            )

        logger.info(
            f"Session {session_id} adapted at exercise {exercise_index}: {adjustments.reason.value} "
            f"(difficulty {adjustments.difficulty_adjustment:+.1f}, time {adjustments.time_adjustment:+d}s)"
        )
        return AdaptationDecision(
            adapted=True,
            adjustments=adjustments,
            reasoning=[REASONING_CODES[t] for t in triggers],
            updated_exercise_ids=[exercise.exercise_id for exercise in remaining],
        )

    def _apply(self, remaining: list[LiveExercise], adjustments: AdaptationAdjustments) -> None:
        step = round(adjustments.difficulty_adjustment * MAX_EXERCISE_DIFFICULTY)
        floor = self.settings.realtime_min_time_limit_seconds
        for exercise in remaining:
            if step:
                exercise.difficulty = int(
                    clamp(exercise.difficulty + step, MIN_EXERCISE_DIFFICULTY, MAX_EXERCISE_DIFFICULTY)
                )
            if adjustments.time_adjustment:
                exercise.time_limit_seconds = max(floor, exercise.time_limit_seconds + adjustments.time_adjustment)
