"""
Core data model for the adaptive personalization engine.

Every record the engine consumes or produces lives here:
- AttemptRecord: one exercise outcome reported by session execution
- PerformanceMetrics: per-session snapshot derived from attempts
- AdaptiveProfile: durable per (student, curriculum) learning profile
- SessionAdaptationState: short-lived real-time state for a live session
- SessionConfig / GenerationProfile: parameters for the exercise generator
- AdaptationDecision: outcome of a real-time adaptation check

Bounded collections use deque(maxlen=...) so push-and-evict is O(1).
"""

from __future__ import annotations

import threading
from collections import deque
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Bounds
HISTORY_LIMIT = 20
ADAPTATION_HISTORY_LIMIT = 50
RESPONSE_BUFFER_SIZE = 5

MIN_DIFFICULTY_SCORE = 0.1
MAX_DIFFICULTY_SCORE = 1.0
MIN_EXERCISE_DIFFICULTY = 1
MAX_EXERCISE_DIFFICULTY = 5
MIN_LEVEL = 1
MAX_LEVEL = 10


def utc_now() -> datetime:
    """Current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def _parse_datetime(value: Any) -> datetime:
    if value is None:
        return utc_now()
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present key (snake_case or camelCase payloads)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


# ============================================================================
# Enums
# ============================================================================


class LearningStyle(str, Enum):
    """Sensory-modality preference of a learner."""

    VISUAL = "visual"
    AUDITORY = "auditory"
    KINESTHETIC = "kinesthetic"
    MIXED = "mixed"


class SpeedTrend(str, Enum):
    """Direction of response times within one session."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class PerformanceTrend(str, Enum):
    """Accuracy trend across recent sessions."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"
    NO_DATA = "no_data"


class AdaptationReason(str, Enum):
    """Why a live session was retuned."""

    TOO_HARD = "too_hard"
    TOO_EASY = "too_easy"
    TOO_SLOW = "too_slow"
    GUESSING = "guessing"


class RecommendationType(str, Enum):
    ACCURACY = "accuracy"
    SPEED = "speed"
    WEAKNESS = "weakness"
    ERROR_PATTERN = "error_pattern"
    CONSISTENCY = "consistency"
    PROGRESSION = "progression"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}[self]


# ============================================================================
# Attempts and metrics
# ============================================================================


@dataclass(frozen=True)
class AttemptRecord:
    """
    Outcome of one exercise instance within a session.

    Difficulty is clamped to 1-5 and time to >= 0 on construction.
    A skipped attempt is never counted as correct.
    """

    exercise_id: str
    exercise_type: str
    difficulty: int
    is_correct: bool
    time_spent_seconds: float
    skipped: bool = False
    timestamp: datetime = field(default_factory=utc_now)

    # Style-affinity flags carried from the exercise metadata
    has_image: bool = False
    has_audio: bool = False
    is_interactive: bool = False

    def __post_init__(self):
        difficulty = int(round(clamp(self.difficulty, MIN_EXERCISE_DIFFICULTY, MAX_EXERCISE_DIFFICULTY)))
        object.__setattr__(self, "difficulty", difficulty)
        object.__setattr__(self, "time_spent_seconds", max(0.0, float(self.time_spent_seconds or 0.0)))
        if self.skipped and self.is_correct:
            object.__setattr__(self, "is_correct", False)

    @classmethod
    def from_dict(cls, data: dict) -> AttemptRecord:
        """Build from a session-execution payload (camelCase or snake_case)."""
        metadata = data.get("metadata") or {}
        return cls(
            exercise_id=str(_pick(data, "exercise_id", "exerciseId", "id", default="")),
            exercise_type=str(_pick(data, "exercise_type", "exerciseType", "type", default="unknown")),
            difficulty=float(_pick(data, "difficulty", default=MIN_EXERCISE_DIFFICULTY)),
            is_correct=bool(_pick(data, "is_correct", "isCorrect", default=False)),
            time_spent_seconds=float(
                _pick(data, "time_spent_seconds", "timeSpentSeconds", "timeSpent", default=0.0)
            ),
            skipped=bool(_pick(data, "skipped", default=False)),
            timestamp=_parse_datetime(_pick(data, "timestamp", "submittedAt")),
            has_image=bool(_pick(data, "has_image", "hasImage", default=metadata.get("hasImage", False))),
            has_audio=bool(_pick(data, "has_audio", "hasAudio", default=metadata.get("hasAudio", False))),
            is_interactive=bool(
                _pick(data, "is_interactive", "isInteractive", default=metadata.get("isInteractive", False))
            ),
        )


@dataclass(frozen=True)
class ErrorPattern:
    """A run of consecutive wrong answers."""

    start_index: int
    length: int


@dataclass
class PerformanceMetrics:
    """Snapshot of one session's performance."""

    accuracy: float = 0.0  # 0-1
    average_time_seconds: float = 0.0
    consistency: float = 0.0  # 0-1
    difficulty_handling: float = 0.0  # mean of difficulty x correctness
    error_patterns: list[ErrorPattern] = field(default_factory=list)
    speed_trend: SpeedTrend = SpeedTrend.INSUFFICIENT_DATA

    total_attempts: int = 0
    correct_count: int = 0
    skipped_count: int = 0

    def to_dict(self) -> dict:
        return {
            "accuracy": self.accuracy,
            "average_time_seconds": self.average_time_seconds,
            "consistency": self.consistency,
            "difficulty_handling": self.difficulty_handling,
            "error_patterns": [asdict(p) for p in self.error_patterns],
            "speed_trend": self.speed_trend.value,
            "total_attempts": self.total_attempts,
            "correct_count": self.correct_count,
            "skipped_count": self.skipped_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PerformanceMetrics:
        return cls(
            accuracy=float(data.get("accuracy", 0.0)),
            average_time_seconds=float(data.get("average_time_seconds", 0.0)),
            consistency=float(data.get("consistency", 0.0)),
            difficulty_handling=float(data.get("difficulty_handling", 0.0)),
            error_patterns=[ErrorPattern(**p) for p in data.get("error_patterns", [])],
            speed_trend=SpeedTrend(data.get("speed_trend", SpeedTrend.INSUFFICIENT_DATA.value)),
            total_attempts=int(data.get("total_attempts", 0)),
            correct_count=int(data.get("correct_count", 0)),
            skipped_count=int(data.get("skipped_count", 0)),
        )


# ============================================================================
# Adaptive profile
# ============================================================================


@dataclass
class PerformanceSnapshot:
    """A session's metrics as stored in the profile history."""

    session_id: str
    metrics: PerformanceMetrics
    recorded_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "metrics": self.metrics.to_dict(),
            "recorded_at": self.recorded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> PerformanceSnapshot:
        return cls(
            session_id=str(data.get("session_id", "")),
            metrics=PerformanceMetrics.from_dict(data.get("metrics", {})),
            recorded_at=_parse_datetime(data.get("recorded_at")),
        )


@dataclass
class RollingAverages:
    """Decayed averages over the performance history."""

    accuracy: float = 0.0
    speed: float = 0.0  # average seconds per answer
    consistency: float = 0.0


@dataclass
class AdaptationHistoryEntry:
    """One between-session difficulty change."""

    session_id: str
    old_difficulty: float
    new_difficulty: float
    reason: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "old_difficulty": self.old_difficulty,
            "new_difficulty": self.new_difficulty,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class AdaptiveProfile:
    """
    Durable learning profile, one per (student_id, curriculum).

    The engine only ever mutates a copy; the Profile Store persists it.
    """

    student_id: str
    curriculum: str
    current_level: int = 1
    difficulty_score: float = 0.5
    learning_style: LearningStyle = LearningStyle.MIXED
    strength_areas: list[str] = field(default_factory=list)
    weakness_areas: list[str] = field(default_factory=list)
    performance_history: deque[PerformanceSnapshot] = field(
        default_factory=lambda: deque(maxlen=HISTORY_LIMIT)
    )
    rolling_averages: RollingAverages = field(default_factory=RollingAverages)
    adaptation_history: deque[AdaptationHistoryEntry] = field(
        default_factory=lambda: deque(maxlen=ADAPTATION_HISTORY_LIMIT)
    )
    total_sessions: int = 0
    last_updated: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.difficulty_score = clamp(self.difficulty_score, MIN_DIFFICULTY_SCORE, MAX_DIFFICULTY_SCORE)
        self.current_level = int(clamp(self.current_level, MIN_LEVEL, MAX_LEVEL))
        # Re-wrap so that bounds hold even when plain lists are passed in
        if not isinstance(self.performance_history, deque) or self.performance_history.maxlen != HISTORY_LIMIT:
            self.performance_history = deque(self.performance_history, maxlen=HISTORY_LIMIT)
        if (
            not isinstance(self.adaptation_history, deque)
            or self.adaptation_history.maxlen != ADAPTATION_HISTORY_LIMIT
        ):
            self.adaptation_history = deque(self.adaptation_history, maxlen=ADAPTATION_HISTORY_LIMIT)

    @property
    def key(self) -> tuple[str, str]:
        return (self.student_id, self.curriculum)

    def copy(self) -> AdaptiveProfile:
        """Deep copy for in-memory modification."""
        return deepcopy(self)

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "curriculum": self.curriculum,
            "current_level": self.current_level,
            "difficulty_score": self.difficulty_score,
            "learning_style": self.learning_style.value,
            "strength_areas": list(self.strength_areas),
            "weakness_areas": list(self.weakness_areas),
            "performance_history": [s.to_dict() for s in self.performance_history],
            "rolling_averages": asdict(self.rolling_averages),
            "adaptation_history": [e.to_dict() for e in self.adaptation_history],
            "total_sessions": self.total_sessions,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> AdaptiveProfile:
        return cls(
            student_id=str(data["student_id"]),
            curriculum=str(data["curriculum"]),
            current_level=int(data.get("current_level", 1)),
            difficulty_score=float(data.get("difficulty_score", 0.5)),
            learning_style=LearningStyle(data.get("learning_style", LearningStyle.MIXED.value)),
            strength_areas=list(data.get("strength_areas", [])),
            weakness_areas=list(data.get("weakness_areas", [])),
            performance_history=deque(
                (PerformanceSnapshot.from_dict(s) for s in data.get("performance_history", [])),
                maxlen=HISTORY_LIMIT,
            ),
            rolling_averages=RollingAverages(**data.get("rolling_averages", {})),
            adaptation_history=deque(
                (
                    AdaptationHistoryEntry(
                        session_id=e["session_id"],
                        old_difficulty=e["old_difficulty"],
                        new_difficulty=e["new_difficulty"],
                        reason=e["reason"],
                        timestamp=_parse_datetime(e.get("timestamp")),
                    )
                    for e in data.get("adaptation_history", [])
                ),
                maxlen=ADAPTATION_HISTORY_LIMIT,
            ),
            total_sessions=int(data.get("total_sessions", 0)),
            last_updated=_parse_datetime(data.get("last_updated")),
        )


# ============================================================================
# Live session
# ============================================================================


@dataclass
class ResponseRecord:
    """A submitted answer as seen by the real-time adapter."""

    exercise_index: int
    is_correct: bool
    time_spent_seconds: float
    skipped: bool = False
    difficulty: int | None = None


@dataclass
class LiveExercise:
    """An exercise in a running session; later items may be retuned in place."""

    exercise_id: str
    exercise_type: str
    difficulty: int
    time_limit_seconds: int
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class AdaptationAdjustments:
    difficulty_adjustment: float = 0.0
    time_adjustment: int = 0
    reason: AdaptationReason | None = None

    def to_dict(self) -> dict:
        return {
            "difficulty_adjustment": self.difficulty_adjustment,
            "time_adjustment": self.time_adjustment,
            "reason": self.reason.value if self.reason else None,
        }


@dataclass
class AdaptationEvent:
    """Record of an applied real-time adaptation."""

    exercise_index: int
    adjustments: AdaptationAdjustments
    accuracy: float
    average_time_seconds: float
    trend: str
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class SessionAdaptationState:
    """Per-session real-time state. Created at start, discarded at end."""

    session_id: str
    time_limit_per_question: float = 60.0
    current_exercise_index: int = 0
    recent_responses: deque[ResponseRecord] = field(
        default_factory=lambda: deque(maxlen=RESPONSE_BUFFER_SIZE)
    )
    adaptation_count: int = 0
    last_adaptation_at: datetime | None = None
    started_at: datetime = field(default_factory=utc_now)
    events: list[AdaptationEvent] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass
class AdaptationDecision:
    """Result handed to the transport layer after each answer."""

    adapted: bool
    adjustments: AdaptationAdjustments | None = None
    reasoning: list[str] | None = None
    error: str | None = None
    updated_exercise_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        result: dict[str, Any] = {"adapted": self.adapted}
        if self.adjustments is not None:
            result["adjustments"] = self.adjustments.to_dict()
        if self.reasoning is not None:
            result["reasoning"] = list(self.reasoning)
        if self.error is not None:
            result["error"] = self.error
        if self.updated_exercise_ids:
            result["updated_exercise_ids"] = list(self.updated_exercise_ids)
        return result


# ============================================================================
# Session personalization
# ============================================================================


class SessionPreferences(BaseModel):
    """Learner preferences attached to a session request."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    prefer_shorter_sessions: bool = Field(False, alias="preferShorterSessions")
    prefer_longer_sessions: bool = Field(False, alias="preferLongerSessions")
    prefer_more_time: bool = Field(False, alias="preferMoreTime")
    prefer_less_time: bool = Field(False, alias="preferLessTime")
    focus_areas: list[str] = Field(default_factory=list, alias="focusAreas")
    enable_hints: bool = Field(True, alias="enableHints")


class SessionRequest(BaseModel):
    """Base request for a new session. Out-of-range numbers are clamped."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    curriculum: str
    requested_level: int = Field(1, alias="requestedLevel")
    duration_minutes: int = Field(15, alias="duration")
    question_count: int = Field(20, alias="questionCount")
    preferences: SessionPreferences = Field(default_factory=SessionPreferences)

    @field_validator("requested_level", mode="before")
    @classmethod
    def _clamp_level(cls, value: Any) -> int:
        return int(clamp(int(float(value)), MIN_LEVEL, MAX_LEVEL))

    @field_validator("duration_minutes", "question_count", mode="before")
    @classmethod
    def _at_least_one(cls, value: Any) -> int:
        return max(1, int(float(value)))


@dataclass
class RecentPerformance:
    """Aggregate of the learner's last completed sessions."""

    trend: PerformanceTrend = PerformanceTrend.NO_DATA
    average_accuracy: float = 0.0
    average_speed: float = 0.0
    consistency: float = 0.0
    improvement_rate: float = 0.0
    struggling_areas: list[str] = field(default_factory=list)
    strong_areas: list[str] = field(default_factory=list)
    session_count: int = 0


@dataclass
class AdaptiveFeatureFlags:
    enable_real_time_adjustment: bool = False
    enable_hints: bool = True
    enable_progressive_difficulty: bool = False
    enable_weakness_detection: bool = True
    adaptation_sensitivity: str = "high"
    breakpoint_fractions: tuple[float, ...] = (0.3, 0.6, 0.8)


@dataclass
class SessionConfig:
    """Tuned session parameters for the exercise generator."""

    curriculum: str
    requested_level: int
    target_difficulty: float
    question_count: int
    time_limit_seconds: int
    focus_areas: list[str] = field(default_factory=list)
    adaptive_features: AdaptiveFeatureFlags = field(default_factory=AdaptiveFeatureFlags)
    duration_minutes: int = 15

    def to_dict(self) -> dict:
        data = asdict(self)
        data["adaptive_features"]["breakpoint_fractions"] = list(self.adaptive_features.breakpoint_fractions)
        return data


@dataclass
class GenerationProfile:
    """Parameters the exercise generator receives alongside a SessionConfig."""

    target_difficulty: float
    preferred_types: list[str] = field(default_factory=list)
    avoid_types: list[str] = field(default_factory=list)
    learning_style: LearningStyle = LearningStyle.MIXED
    focus_areas: list[str] = field(default_factory=list)
    weakness_areas: list[str] = field(default_factory=list)
    strength_areas: list[str] = field(default_factory=list)


@dataclass
class SessionPlan:
    """Breakpoints, difficulty progression and pacing of a planned session."""

    total_exercises: int
    estimated_duration_minutes: float
    breakpoints: list[int] = field(default_factory=list)
    difficulty_progression: list[dict[str, Any]] = field(default_factory=list)
    pacing: dict[str, Any] = field(default_factory=dict)


@dataclass
class Recommendation:
    """Recommendation decision data; message text is rendered elsewhere."""

    type: RecommendationType
    priority: Priority
    action: str
    areas: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "action": self.action,
            "areas": list(self.areas),
        }
