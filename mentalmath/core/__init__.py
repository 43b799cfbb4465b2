"""
Core Module - Shared domain records and exceptions.

All adaptive components import their types from here rather than
defining their own copies of the profile or attempt structures.
"""

from mentalmath.core.exceptions import AdaptationError, ProfileUnavailable
from mentalmath.core.models import (
    AdaptationAdjustments,
    AdaptationDecision,
    AdaptationEvent,
    AdaptationHistoryEntry,
    AdaptationReason,
    AdaptiveFeatureFlags,
    AdaptiveProfile,
    AttemptRecord,
    ErrorPattern,
    GenerationProfile,
    LearningStyle,
    LiveExercise,
    PerformanceMetrics,
    PerformanceSnapshot,
    PerformanceTrend,
    Priority,
    RecentPerformance,
    Recommendation,
    RecommendationType,
    ResponseRecord,
    RollingAverages,
    SessionAdaptationState,
    SessionConfig,
    SessionPlan,
    SessionPreferences,
    SessionRequest,
    SpeedTrend,
)

__all__ = [
    # Exceptions
    "AdaptationError",
    "ProfileUnavailable",
    # Records
    "AdaptationAdjustments",
    "AdaptationDecision",
    "AdaptationEvent",
    "AdaptationHistoryEntry",
    "AdaptiveFeatureFlags",
    "AdaptiveProfile",
    "AttemptRecord",
    "ErrorPattern",
    "GenerationProfile",
    "LiveExercise",
    "PerformanceMetrics",
    "PerformanceSnapshot",
    "RecentPerformance",
    "Recommendation",
    "ResponseRecord",
    "RollingAverages",
    "SessionAdaptationState",
    "SessionConfig",
    "SessionPlan",
    "SessionPreferences",
    "SessionRequest",
    # Enums
    "AdaptationReason",
    "LearningStyle",
    "PerformanceTrend",
    "Priority",
    "RecommendationType",
    "SpeedTrend",
]
