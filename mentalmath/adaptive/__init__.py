"""
Adaptive Module - Performance scoring and session personalization.

Components:
- metrics_calculator: per-session PerformanceMetrics from attempts
- history_aggregator: bounded history and decayed rolling averages
- area_classifier: strength / weakness exercise types
- learning_style: sensory-modality detection
- difficulty_adjuster: between-session difficulty score
- trend_analyzer: recent-session trend for personalization
- session_personalizer: SessionConfig for a new session
- realtime_adapter: in-session retuning of remaining exercises
- recommendations: recommendation and insight decision data
- engine: async orchestration over an injected ProfileStore
"""

from mentalmath.adaptive.area_classifier import AreaClassification, AreaClassifier, AreaStats
from mentalmath.adaptive.difficulty_adjuster import DifficultyAdjuster, DifficultyAdjustment
from mentalmath.adaptive.engine import AdaptiveLearningEngine, PersonalizedSession, SessionAnalysis
from mentalmath.adaptive.history_aggregator import HistoryAggregator, weighted_average
from mentalmath.adaptive.learning_style import LearningStyleDetector, StyleDetection
from mentalmath.adaptive.metrics_calculator import (
    calculate_consistency,
    calculate_metrics,
    calculate_speed_trend,
    find_error_patterns,
)
from mentalmath.adaptive.realtime_adapter import RealTimeAdapter
from mentalmath.adaptive.recommendations import (
    adaptive_insights,
    build_recommendations,
    live_session_metrics,
)
from mentalmath.adaptive.session_personalizer import SessionPersonalizer
from mentalmath.adaptive.trend_analyzer import analyze_recent_performance, summarize_metrics

__all__ = [
    # Orchestration
    "AdaptiveLearningEngine",
    "PersonalizedSession",
    "SessionAnalysis",
    # Metrics
    "calculate_metrics",
    "calculate_consistency",
    "calculate_speed_trend",
    "find_error_patterns",
    # Profile updates
    "HistoryAggregator",
    "weighted_average",
    "AreaClassifier",
    "AreaClassification",
    "AreaStats",
    "LearningStyleDetector",
    "StyleDetection",
    "DifficultyAdjuster",
    "DifficultyAdjustment",
    # Personalization
    "analyze_recent_performance",
    "summarize_metrics",
    "SessionPersonalizer",
    "RealTimeAdapter",
    # Recommendations
    "build_recommendations",
    "live_session_metrics",
    "adaptive_insights",
]
