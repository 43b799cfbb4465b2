"""
Exercise Area Classifier.

Groups a session's attempts by exercise type and ranks the groups by

    score = accuracy / max(average_time, floor)

The top ceil(30%) types become strength areas, the bottom ceil(30%) become
weakness areas. A type is never both: weaknesses exclude any strength.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.models import AdaptiveProfile, AttemptRecord


@dataclass
class AreaStats:
    """Per exercise type performance within a session."""

    exercise_type: str
    attempts: int
    correct: int
    accuracy: float
    average_time_seconds: float
    score: float


@dataclass
class AreaClassification:
    """Ranked areas plus the resulting strength / weakness split."""

    ranked: list[AreaStats] = field(default_factory=list)
    strength_areas: list[str] = field(default_factory=list)
    weakness_areas: list[str] = field(default_factory=list)


class AreaClassifier:
    """Rank exercise types into strengths and weaknesses."""

    def __init__(self, settings: AdaptiveSettings | None = None):
        self.settings = settings or get_settings()

    def group_by_type(self, attempts: Sequence[AttemptRecord]) -> list[AreaStats]:
        """Compute accuracy, average time and score per exercise type."""
        groups: dict[str, list[AttemptRecord]] = {}
        for attempt in attempts:
            groups.setdefault(attempt.exercise_type, []).append(attempt)

        floor = self.settings.area_min_average_time
        stats = []
        for exercise_type, items in groups.items():
            correct = sum(1 for a in items if a.is_correct)
            accuracy = correct / len(items)
            average_time = sum(a.time_spent_seconds for a in items) / len(items)
            stats.append(
                AreaStats(
                    exercise_type=exercise_type,
                    attempts=len(items),
                    correct=correct,
                    accuracy=accuracy,
                    average_time_seconds=average_time,
                    score=accuracy / max(average_time, floor),
                )
            )
        return stats

    def classify(self, attempts: Sequence[AttemptRecord] | None) -> AreaClassification:
        """
        Rank types by score (descending, ties by name) and slice.

        Args:
            attempts: The session's attempts

        Returns:
            AreaClassification with disjoint strength/weakness lists
        """
        if not attempts:
            return AreaClassification()

        ranked = sorted(self.group_by_type(attempts), key=lambda s: (-s.score, s.exercise_type))
        slice_size = math.ceil(len(ranked) * self.settings.area_slice_fraction)

        strengths = [s.exercise_type for s in ranked[:slice_size]]
        weaknesses = [
            s.exercise_type
            for s in reversed(ranked[len(ranked) - slice_size:])
            if s.exercise_type not in strengths
        ]

        return AreaClassification(
            ranked=ranked,
            strength_areas=strengths,
            weakness_areas=weaknesses,
        )

    def apply(self, profile: AdaptiveProfile, attempts: Sequence[AttemptRecord]) -> AreaClassification:
        """Replace the profile's areas with this session's classification."""
        result = self.classify(attempts)
        profile.strength_areas = list(result.strength_areas)
        profile.weakness_areas = list(result.weakness_areas)
        return result
