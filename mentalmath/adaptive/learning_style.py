"""
Learning Style Detector.

Counts, over correctly answered attempts, which style-affinity flags were
present: has_image -> visual, has_audio -> auditory, is_interactive ->
kinesthetic. The "mixed" counter is incremented for every correct answer
and therefore equals the number of correct answers.

The profile's style is only overwritten when the dominant modality's count
exceeds 60% of the session's correct answers, so a single noisy session
cannot flip the classification.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from loguru import logger

from mentalmath.config import AdaptiveSettings, get_settings
from mentalmath.core.models import AdaptiveProfile, AttemptRecord, LearningStyle

# Tie-break order for the dominant modality
MODALITIES = (LearningStyle.VISUAL, LearningStyle.AUDITORY, LearningStyle.KINESTHETIC)


@dataclass
class StyleDetection:
    counts: dict[LearningStyle, int] = field(default_factory=dict)
    dominant: LearningStyle | None = None
    dominant_share: float = 0.0
    previous: LearningStyle = LearningStyle.MIXED
    resolved: LearningStyle = LearningStyle.MIXED

    @property
    def changed(self) -> bool:
        return self.resolved != self.previous


def count_style_signals(attempts: Sequence[AttemptRecord]) -> dict[LearningStyle, int]:
    counts = {style: 0 for style in LearningStyle}
    for attempt in attempts:
        if not attempt.is_correct:
            continue
        if attempt.has_image:
            counts[LearningStyle.VISUAL] += 1
        if attempt.has_audio:
            counts[LearningStyle.AUDITORY] += 1
        if attempt.is_interactive:
            counts[LearningStyle.KINESTHETIC] += 1
        counts[LearningStyle.MIXED] += 1
    return counts


class LearningStyleDetector:
    """Heuristic sensory-modality classification from correct answers."""

    def __init__(self, settings: AdaptiveSettings | None = None):
        self.settings = settings or get_settings()

    def detect(
        self,
        attempts: Sequence[AttemptRecord] | None,
        current: LearningStyle = LearningStyle.MIXED,
    ) -> StyleDetection:
        counts = count_style_signals(attempts or [])
        total_correct = counts[LearningStyle.MIXED]
        detection = StyleDetection(counts=counts, previous=current, resolved=current)

        if total_correct == 0:
            return detection

        dominant = max(MODALITIES, key=lambda style: (counts[style], -MODALITIES.index(style)))
        share = counts[dominant] / total_correct
        detection.dominant = dominant
        detection.dominant_share = share

        if counts[dominant] > 0 and share > self.settings.style_dominance_threshold:
            detection.resolved = dominant
        return detection

    def apply(self, profile: AdaptiveProfile, attempts: Sequence[AttemptRecord]) -> StyleDetection:
        detection = self.detect(attempts, profile.learning_style)
        if detection.changed:
            logger.info(
                f"Learning style for {profile.student_id}/{profile.curriculum}: "
                f"{detection.previous.value} -> {detection.resolved.value} "
                f"({detection.dominant_share:.0%} of correct answers)"
            )
        profile.learning_style = detection.resolved
        return detection
