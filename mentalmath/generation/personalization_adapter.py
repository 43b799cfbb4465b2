"""
Personalization adapter for exercise generators.

Wraps any generator that can produce exercises of one type and turns a
GenerationProfile into a personalized exercise set:

    40% focus areas        (split evenly)
    30% preferred types    (split evenly)
    20% weakness areas     (split evenly)
    rest "mixed"           (exploration / variety)

Avoided types are skipped unless they are also focus areas. The set is
topped up with "mixed" exercises, shuffled, trimmed to the requested count
and adapted to the learner's style.
"""

from __future__ import annotations

import math
import random
from typing import Protocol

from loguru import logger

from mentalmath.core.models import GenerationProfile, LearningStyle, LiveExercise

MIXED_TYPE = "mixed"

FOCUS_SHARE = 0.4
PREFERRED_SHARE = 0.3
WEAKNESS_SHARE = 0.2

# Metadata flags set per learning style; read back as style signals
STYLE_METADATA = {
    LearningStyle.VISUAL: {"hasImage": True, "visualEnhanced": True},
    LearningStyle.AUDITORY: {"hasAudio": True, "audioEnhanced": True},
    LearningStyle.KINESTHETIC: {"isInteractive": True, "interactiveEnhanced": True},
    LearningStyle.MIXED: {},
}

STYLE_TIME_FACTORS = {
    LearningStyle.VISUAL: 1.1,
    LearningStyle.KINESTHETIC: 1.2,
}


class ExerciseGenerator(Protocol):
    """Protocol for curriculum exercise generators."""

    async def generate(
        self,
        curriculum: str,
        level: int,
        exercise_type: str,
        count: int,
        target_difficulty: float,
    ) -> list[LiveExercise]:
        """Generate count exercises of one type."""
        ...


def _allocate(distribution: dict[str, int], areas: list[str], budget: int) -> None:
    if not areas:
        return
    per_area = budget // len(areas)
    for area in areas:
        distribution[area] = distribution.get(area, 0) + per_area


def distribution(count: int, profile: GenerationProfile) -> dict[str, int]:
    """
    Number of exercises per type for a session of count exercises.

    The values always sum to count; whatever the shares leave over is
    assigned to "mixed".
    """
    result: dict[str, int] = {}
    _allocate(result, list(profile.focus_areas), math.floor(count * FOCUS_SHARE))
    _allocate(result, list(profile.preferred_types), math.floor(count * PREFERRED_SHARE))
    _allocate(result, list(profile.weakness_areas), math.floor(count * WEAKNESS_SHARE))

    remainder = count - sum(result.values())
    if remainder > 0:
        result[MIXED_TYPE] = result.get(MIXED_TYPE, 0) + remainder
    return {exercise_type: n for exercise_type, n in result.items() if n > 0}


def apply_learning_style(exercises: list[LiveExercise], style: LearningStyle) -> list[LiveExercise]:
    """Set style metadata flags and stretch time limits in place."""
    flags = STYLE_METADATA.get(style, {})
    factor = STYLE_TIME_FACTORS.get(style)
    for exercise in exercises:
        exercise.metadata.update(flags)
        if factor:
            exercise.time_limit_seconds = int(round(exercise.time_limit_seconds * factor))
    return exercises


class PersonalizationAdapter:
    """
    Compose a plain generator with profile-driven exercise selection.

    Example:
        adapter = PersonalizationAdapter(my_generator)
        exercises = await adapter.generate_set("soroban", 3, 20, generation_profile)
    """

    def __init__(self, generator: ExerciseGenerator, rng: random.Random | None = None):
        self.generator = generator
        self.rng = rng or random.Random()

    async def generate_set(
        self,
        curriculum: str,
        level: int,
        count: int,
        profile: GenerationProfile,
    ) -> list[LiveExercise]:
        plan = distribution(count, profile)
        focus = set(profile.focus_areas)
        exercises: list[LiveExercise] = []

        for exercise_type, type_count in plan.items():
            if exercise_type in profile.avoid_types and exercise_type not in focus:
                logger.debug(f"Skipping avoided type {exercise_type} ({type_count} exercises)")
                continue
            exercises.extend(
                await self.generator.generate(
                    curriculum, level, exercise_type, type_count, profile.target_difficulty
                )
            )

        missing = count - len(exercises)
        if missing > 0:
            exercises.extend(
                await self.generator.generate(
                    curriculum, level, MIXED_TYPE, missing, profile.target_difficulty
                )
            )

        self.rng.shuffle(exercises)
        exercises = exercises[:count]

        logger.debug(
            f"Generated {len(exercises)} exercises for {curriculum} level {level} "
            f"(target difficulty {profile.target_difficulty:.2f}, {profile.learning_style.value})"
        )
        return apply_learning_style(exercises, profile.learning_style)
