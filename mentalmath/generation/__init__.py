"""Exercise generation adapters."""

from .personalization_adapter import (
    ExerciseGenerator,
    PersonalizationAdapter,
    apply_learning_style,
    distribution,
)

__all__ = [
    "ExerciseGenerator",
    "PersonalizationAdapter",
    "apply_learning_style",
    "distribution",
]
