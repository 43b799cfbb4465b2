"""
mentalmath: adaptive personalization engine for mental-arithmetic and logic training.

Scores a learner's sessions and uses the result to tune exercise
difficulty, timing and content mix, between sessions and while a
session is running.

Components:
- adaptive: scoring components and the AdaptiveLearningEngine
- generation: PersonalizationAdapter around an exercise generator
- stores: ProfileStore protocol with in-memory and JSON implementations
- core: shared records and exceptions
"""

__version__ = "1.0.0"
