"""
Unit tests for learning style detection.
"""

from mentalmath.adaptive.learning_style import LearningStyleDetector, count_style_signals
from mentalmath.core.models import LearningStyle


class TestCountStyleSignals:
    def test_only_correct_answers_count(self, make_attempt):
        attempts = [
            make_attempt(is_correct=True, has_image=True),
            make_attempt(is_correct=False, has_image=True),
        ]

        counts = count_style_signals(attempts)

        assert counts[LearningStyle.VISUAL] == 1
        assert counts[LearningStyle.MIXED] == 1

    def test_mixed_counts_every_correct_answer(self, make_attempt):
        attempts = [make_attempt(has_audio=True), make_attempt(is_interactive=True), make_attempt()]

        counts = count_style_signals(attempts)

        assert counts[LearningStyle.MIXED] == 3
        assert counts[LearningStyle.AUDITORY] == 1
        assert counts[LearningStyle.KINESTHETIC] == 1


class TestDetect:
    def test_dominant_modality_above_threshold_wins(self, settings, make_attempt):
        attempts = [make_attempt(has_image=True) for _ in range(7)] + [make_attempt() for _ in range(3)]

        detection = LearningStyleDetector(settings).detect(attempts, LearningStyle.MIXED)

        assert detection.resolved == LearningStyle.VISUAL
        assert detection.changed

    def test_exactly_at_threshold_keeps_current_style(self, settings, make_attempt):
        attempts = [make_attempt(has_audio=True) for _ in range(6)] + [make_attempt() for _ in range(4)]

        detection = LearningStyleDetector(settings).detect(attempts, LearningStyle.KINESTHETIC)

        assert detection.dominant == LearningStyle.AUDITORY
        assert detection.resolved == LearningStyle.KINESTHETIC
        assert not detection.changed

    def test_no_correct_answers_keeps_style(self, settings, make_attempt):
        attempts = [make_attempt(is_correct=False, has_image=True) for _ in range(5)]

        detection = LearningStyleDetector(settings).detect(attempts, LearningStyle.AUDITORY)

        assert detection.resolved == LearningStyle.AUDITORY
        assert detection.dominant is None

    def test_no_flags_keeps_style(self, settings, make_attempt):
        detection = LearningStyleDetector(settings).detect([make_attempt() for _ in range(4)])

        assert detection.resolved == LearningStyle.MIXED

    def test_apply_updates_profile(self, settings, fresh_profile, make_attempt):
        attempts = [make_attempt(is_interactive=True) for _ in range(4)]

        LearningStyleDetector(settings).apply(fresh_profile, attempts)

        assert fresh_profile.learning_style == LearningStyle.KINESTHETIC
