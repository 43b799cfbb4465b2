"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mentalmath.config import AdaptiveSettings  # noqa: E402
from mentalmath.core.models import AdaptiveProfile, AttemptRecord, LiveExercise  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (engine + stores)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Default engine settings, isolated from MENTALMATH_* variables and .env."""
    return AdaptiveSettings(_env_file=None)


@pytest.fixture
def make_attempt():
    """Factory for attempt records with sensible defaults."""

    def _make(
        is_correct=True,
        time_spent=10.0,
        exercise_type="addition",
        difficulty=3,
        skipped=False,
        exercise_id=None,
        **flags,
    ):
        _make.counter += 1
        return AttemptRecord(
            exercise_id=exercise_id or f"ex-{_make.counter}",
            exercise_type=exercise_type,
            difficulty=difficulty,
            is_correct=is_correct,
            time_spent_seconds=time_spent,
            skipped=skipped,
            **flags,
        )

    _make.counter = 0
    return _make


@pytest.fixture
def fresh_profile():
    """A new learner's profile (difficulty 0.5, mixed style, no history)."""
    return AdaptiveProfile(student_id="student-1", curriculum="soroban")


@pytest.fixture
def make_exercises():
    """Factory for a live exercise list."""

    def _make(count=10, difficulty=3, time_limit=30, exercise_type="addition"):
        return [
            LiveExercise(
                exercise_id=f"live-{i}",
                exercise_type=exercise_type,
                difficulty=difficulty,
                time_limit_seconds=time_limit,
            )
            for i in range(count)
        ]

    return _make


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()
