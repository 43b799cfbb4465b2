"""
Adaptive profile persistence.

The engine talks to any object implementing the ProfileStore protocol.
Two implementations ship with the package:
- InMemoryProfileStore: process-local, for tests and embedding
- JsonProfileStore: one JSON file per (student, curriculum) in ~/.mentalmath/profiles/

Both serialize writers per (student, curriculum) with an asyncio.Lock and
hand out copies, so callers never share a mutable profile.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from loguru import logger

from mentalmath.core.exceptions import ProfileUnavailable
from mentalmath.core.models import AdaptiveProfile, utc_now

# Default profile directory
PROFILE_DIR = Path.home() / ".mentalmath" / "profiles"

# Never produced by quote(safe=""), so the filename decodes to exactly one key
KEY_SEPARATOR = "+"


class ProfileStore(Protocol):
    """Protocol for adaptive profile storage."""

    async def load(self, student_id: str, curriculum: str) -> AdaptiveProfile | None:
        """Return the stored profile, or None if the learner has none yet."""
        ...

    async def save(self, profile: AdaptiveProfile) -> None:
        """Persist the profile, replacing any previous version."""
        ...


class _KeyedLocks:
    """One asyncio.Lock per (student, curriculum)."""

    def __init__(self):
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}

    def get(self, key: tuple[str, str]) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock


class InMemoryProfileStore:
    """Dictionary-backed store."""

    def __init__(self, profiles: list[AdaptiveProfile] | None = None):
        self._profiles: dict[tuple[str, str], AdaptiveProfile] = {
            p.key: p.copy() for p in profiles or []
        }
        self._locks = _KeyedLocks()

    async def load(self, student_id: str, curriculum: str) -> AdaptiveProfile | None:
        key = (student_id, curriculum)
        async with self._locks.get(key):
            profile = self._profiles.get(key)
            return profile.copy() if profile else None

    async def save(self, profile: AdaptiveProfile) -> None:
        async with self._locks.get(profile.key):
            self._profiles[profile.key] = profile.copy()

    def __len__(self) -> int:
        return len(self._profiles)


class JsonProfileStore:
    """
    Stores each profile as JSON: {student_id}+{curriculum}.json

    Both parts are percent-encoded, so distinct keys never share a file.
    File access runs in a worker thread. I/O and decode failures surface
    as ProfileUnavailable.
    """

    def __init__(self, profile_dir: Path | None = None):
        self.profile_dir = profile_dir or PROFILE_DIR
        self.profile_dir.mkdir(parents=True, exist_ok=True)
        self._locks = _KeyedLocks()

    def path_for(self, student_id: str, curriculum: str) -> Path:
        filename = f"{quote(student_id, safe='')}{KEY_SEPARATOR}{quote(curriculum, safe='')}.json"
        return self.profile_dir / filename

    async def load(self, student_id: str, curriculum: str) -> AdaptiveProfile | None:
        filepath = self.path_for(student_id, curriculum)
        async with self._locks.get((student_id, curriculum)):
            try:
                data = await asyncio.to_thread(self._read, filepath)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to read profile {filepath.name}: {e}")
                raise ProfileUnavailable(student_id, curriculum, str(e)) from e

        if data is None:
            return None
        try:
            profile = AdaptiveProfile.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Corrupt profile {filepath.name}: {e}")
            raise ProfileUnavailable(student_id, curriculum, f"corrupt profile: {e}") from e

        if profile.key != (student_id, curriculum):
            logger.error(f"Profile {filepath.name} belongs to {profile.student_id}/{profile.curriculum}")
            raise ProfileUnavailable(student_id, curriculum, "profile key mismatch")
        return profile

    async def save(self, profile: AdaptiveProfile) -> None:
        stamped = profile.copy()
        stamped.last_updated = utc_now()
        filepath = self.path_for(stamped.student_id, stamped.curriculum)
        payload = stamped.to_dict()

        async with self._locks.get(stamped.key):
            try:
                await asyncio.to_thread(self._write, filepath, payload)
            except OSError as e:
                logger.error(f"Failed to write profile {filepath.name}: {e}")
                raise ProfileUnavailable(profile.student_id, profile.curriculum, str(e)) from e

    def delete(self, student_id: str, curriculum: str) -> bool:
        """Delete a profile file."""
        filepath = self.path_for(student_id, curriculum)
        if filepath.exists():
            filepath.unlink()
            return True
        return False

    @staticmethod
    def _read(filepath: Path) -> dict | None:
        if not filepath.exists():
            return None
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)

    @staticmethod
    def _write(filepath: Path, payload: dict) -> None:
        # Write-then-rename
        tmp_path = filepath.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        tmp_path.replace(filepath)
