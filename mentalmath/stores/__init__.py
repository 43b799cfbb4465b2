"""Adaptive profile stores."""

from .profile_store import InMemoryProfileStore, JsonProfileStore, ProfileStore

__all__ = [
    "InMemoryProfileStore",
    "JsonProfileStore",
    "ProfileStore",
]
