"""Public façade for the app.data package.

This module exposes the JSON collection store and the repositories built on
it (credentials, users, reflections, vibe analyses). Callers should use this
façade instead of importing from the internal modules directly.
"""

from .credentials import CREDENTIALS_COLLECTION, TokenStore
from .reflections import REFLECTIONS_COLLECTION, ReflectionRepository
from .store import JsonCollectionStore, parse_datetime
from .users import USERS_COLLECTION, UserRepository
from .vibe import VIBE_COLLECTION, VibeAnalysisRepository

__all__ = [
    "JsonCollectionStore",
    "parse_datetime",
    "TokenStore",
    "UserRepository",
    "ReflectionRepository",
    "VibeAnalysisRepository",
    "CREDENTIALS_COLLECTION",
    "USERS_COLLECTION",
    "REFLECTIONS_COLLECTION",
    "VIBE_COLLECTION",
]
