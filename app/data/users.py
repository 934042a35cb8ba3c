from typing import Any, Dict, Optional
from uuid import uuid4

from .store import JsonCollectionStore

USERS_COLLECTION = "users"


class UserRepository:
    """Application users, keyed by their Spotify profile id."""

    def __init__(self, store: JsonCollectionStore):
        self.store = store

    def upsert_by_spotify_id(
        self,
        spotify_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> str:
        """
        Return the internal user id for a Spotify profile, creating it if needed.

        Calling this repeatedly for the same profile always yields the same id.
        """
        with self.store.lock:
            existing = self.store.select_one(
                USERS_COLLECTION, where={"spotify_id": spotify_id}
            )
            user_id = existing["user_id"] if existing else str(uuid4())

            self.store.upsert(
                USERS_COLLECTION,
                {
                    "spotify_id": spotify_id,
                    "user_id": user_id,
                    "email": email,
                    "display_name": display_name,
                },
                key="spotify_id",
            )
        return user_id

    def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.store.select_one(USERS_COLLECTION, where={"user_id": user_id})
