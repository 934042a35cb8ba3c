from datetime import timedelta
from typing import Optional

from app.core import Credential, log_info, mask_token, utc_now

from .store import JsonCollectionStore, parse_datetime

CREDENTIALS_COLLECTION = "credentials"


class TokenStore:
    """
    One Spotify credential per user, upserted by user_id.

    get() returns None only when no usable credential exists; a storage
    failure raises PersistenceError instead.
    """

    def __init__(self, store: JsonCollectionStore):
        self.store = store

    def get(self, user_id: str) -> Optional[Credential]:
        row = self.store.select_one(CREDENTIALS_COLLECTION, where={"user_id": user_id})
        if row is None or not row.get("access_token"):
            return None

        expires_at = parse_datetime(row.get("expires_at"))
        if expires_at is None:
            # No known expiry: treat as expired so the next call refreshes.
            expires_at = utc_now()

        return Credential(
            user_id=user_id,
            access_token=row["access_token"],
            refresh_token=row.get("refresh_token"),
            expires_at=expires_at,
        )

    def put(
        self,
        user_id: str,
        access_token: str,
        refresh_token: Optional[str],
        expires_in: int,
    ) -> Credential:
        expires_at = utc_now() + timedelta(seconds=int(expires_in))
        self.store.upsert(
            CREDENTIALS_COLLECTION,
            {
                "user_id": user_id,
                "access_token": access_token,
                "refresh_token": refresh_token,
                "expires_at": expires_at.isoformat(),
            },
        )
        log_info(
            f"Spotify tokens saved ({mask_token(access_token)}, "
            f"expires {expires_at:%H:%M:%S} UTC).",
            user_id=user_id,
        )
        return Credential(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    def clear(self, user_id: str) -> None:
        self.store.update(
            CREDENTIALS_COLLECTION,
            where={"user_id": user_id},
            changes={
                "access_token": None,
                "refresh_token": None,
                "expires_at": None,
            },
        )
        log_info("Spotify tokens cleared.", user_id=user_id)
