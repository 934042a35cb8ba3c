"""JSON-backed collection store.

Each named collection (credentials, users, reflections, vibe_analysis) is a
single JSON file holding a list of row dicts. Reads and writes go through the
atomic helpers in app.core.fs_utils and are serialized by a process-wide lock,
so a read-modify-write such as an upsert cannot interleave with another one.

Unlike the cache helpers, a corrupt or unreadable file is a hard failure here:
callers must be able to tell "no row" apart from "could not read".
"""

from datetime import datetime, timezone
import os
import threading
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from app.core import PersistenceError, read_json, utc_now, write_json

_LOCK = threading.RLock()

Row = Dict[str, Any]


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO datetime string and normalize it to UTC-aware.

    A malformed value means the stored row is corrupt: PersistenceError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError as e:
            raise PersistenceError(f"Stored datetime {value!r} is not ISO-8601.") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _matches(row: Row, where: Optional[Mapping[str, Any]]) -> bool:
    if not where:
        return True
    return all(row.get(k) == v for k, v in where.items())


class JsonCollectionStore:
    """Generic select/insert/upsert/update over named JSON collections."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        # Reentrant: callers may hold it around several store calls
        self.lock = _LOCK

    def _path(self, collection: str) -> str:
        return os.path.join(self.data_dir, f"{collection}.json")

    def _load(self, collection: str) -> List[Row]:
        path = self._path(collection)

        def _on_error(e: Exception) -> None:
            raise PersistenceError(f"Collection {collection!r} is corrupted.") from e

        try:
            data = read_json(path, default=[], on_error=_on_error)
        except OSError as e:
            raise PersistenceError(f"Cannot read collection {collection!r}: {e}") from e

        if not isinstance(data, list):
            raise PersistenceError(f"Collection {collection!r} has invalid structure.")
        return [row for row in data if isinstance(row, dict)]

    def _save(self, collection: str, rows: List[Row]) -> None:
        try:
            write_json(self._path(collection), rows)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write collection {collection!r}: {e}") from e

    def select(
        self,
        collection: str,
        *,
        where: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        with _LOCK:
            rows = [dict(r) for r in self._load(collection) if _matches(r, where)]

        if order_by:
            floor = datetime.min.replace(tzinfo=timezone.utc)
            rows.sort(
                key=lambda r: parse_datetime(r.get(order_by)) or floor,
                reverse=descending,
            )
        if limit is not None:
            rows = rows[:limit]
        return rows

    def select_one(
        self,
        collection: str,
        *,
        where: Mapping[str, Any],
    ) -> Optional[Row]:
        rows = self.select(collection, where=where, limit=1)
        return rows[0] if rows else None

    def insert(self, collection: str, row: Mapping[str, Any]) -> Row:
        """Append a new row; assigns `id` and `created_at` when missing."""
        new_row = dict(row)
        new_row.setdefault("id", str(uuid4()))
        new_row.setdefault("created_at", utc_now().isoformat())

        with _LOCK:
            rows = self._load(collection)
            rows.append(new_row)
            self._save(collection, rows)
        return new_row

    def upsert(
        self,
        collection: str,
        row: Mapping[str, Any],
        *,
        key: str = "user_id",
    ) -> Row:
        """Insert or merge the row whose `key` column matches."""
        if row.get(key) is None:
            raise ValueError(f"Upsert into {collection!r} requires a {key!r} value.")

        with _LOCK:
            rows = self._load(collection)
            for existing in rows:
                if existing.get(key) == row[key]:
                    existing.update(row)
                    existing["updated_at"] = utc_now().isoformat()
                    merged = dict(existing)
                    break
            else:
                merged = dict(row)
                merged.setdefault("id", str(uuid4()))
                merged.setdefault("created_at", utc_now().isoformat())
                rows.append(merged)
            self._save(collection, rows)
        return merged

    def update(
        self,
        collection: str,
        *,
        where: Mapping[str, Any],
        changes: Mapping[str, Any],
    ) -> int:
        """Apply `changes` to every matching row; returns the match count."""
        with _LOCK:
            rows = self._load(collection)
            count = 0
            for existing in rows:
                if _matches(existing, where):
                    existing.update(changes)
                    existing["updated_at"] = utc_now().isoformat()
                    count += 1
            if count:
                self._save(collection, rows)
        return count
