"""Resolution of AI-suggested (song, artist) pairs to Spotify track URIs.

Each pair is searched twice at most:
  1. a scoped query `track:<song> artist:<artist>`
  2. if that finds nothing, the bare song title

The first hit wins. The looser second query trades precision for recall:
generated titles and artist names rarely match the catalog exactly, and a
near match is better than a shorter playlist. A pair with no hit at all is
a normal outcome (None), not an error, and so is a search that fails for
a single track.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional, Sequence

from app.core import (
    ProviderNetworkError,
    ProviderTimeoutError,
    SpotifyApiError,
    TrackRequest,
    log_info,
    log_progress,
    log_warning,
)

from .session import CredentialedRequestRunner


class TrackResolver:
    def __init__(self, runner: CredentialedRequestRunner, max_workers: int = 8):
        self.runner = runner
        self.max_workers = max(1, max_workers)

    def _first_hit(self, query: str) -> Optional[Dict[str, Any]]:
        items = self.runner.call(lambda client: client.search_tracks(query, limit=1))
        return items[0] if items else None

    def find_track(self, song: str, artist: str) -> Optional[Dict[str, Any]]:
        """Scoped search only; returns the raw Spotify track object."""
        return self._first_hit(f"track:{song} artist:{artist}")

    def resolve(self, song: str, artist: str) -> Optional[str]:
        """
        URI of the best match, or None.

        A failed search (rate limit, 5xx, timeout, network) counts as a miss
        for this track only. Auth errors propagate once the runner has spent
        its refresh.
        """
        try:
            hit = self.find_track(song, artist)
            if hit is None:
                hit = self._first_hit(song)
        except (SpotifyApiError, ProviderTimeoutError, ProviderNetworkError) as e:
            log_warning(
                f"Search failed for '{song}' by {artist}; skipping it: {e}",
                user_id=self.runner.user_id,
            )
            return None

        if hit is None or not hit.get("uri"):
            log_info(f"No Spotify match for '{song}' by {artist}.")
            return None
        return hit["uri"]

    def resolve_all(self, tracks: Sequence[TrackRequest]) -> List[Optional[str]]:
        """
        Resolve every request concurrently.

        The result is index-aligned with `tracks` (None for misses), whatever
        order the searches complete in. An auth error aborts the batch.
        """
        total = len(tracks)
        results: List[Optional[str]] = [None] * total
        if total == 0:
            return results

        done = 0
        with ThreadPoolExecutor(max_workers=min(self.max_workers, total)) as executor:
            future_to_index = {
                executor.submit(self.resolve, t.song, t.artist): i
                for i, t in enumerate(tracks)
            }

            try:
                for future in as_completed(future_to_index):
                    results[future_to_index[future]] = future.result()
                    done += 1
                    log_progress(done, total, prefix="  Resolving tracks")
            except Exception:
                for pending in future_to_index:
                    pending.cancel()
                raise

        return results
