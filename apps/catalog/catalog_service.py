"""
catalog_service.py — Combined series catalog served from a TTL cache.

Refresh cycle:
  1. Scan the local tree (also yields conversion candidates)
  2. Fetch the remote tree
  3. Create whatever the remote tree is missing (SeriesSynchronizationManager)
  4. Re-fetch the remote tree so new records come back with their ids
  5. Combine: remote series win, local-only series are added
  6. Strip storage handles for clients

If step 3 or 4 fails the pre-sync remote tree is combined instead.  If the
cycle fails outright, the last good catalog is served when there is one.

Refreshes are serialised.  A caller that queued behind a refresh which
succeeded gets that result instead of running another cycle.
"""

import logging
import threading
import time
from typing import Callable

from cache import TTLCache
from constants import CACHE_TTL
from diagnostics import Diagnostics
from local_repository import LocalSeriesRepository
from models import ClientSeries, ConversionCandidate, ConversionResult, SeriesMap
from series_repository import RemoteSeriesRepository
from sync_manager import SeriesSynchronizationManager
from transcoder import NoopTranscoder, TranscodeError, Transcoder
from transformer import to_client_series

log = logging.getLogger("catalog")


def combine_series(primary: SeriesMap, secondary: SeriesMap) -> SeriesMap:
    """Merge two series maps; on a name collision the primary entry is kept."""
    combined = dict(primary)
    for name, series in secondary.items():
        if name not in combined:
            combined[name] = series
    return combined


class CatalogService:
    def __init__(self,
                 local_repo: LocalSeriesRepository,
                 remote_repo: RemoteSeriesRepository,
                 sync_manager: SeriesSynchronizationManager | None = None,
                 transcoder: Transcoder | None = None,
                 cache_ttl: float = CACHE_TTL,
                 clock: Callable[[], float] = time.monotonic,
                 diagnostics: Diagnostics | None = None):
        self.local_repo = local_repo
        self.remote_repo = remote_repo
        self.sync_manager = sync_manager or SeriesSynchronizationManager(remote_repo)
        self.transcoder = transcoder or NoopTranscoder()
        self.cache = TTLCache(cache_ttl, clock=clock)
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

        self._refresh_lock = threading.Lock()
        self._scanned_candidates: list[ConversionCandidate] = []
        self._candidates: list[ConversionCandidate] = []

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def get_series(self, force_refresh: bool = False) -> list[ClientSeries]:
        """Return the combined catalog, refreshing when forced or expired."""
        if not force_refresh:
            cached = self.cache.get()
            if cached is not None:
                log.debug("Returning cached series data")
                return cached

        seen = self.cache.generation
        with self._refresh_lock:
            if self.cache.generation != seen:
                log.debug("Refresh completed while waiting, reusing its result")
                return self.cache.peek()

            try:
                series = self._refresh()
            except Exception as e:
                fallback = self.cache.peek()
                if fallback is None:
                    log.error(f"Error fetching series data: {e}")
                    raise
                log.error(f"Error fetching series data, falling back to cached data "
                          f"from {self.cache.age_seconds():.0f}s ago: {e}")
                return fallback

            self.cache.set(series)
            return series

    def get_series_by_id(self, series_id: str,
                         force_refresh: bool = False) -> ClientSeries | None:
        if force_refresh or self.cache.peek() is None:
            self.get_series(force_refresh)

        for series in self.cache.peek() or []:
            if series.id == series_id:
                return series
        return None

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def get_conversion_candidates(self) -> list[ConversionCandidate]:
        """Return the known candidates, rescanning once when there are none."""
        if not self._candidates:
            self.get_series(True)
            self._candidates = list(self._scanned_candidates)
        return list(self._candidates)

    def convert_episode(self, file_paths: list[str] | None = None) -> ConversionResult:
        """Convert all candidates, or only those whose path is in file_paths."""
        result = ConversionResult()
        candidates = self.get_conversion_candidates()

        if file_paths is None:
            to_convert = candidates
        else:
            wanted = set(file_paths)
            to_convert = [c for c in candidates if c.file_path in wanted]

        if not to_convert:
            result.success = True
            result.messages.append("No files to convert.")
            return result

        for candidate in to_convert:
            try:
                self.transcoder.convert(candidate)
                result.converted += 1
            except TranscodeError as e:
                result.failed += 1
                result.messages.append(f"Failed to convert {candidate.file_path}: {e}")

        if result.converted:
            # Files on disk changed, so the catalog and candidate list are out of date
            self.cache.invalidate()
            self._candidates = []

        result.success = result.failed == 0
        result.messages.append(f"Converted {result.converted} files.")
        return result

    # ------------------------------------------------------------------
    # Refresh cycle
    # ------------------------------------------------------------------

    def _refresh(self) -> list[ClientSeries]:
        log.info("Refreshing series catalog...")
        self.diagnostics.clear()

        local, candidates = self.local_repo.scan()
        self._scanned_candidates = candidates
        remote = self.remote_repo.fetch_all()
        log.info(f"  Local: {len(local)} series, remote: {len(remote)} series")

        try:
            self.sync_manager.synchronize(local, remote)
            primary = self.remote_repo.fetch_all()
        except Exception as e:
            log.error(f"Error synchronizing with the remote store: {e}")
            primary = remote

        combined = combine_series(primary, local)
        if len(self.diagnostics):
            log.info(f"  {len(self.diagnostics)} node(s) skipped, see diagnostics")
        log.info(f"Refresh complete. {len(combined)} series in catalog")
        return [to_client_series(series) for series in combined.values()]
