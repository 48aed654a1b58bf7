"""
sync_manager.py — Additive merge of the local tree into the remote store.

Only presence is compared: a series, season or episode that exists locally
but not remotely is created, parent before child.  Nothing that already
exists remotely is touched, so running the merge again after a partial
failure only creates what is still missing.

The local tree is read-only here.  Identifiers minted during the merge are
returned in a SyncResult keyed by tree position.
"""

import logging
from dataclasses import dataclass, field

from models import Episode, NodeHandle, Season, Series, SeriesMap
from series_repository import RemoteSeriesRepository

log = logging.getLogger("catalog")

# (series,) | (series, season) | (series, season, episode)
NodeKey = tuple


class SynchronizationError(Exception):
    """Raised when a remote node exists but cannot be written under."""


@dataclass
class SyncResult:
    """Remote identifiers assigned to nodes created by one synchronize() pass."""
    created: dict[NodeKey, str] = field(default_factory=dict)

    @property
    def writes(self) -> int:
        return len(self.created)

    def series_id(self, series: str) -> str | None:
        return self.created.get((series,))

    def season_id(self, series: str, season: int) -> str | None:
        return self.created.get((series, season))

    def episode_id(self, series: str, season: int, episode: int) -> str | None:
        return self.created.get((series, season, episode))


class SeriesSynchronizationManager:
    def __init__(self, repository: RemoteSeriesRepository):
        self.repository = repository

    def synchronize(self, local: SeriesMap, remote: SeriesMap) -> SyncResult:
        """Create every local node that is missing from the remote tree.

        Creation errors propagate unchanged; nodes created before the error
        stay in the store.
        """
        result = SyncResult()

        for series_name, local_series in local.items():
            remote_series = remote.get(series_name)

            if remote_series is None:
                log.info(f"  Creating new series: {series_name}")
                handle = self.repository.create_series(series_name)
                result.created[(series_name,)] = handle.record_id
                for number, local_season in local_series.seasons.items():
                    self._create_season(series_name, number, local_season, handle, result)
            else:
                self._merge_series(local_series, remote_series, result)

        if result.writes:
            log.info(f"  Synchronization created {result.writes} node(s)")
        return result

    def _merge_series(self, local_series: Series, remote_series: Series,
                      result: SyncResult) -> None:
        for number, local_season in local_series.seasons.items():
            remote_season = remote_series.seasons.get(number)

            if remote_season is None:
                if remote_series.handle is None:
                    raise SynchronizationError(
                        f"Series \"{remote_series.name}\" has no storage handle"
                    )
                log.info(f"  Creating new season {number} for series {remote_series.name}")
                self._create_season(remote_series.name, number, local_season,
                                    remote_series.handle, result)
                continue

            for ep_number, local_episode in local_season.episodes.items():
                if ep_number in remote_season.episodes:
                    continue
                if remote_season.handle is None:
                    raise SynchronizationError(
                        f"Season \"{remote_season.name}\" has no storage handle"
                    )
                log.info(f"  Creating new episode {ep_number} for {remote_season.name}")
                self._create_episode(remote_series.name, number, ep_number,
                                     local_episode, remote_season.handle, result)

    def _create_season(self, series_name: str, number: int, local_season: Season,
                       parent: NodeHandle, result: SyncResult) -> None:
        handle = self.repository.create_season(parent, number, local_season.name)
        result.created[(series_name, number)] = handle.record_id

        for ep_number, local_episode in local_season.episodes.items():
            self._create_episode(series_name, number, ep_number,
                                 local_episode, handle, result)

    def _create_episode(self, series_name: str, season_number: int, number: int,
                        local_episode: Episode, parent: NodeHandle,
                        result: SyncResult) -> None:
        handle = self.repository.create_episode(parent, number, local_episode.name)
        result.created[(series_name, season_number, number)] = handle.record_id
