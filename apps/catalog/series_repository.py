"""
series_repository.py — Series tree stored in PocketBase.

PocketBase has no nested collections, so the hierarchy is kept with
relation fields:

  series:    id, name, createdAt
  seasons:   id, series (relation), season, name, createdAt
  episodes:  id, season (relation), episode, name, createdAt

A NodeHandle addresses one record; children(handle) gives the collection of
records that belong to it.  Names are re-derived from the numeric position on
every read, whatever the stored name says.
"""

import datetime
import logging
from typing import Callable

from constants import EPISODES_COLLECTION, SEASONS_COLLECTION, SERIES_COLLECTION
from diagnostics import (
    DUPLICATE_NODE,
    INVALID_EPISODE,
    INVALID_SEASON,
    ORPHAN_NODE,
    UNNAMED_SERIES,
    Diagnostics,
)
from formatting import episode_name, season_name
from models import Episode, NodeHandle, Season, Series, SeriesMap
from pb_client import PocketBaseClient

log = logging.getLogger("catalog")

# parent collection → (child collection, relation field on the child)
_CHILDREN = {
    SERIES_COLLECTION: (SEASONS_COLLECTION, "series"),
    SEASONS_COLLECTION: (EPISODES_COLLECTION, "season"),
}


def _timestamp() -> str:
    """Current UTC time in PocketBase's datetime format."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%d %H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _position(value) -> int | None:
    """Return a stored season/episode number if it is a whole number >= 1."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 1:
        return value
    return None


class ChildCollection:
    """The records of one child collection that belong to a single parent."""

    def __init__(self, pb: PocketBaseClient, collection: str,
                 parent_field: str, parent_id: str):
        self._pb = pb
        self.collection = collection
        self.parent_field = parent_field
        self.parent_id = parent_id

    def add(self, data: dict) -> NodeHandle:
        record = self._pb.create_record(
            self.collection, {**data, self.parent_field: self.parent_id},
        )
        return NodeHandle(self.collection, record["id"])

    def list(self) -> list[dict]:
        return self._pb.list_records(
            self.collection,
            filter_str=f'{self.parent_field} = "{PocketBaseClient.escape(self.parent_id)}"',
        )


class RemoteSeriesRepository:
    """Reads the full series tree and creates individual nodes."""

    def __init__(self, pb: PocketBaseClient, diagnostics: Diagnostics | None = None,
                 now: Callable[[], str] = _timestamp):
        self._pb = pb
        self._now = now
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_series(self, name: str) -> NodeHandle:
        record = self._pb.create_record(
            SERIES_COLLECTION, {"name": name, "createdAt": self._now()},
        )
        return NodeHandle(SERIES_COLLECTION, record["id"])

    def create_season(self, parent: NodeHandle, number: int, name: str) -> NodeHandle:
        return self.children(parent).add(
            {"season": number, "name": name, "createdAt": self._now()},
        )

    def create_episode(self, parent: NodeHandle, number: int, name: str) -> NodeHandle:
        return self.children(parent).add(
            {"episode": number, "name": name, "createdAt": self._now()},
        )

    def children(self, handle: NodeHandle) -> ChildCollection:
        """Child-collection handle for a series (its seasons) or season (its episodes)."""
        if handle.collection not in _CHILDREN:
            raise ValueError(f"{handle.collection} records have no children")
        collection, parent_field = _CHILDREN[handle.collection]
        return ChildCollection(self._pb, collection, parent_field, handle.record_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_all(self) -> SeriesMap:
        """Read every series, season and episode record and assemble the tree.

        Records that cannot be placed are skipped and reported to diagnostics:
        series without a name, seasons/episodes with a missing or < 1 number,
        records whose parent does not exist, and a second record claiming an
        already-taken position.
        """
        series_records = self._pb.list_records(SERIES_COLLECTION)
        season_records = self._pb.list_records(SEASONS_COLLECTION)
        episode_records = self._pb.list_records(EPISODES_COLLECTION)

        tree: SeriesMap = {}
        series_by_id: dict[str, Series] = {}
        skipped: set[str] = set()

        for rec in series_records:
            name = rec.get("name")
            if not name:
                self.diagnostics.report(
                    UNNAMED_SERIES, "remote",
                    f"Series record {rec.get('id')} has no name. Skipping...",
                    record_id=rec.get("id"),
                )
                skipped.add(rec.get("id"))
                continue
            if name in tree:
                self.diagnostics.report(
                    DUPLICATE_NODE, "remote",
                    f"Duplicate series record {rec.get('id')} for \"{name}\". Skipping...",
                    record_id=rec.get("id"), series=name,
                )
                skipped.add(rec.get("id"))
                continue
            series = Series(
                name=name, id=rec["id"],
                handle=NodeHandle(SERIES_COLLECTION, rec["id"]),
            )
            tree[name] = series
            series_by_id[rec["id"]] = series

        seasons_by_id: dict[str, tuple[Series, int]] = {}
        for rec in season_records:
            parent_id = rec.get("series")
            if parent_id in skipped:
                skipped.add(rec.get("id"))
                continue
            series = series_by_id.get(parent_id)
            if series is None:
                self.diagnostics.report(
                    ORPHAN_NODE, "remote",
                    f"Season record {rec.get('id')} points at missing series {parent_id}",
                    record_id=rec.get("id"),
                )
                skipped.add(rec.get("id"))
                continue
            number = _position(rec.get("season"))
            if number is None:
                self.diagnostics.report(
                    INVALID_SEASON, "remote",
                    f"Skipping season with invalid season number in series \"{series.name}\"",
                    record_id=rec.get("id"), series=series.name, value=rec.get("season"),
                )
                skipped.add(rec.get("id"))
                continue
            if number in series.seasons:
                self.diagnostics.report(
                    DUPLICATE_NODE, "remote",
                    f"Duplicate season {number} record {rec.get('id')} "
                    f"in series \"{series.name}\". Skipping...",
                    record_id=rec.get("id"), series=series.name, season=number,
                )
                skipped.add(rec.get("id"))
                continue
            series.seasons[number] = Season(
                name=season_name(series.name, number), id=rec["id"],
                handle=NodeHandle(SEASONS_COLLECTION, rec["id"]),
            )
            seasons_by_id[rec["id"]] = (series, number)

        for rec in episode_records:
            parent_id = rec.get("season")
            if parent_id in skipped:
                continue
            if parent_id not in seasons_by_id:
                self.diagnostics.report(
                    ORPHAN_NODE, "remote",
                    f"Episode record {rec.get('id')} points at missing season {parent_id}",
                    record_id=rec.get("id"),
                )
                continue
            series, season_number = seasons_by_id[parent_id]
            season = series.seasons[season_number]
            number = _position(rec.get("episode"))
            if number is None:
                self.diagnostics.report(
                    INVALID_EPISODE, "remote",
                    f"Skipping episode with invalid episode number in "
                    f"season {season_number} of series \"{series.name}\"",
                    record_id=rec.get("id"), series=series.name,
                    season=season_number, value=rec.get("episode"),
                )
                continue
            if number in season.episodes:
                self.diagnostics.report(
                    DUPLICATE_NODE, "remote",
                    f"Duplicate episode {number} record {rec.get('id')} in "
                    f"season {season_number} of series \"{series.name}\". Skipping...",
                    record_id=rec.get("id"), series=series.name,
                    season=season_number, episode=number,
                )
                continue
            season.episodes[number] = Episode(
                name=episode_name(series.name, season_number, number), id=rec["id"],
                handle=NodeHandle(EPISODES_COLLECTION, rec["id"]),
            )

        log.debug(f"Remote catalog: {len(tree)} series")
        return tree
