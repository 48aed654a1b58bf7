"""
models.py — Series → Season → Episode tree and the values exchanged with clients.

Two shapes of the same tree exist:

  * Internal nodes (Series, Season, Episode) may carry a NodeHandle pointing
    at the record that stores them remotely.  Local-scan nodes never have one.
  * Client nodes (ClientSeries, ClientSeason, ClientEpisode) are what leaves
    the process.  They have no handle field at all.

Season and episode maps are keyed by number, so positions are unique by
construction.
"""

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Storage handle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeHandle:
    """Address of a record in the document store."""
    collection: str
    record_id: str


# ---------------------------------------------------------------------------
# Internal tree
# ---------------------------------------------------------------------------

@dataclass
class Episode:
    name: str
    id: str | None = None
    handle: NodeHandle | None = field(default=None, repr=False)


@dataclass
class Season:
    name: str
    episodes: dict[int, Episode] = field(default_factory=dict)
    local_path: str | None = None
    id: str | None = None
    handle: NodeHandle | None = field(default=None, repr=False)


@dataclass
class Series:
    name: str
    seasons: dict[int, Season] = field(default_factory=dict)
    id: str | None = None
    handle: NodeHandle | None = field(default=None, repr=False)


# Series keyed by name
SeriesMap = dict[str, Series]


# ---------------------------------------------------------------------------
# Client tree
# ---------------------------------------------------------------------------

@dataclass
class ClientEpisode:
    name: str
    id: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class ClientSeason:
    name: str
    episodes: dict[int, ClientEpisode] = field(default_factory=dict)
    local_path: str | None = None
    id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "localPath": self.local_path,
            "episodes": {
                str(num): ep.to_dict() for num, ep in self.episodes.items()
            },
        }


@dataclass
class ClientSeries:
    name: str
    seasons: dict[int, ClientSeason] = field(default_factory=dict)
    id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "seasons": {
                str(num): season.to_dict() for num, season in self.seasons.items()
            },
        }


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConversionCandidate:
    """A discovered episode file that is not in the target container format."""
    series_name: str
    season_number: int
    episode_number: int
    file_path: str
    original_format: str
    target_format: str

    def to_dict(self) -> dict:
        return {
            "seriesName": self.series_name,
            "seasonNumber": self.season_number,
            "episodeNumber": self.episode_number,
            "filePath": self.file_path,
            "originalFormat": self.original_format,
            "targetFormat": self.target_format,
        }


@dataclass
class ConversionResult:
    success: bool = False
    converted: int = 0
    failed: int = 0
    messages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "converted": self.converted,
            "failed": self.failed,
            "messages": list(self.messages),
        }
