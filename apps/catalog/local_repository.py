"""
local_repository.py — Series tree scanned from the local media directory.

Expected layout:

  SERIES_DIR/
    <Series Name>/
      Season 1/           (also "S01", "Book 1", ...)
        <file>.S01E01.mkv

Every scan builds a fresh tree and a fresh list of conversion candidates
(episode files not already in TARGET_FORMAT).  Unreadable directories and
unparsable names are reported to diagnostics and skipped, never raised.
"""

import logging
from pathlib import Path

from guessit import guessit

from constants import (
    EPISODE_NUMBER_PATTERN,
    SEASON_DIR_PATTERN,
    SERIES_DIR,
    TARGET_FORMAT,
    VIDEO_EXTENSIONS,
)
from diagnostics import (
    DUPLICATE_NODE,
    INVALID_EPISODE,
    INVALID_SEASON,
    SCAN_ERROR,
    UNPARSABLE_EPISODE,
    Diagnostics,
)
from formatting import episode_name, season_name
from models import ConversionCandidate, Episode, Season, Series, SeriesMap

log = logging.getLogger("catalog")


def parse_season_number(folder_name: str) -> int | None:
    """Extract the season number from a season directory name."""
    m = SEASON_DIR_PATTERN.search(folder_name)
    if not m:
        return None
    return int(m.group(1) or m.group(2))


def parse_episode_number(file_name: str) -> int | None:
    """Extract the episode number from an episode file name.

    The explicit E<n> marker wins; guessit is only asked when there is none
    (e.g. "Episode 4.mkv", "1x04.mkv").
    """
    stem = Path(file_name).stem
    m = EPISODE_NUMBER_PATTERN.search(stem)
    if m:
        return int(m.group(1))
    episode = guessit(file_name, {"type": "episode"}).get("episode")
    if isinstance(episode, list):
        episode = episode[0] if episode else None
    return episode if isinstance(episode, int) else None


class LocalSeriesRepository:
    """Scans SERIES_DIR into a series tree plus conversion candidates."""

    def __init__(self, series_dir: Path = SERIES_DIR,
                 target_format: str = TARGET_FORMAT,
                 diagnostics: Diagnostics | None = None):
        self.series_dir = Path(series_dir)
        self.target_format = target_format.lower()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._conversion_candidates: list[ConversionCandidate] = []

    @property
    def conversion_candidates(self) -> list[ConversionCandidate]:
        """Candidates found by the most recent scan."""
        return list(self._conversion_candidates)

    def scan(self) -> tuple[SeriesMap, list[ConversionCandidate]]:
        self._conversion_candidates = []
        tree: SeriesMap = {}

        for series_dir in self._list_dirs(self.series_dir):
            series = Series(name=series_dir.name)
            tree[series.name] = series
            self._populate_seasons(series, series_dir)

        log.debug(f"Local catalog: {len(tree)} series, "
                  f"{len(self._conversion_candidates)} conversion candidate(s)")
        return tree, self.conversion_candidates

    # ------------------------------------------------------------------
    # Tree building
    # ------------------------------------------------------------------

    def _populate_seasons(self, series: Series, series_dir: Path) -> None:
        for season_dir in self._list_dirs(series_dir):
            number = parse_season_number(season_dir.name)
            if number is None or number < 1:
                self.diagnostics.report(
                    INVALID_SEASON, "local",
                    f"Skipping folder without a valid season number: {season_dir}",
                    series=series.name, path=str(season_dir), value=number,
                )
                continue
            if number in series.seasons:
                self.diagnostics.report(
                    DUPLICATE_NODE, "local",
                    f"Season {number} of \"{series.name}\" already taken, skipping {season_dir}",
                    series=series.name, season=number, path=str(season_dir),
                )
                continue

            series.seasons[number] = Season(
                name=season_name(series.name, number),
                local_path=str(season_dir),
            )
            self._populate_episodes(series, number, season_dir)

    def _populate_episodes(self, series: Series, season_number: int,
                           season_dir: Path) -> None:
        season = series.seasons[season_number]

        for video in self._list_videos(season_dir):
            number = parse_episode_number(video.name)
            if number is None:
                self.diagnostics.report(
                    UNPARSABLE_EPISODE, "local",
                    f"Skipping (no episode detected): {video}",
                    series=series.name, season=season_number, path=str(video),
                )
                continue
            if number < 1:
                self.diagnostics.report(
                    INVALID_EPISODE, "local",
                    f"Skipping episode with invalid episode number {number}: {video}",
                    series=series.name, season=season_number, path=str(video), value=number,
                )
                continue

            if number in season.episodes:
                self.diagnostics.report(
                    DUPLICATE_NODE, "local",
                    f"Episode {number} of \"{season.name}\" already taken by another file: {video}",
                    series=series.name, season=season_number, episode=number, path=str(video),
                )
            else:
                season.episodes[number] = Episode(
                    name=episode_name(series.name, season_number, number),
                )

            extension = video.suffix.lower()
            if extension != self.target_format:
                self._conversion_candidates.append(ConversionCandidate(
                    series_name=series.name,
                    season_number=season_number,
                    episode_number=number,
                    file_path=str(video),
                    original_format=extension,
                    target_format=self.target_format,
                ))

    # ------------------------------------------------------------------
    # Directory helpers
    # ------------------------------------------------------------------

    def _list_dirs(self, directory: Path) -> list[Path]:
        try:
            return sorted(p for p in directory.iterdir() if p.is_dir())
        except OSError as e:
            self.diagnostics.report(
                SCAN_ERROR, "local", f"Error reading directories in {directory}: {e}",
                path=str(directory),
            )
            return []

    def _list_videos(self, directory: Path) -> list[Path]:
        try:
            return sorted(
                p for p in directory.iterdir()
                if p.is_file() and p.suffix.lower() in VIDEO_EXTENSIONS
            )
        except OSError as e:
            self.diagnostics.report(
                SCAN_ERROR, "local", f"Error reading media files in {directory}: {e}",
                path=str(directory),
            )
            return []
