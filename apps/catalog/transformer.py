"""
transformer.py — Internal tree → client tree.

Client nodes are built field by field, so a storage handle can never leak
out of the process.
"""

from models import (
    ClientEpisode,
    ClientSeason,
    ClientSeries,
    Episode,
    Season,
    Series,
)


def to_client_episodes(episodes: dict[int, Episode]) -> dict[int, ClientEpisode]:
    return {
        int(number): ClientEpisode(name=episode.name, id=episode.id)
        for number, episode in episodes.items()
    }


def to_client_seasons(seasons: dict[int, Season]) -> dict[int, ClientSeason]:
    return {
        int(number): ClientSeason(
            name=season.name,
            episodes=to_client_episodes(season.episodes),
            local_path=season.local_path,
            id=season.id,
        )
        for number, season in seasons.items()
    }


def to_client_series(series: Series) -> ClientSeries:
    return ClientSeries(
        name=series.name,
        seasons=to_client_seasons(series.seasons),
        id=series.id,
    )
