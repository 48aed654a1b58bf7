"""
formatting.py — Canonical season and episode names.

Names are never taken from the filesystem or the store: both sources derive
them from the series name and numeric position so the same node always
carries the same name.
"""


def season_name(series: str, season: int) -> str:
    """Format a season name: Show Name - Season N."""
    return f"{series} - Season {season}"


def episode_name(series: str, season: int, episode: int) -> str:
    """Format an episode name: Show Name SXXEXX."""
    return f"{series} S{season:02d}E{episode:02d}"
