"""
constants.py — Shared configuration and constants for the series catalog.

All environment variables, paths, regex patterns, and constants that are
used across multiple modules are centralised here.
"""

import os
import re
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

SERIES_DIR = Path(os.environ.get("SERIES_DIR", "/media/series"))

# ---------------------------------------------------------------------------
# Environment-variable configuration
# ---------------------------------------------------------------------------

POCKETBASE_URL = os.environ.get("POCKETBASE_URL", "http://pocketbase:8090")
PB_WAIT_SECS = int(os.environ.get("PB_WAIT_SECS", "120"))

# How long a combined catalog stays fresh before the next read refreshes it
CACHE_TTL = int(os.environ.get("CACHE_TTL_SECS", str(30 * 60)))

API_PORT = int(os.environ.get("API_PORT", "8080"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Container format every episode should end up in
TARGET_FORMAT = os.environ.get("TARGET_FORMAT", ".mp4").lower()

# ---------------------------------------------------------------------------
# PocketBase collections
# ---------------------------------------------------------------------------

SERIES_COLLECTION = "series"
SEASONS_COLLECTION = "seasons"
EPISODES_COLLECTION = "episodes"

# ---------------------------------------------------------------------------
# Video extensions (used for episode discovery)
# ---------------------------------------------------------------------------

VIDEO_EXTENSIONS = {".mp4", ".mkv", ".avi", ".mov", ".wmv", ".m4v"}

# ---------------------------------------------------------------------------
# Compiled regex patterns
# ---------------------------------------------------------------------------

# Season directory detection (e.g. "Season 1", "S02", "Book 3")
SEASON_DIR_PATTERN = re.compile(r'[Ss](?:eason)?\s*(\d+)|(\d+)(?=\s*$)')

# Episode marker in a file name (e.g. "S01E05", "E12")
EPISODE_NUMBER_PATTERN = re.compile(r'[Ee](\d+)')
