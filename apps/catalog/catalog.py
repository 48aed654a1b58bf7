#!/usr/bin/env python3
"""
Series Catalog — keeps PocketBase in step with the local series directory.

The local directory and PocketBase disagree about what exists.  The catalog
merges the two without ever deleting or overwriting: anything found on disk
but missing from PocketBase is created there, and clients are served the
combined view (PocketBase wins for series known to both).

Schema (PocketBase):
  series:    id, name, createdAt
  seasons:   id, series (relation), season, name, createdAt
  episodes:  id, season (relation), episode, name, createdAt

Environment variables:
  SERIES_DIR      — local series root (default: /media/series)
  POCKETBASE_URL  — PocketBase API URL (default: http://pocketbase:8090)
  PB_WAIT_SECS    — how long to wait for PocketBase on startup (default: 120)
  CACHE_TTL_SECS  — catalog cache lifetime (default: 1800)
  API_PORT        — HTTP API port (default: 8080)
  TARGET_FORMAT   — container every episode should use (default: .mp4)
  LOG_LEVEL       — logging level (default: INFO)
"""

import logging
import threading
import time

from api import start_server
from catalog_service import CatalogService
from constants import (
    API_PORT,
    CACHE_TTL,
    LOG_LEVEL,
    PB_WAIT_SECS,
    POCKETBASE_URL,
    SERIES_DIR,
    TARGET_FORMAT,
)
from diagnostics import Diagnostics
from local_repository import LocalSeriesRepository
from pb_client import PocketBaseClient
from series_repository import RemoteSeriesRepository

log = logging.getLogger("catalog")


def build_service(pb: PocketBaseClient) -> CatalogService:
    """Wire the catalog service with one diagnostics channel for both sources."""
    diagnostics = Diagnostics()
    return CatalogService(
        local_repo=LocalSeriesRepository(SERIES_DIR, TARGET_FORMAT, diagnostics),
        remote_repo=RemoteSeriesRepository(pb, diagnostics),
        cache_ttl=CACHE_TTL,
        diagnostics=diagnostics,
    )


def wait_for_pocketbase(pb: PocketBaseClient, timeout: int = PB_WAIT_SECS) -> bool:
    """Wait for PocketBase to become available."""
    log.info(f"Waiting for PocketBase at {POCKETBASE_URL}...")
    deadline = time.monotonic() + timeout
    while True:
        if pb.health_check():
            log.info("PocketBase is ready")
            return True
        if time.monotonic() >= deadline:
            break
        time.sleep(2)
    log.warning(f"PocketBase not available after {timeout}s, starting anyway")
    return False


def main():
    """Entry point — warm the cache and serve the API."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    log.info("=" * 60)
    log.info("Series Catalog starting")
    log.info(f"  Series dir:     {SERIES_DIR}")
    log.info(f"  PocketBase:     {POCKETBASE_URL}")
    log.info(f"  Cache TTL:      {CACHE_TTL}s")
    log.info(f"  Target format:  {TARGET_FORMAT}")
    log.info(f"  API port:       {API_PORT}")
    log.info("=" * 60)

    if not SERIES_DIR.exists():
        log.warning(f"Series directory not found at {SERIES_DIR}")

    pb = PocketBaseClient(POCKETBASE_URL)
    service = build_service(pb)

    wait_for_pocketbase(pb)

    try:
        service.get_series(True)
    except Exception as e:
        log.error(f"Initial refresh failed: {e}", exc_info=True)

    server = start_server(service, API_PORT)
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        log.info("Shutting down")
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
