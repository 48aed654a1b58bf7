import re
from pathlib import Path

import pytest

from diagnostics import Diagnostics
from local_repository import LocalSeriesRepository
from pb_client import PocketBaseError
from series_repository import RemoteSeriesRepository

_FILTER = re.compile(r'(\w+) = "(.*)"')

CREATED_AT = "2024-05-01 12:00:00.000Z"


class FakePocketBase:
    """In-memory stand-in for PocketBaseClient."""

    def __init__(self):
        self.records: dict[str, list[dict]] = {"series": [], "seasons": [], "episodes": []}
        self.creates: list[tuple[str, dict]] = []
        self.reads = 0
        self.fail_reads = False
        self.fail_create_after: int | None = None
        self._next_id = 0

    def seed(self, collection: str, **data) -> str:
        """Insert a record directly, without counting it as a write."""
        self._next_id += 1
        record_id = data.pop("id", None) or f"{collection}-{self._next_id}"
        self.records[collection].append({"id": record_id, **data})
        return record_id

    def list_records(self, collection: str, filter_str: str = "") -> list[dict]:
        if self.fail_reads:
            raise PocketBaseError(f"GET {collection} failed: connection refused")
        self.reads += 1
        items = self.records.get(collection, [])
        if filter_str:
            field, value = _FILTER.fullmatch(filter_str).groups()
            items = [r for r in items if r.get(field) == value]
        return [dict(r) for r in items]

    def create_record(self, collection: str, data: dict) -> dict:
        if self.fail_create_after is not None and len(self.creates) >= self.fail_create_after:
            raise PocketBaseError(f"POST {collection} failed: 500 Server Error")
        self._next_id += 1
        record = {"id": f"{collection}-{self._next_id}", **data}
        self.records[collection].append(record)
        self.creates.append((collection, dict(data)))
        return dict(record)

    def health_check(self) -> bool:
        return not self.fail_reads


@pytest.fixture
def pb():
    return FakePocketBase()


@pytest.fixture
def diagnostics():
    return Diagnostics()


@pytest.fixture
def created_at():
    return CREATED_AT


@pytest.fixture
def remote_repo(pb, diagnostics):
    return RemoteSeriesRepository(pb, diagnostics, now=lambda: CREATED_AT)


@pytest.fixture
def library(tmp_path):
    """Build a series directory from {series: {season_dir: [file names]}}."""
    root = tmp_path / "series"
    root.mkdir()

    def build(layout: dict[str, dict[str, list[str]]]) -> Path:
        for series, seasons in layout.items():
            series_dir = root / series
            series_dir.mkdir(exist_ok=True)
            for season_dir, files in seasons.items():
                (series_dir / season_dir).mkdir(exist_ok=True)
                for name in files:
                    (series_dir / season_dir / name).write_bytes(b"")
        return root

    return build


@pytest.fixture
def local_repo(tmp_path, diagnostics):
    return LocalSeriesRepository(tmp_path / "series", ".mp4", diagnostics)
