import re

import pytest

from diagnostics import (
    DUPLICATE_NODE,
    INVALID_EPISODE,
    INVALID_SEASON,
    ORPHAN_NODE,
    UNNAMED_SERIES,
    Diagnostics,
)
from models import NodeHandle
from pb_client import PocketBaseError
from series_repository import RemoteSeriesRepository


def seed_dark(pb):
    series = pb.seed("series", id="ser1", name="Dark")
    season = pb.seed("seasons", id="sea1", series=series, season=1, name="whatever")
    pb.seed("episodes", id="ep1", season=season, episode=1, name="stale name")
    pb.seed("episodes", id="ep2", season=season, episode=2, name="Dark S01E02")
    return series, season


def test_fetch_all_assembles_tree(pb, remote_repo):
    seed_dark(pb)

    tree = remote_repo.fetch_all()

    dark = tree["Dark"]
    assert dark.id == "ser1"
    assert dark.handle == NodeHandle("series", "ser1")
    season = dark.seasons[1]
    assert season.id == "sea1"
    assert season.handle == NodeHandle("seasons", "sea1")
    assert sorted(season.episodes) == [1, 2]
    assert season.episodes[2].handle == NodeHandle("episodes", "ep2")


def test_names_are_derived_not_stored(pb, remote_repo):
    seed_dark(pb)

    tree = remote_repo.fetch_all()

    assert tree["Dark"].seasons[1].name == "Dark - Season 1"
    assert tree["Dark"].seasons[1].episodes[1].name == "Dark S01E01"


@pytest.mark.parametrize("bad", [0, -1, None, "2", True, 1.5])
def test_invalid_season_numbers_are_skipped(pb, remote_repo, diagnostics, bad):
    series = pb.seed("series", name="Dark")
    season = pb.seed("seasons", series=series, season=bad)
    pb.seed("episodes", season=season, episode=1)

    tree = remote_repo.fetch_all()

    assert tree["Dark"].seasons == {}
    assert len(diagnostics.events(INVALID_SEASON)) == 1
    # episodes under a skipped season are dropped quietly
    assert diagnostics.events(ORPHAN_NODE) == []


def test_whole_float_numbers_are_accepted(pb, remote_repo):
    series = pb.seed("series", name="Dark")
    season = pb.seed("seasons", series=series, season=2.0)
    pb.seed("episodes", season=season, episode=3.0)

    tree = remote_repo.fetch_all()

    assert list(tree["Dark"].seasons) == [2]
    assert list(tree["Dark"].seasons[2].episodes) == [3]


def test_invalid_episode_numbers_are_skipped(pb, remote_repo, diagnostics):
    series = pb.seed("series", name="Dark")
    season = pb.seed("seasons", series=series, season=1)
    pb.seed("episodes", season=season, episode=0)
    pb.seed("episodes", season=season, episode=None)
    pb.seed("episodes", season=season, episode=4)

    tree = remote_repo.fetch_all()

    assert list(tree["Dark"].seasons[1].episodes) == [4]
    assert len(diagnostics.events(INVALID_EPISODE)) == 2


def test_unnamed_series_and_its_children_are_skipped(pb, remote_repo, diagnostics):
    series = pb.seed("series", name="")
    season = pb.seed("seasons", series=series, season=1)
    pb.seed("episodes", season=season, episode=1)

    tree = remote_repo.fetch_all()

    assert tree == {}
    assert len(diagnostics.events(UNNAMED_SERIES)) == 1
    assert diagnostics.events(ORPHAN_NODE) == []


def test_orphans_and_duplicates_are_reported(pb, remote_repo, diagnostics):
    series = pb.seed("series", name="Dark")
    first = pb.seed("seasons", series=series, season=1)
    pb.seed("seasons", series=series, season=1)
    pb.seed("seasons", series="gone", season=2)
    pb.seed("episodes", season="gone-too", episode=1)

    tree = remote_repo.fetch_all()

    assert tree["Dark"].seasons[1].id == first
    assert len(diagnostics.events(DUPLICATE_NODE)) == 1
    assert len(diagnostics.events(ORPHAN_NODE)) == 2


def test_create_nodes_link_to_parent(pb, remote_repo, created_at):
    series = remote_repo.create_series("Dark")
    season = remote_repo.create_season(series, 1, "Dark - Season 1")
    episode = remote_repo.create_episode(season, 1, "Dark S01E01")

    assert series.collection == "series"
    assert pb.creates == [
        ("series", {"name": "Dark", "createdAt": created_at}),
        ("seasons", {"season": 1, "name": "Dark - Season 1", "createdAt": created_at,
                     "series": series.record_id}),
        ("episodes", {"episode": 1, "name": "Dark S01E01", "createdAt": created_at,
                      "season": season.record_id}),
    ]
    assert remote_repo.fetch_all()["Dark"].seasons[1].episodes[1].id == episode.record_id


def test_children_lists_only_that_parent(pb, remote_repo):
    dark = remote_repo.create_series("Dark")
    other = remote_repo.create_series("Other")
    remote_repo.create_season(dark, 1, "Dark - Season 1")
    remote_repo.create_season(other, 1, "Other - Season 1")

    records = remote_repo.children(dark).list()

    assert [r["series"] for r in records] == [dark.record_id]


def test_episodes_have_no_children(remote_repo):
    with pytest.raises(ValueError):
        remote_repo.children(NodeHandle("episodes", "ep1"))


def test_store_errors_propagate(pb, remote_repo):
    pb.fail_reads = True
    with pytest.raises(PocketBaseError):
        remote_repo.fetch_all()

    pb.fail_reads = False
    pb.fail_create_after = 0
    with pytest.raises(PocketBaseError):
        remote_repo.create_series("Dark")


def test_created_records_are_stamped_in_utc(pb):
    repo = RemoteSeriesRepository(pb)

    repo.create_series("Dark")

    [(_, data)] = pb.creates
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}Z", data["createdAt"])


def test_empty_diagnostics_channel_is_kept(pb):
    diagnostics = Diagnostics()

    repo = RemoteSeriesRepository(pb, diagnostics)

    assert repo.diagnostics is diagnostics
