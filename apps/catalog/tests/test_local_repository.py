import pytest

from diagnostics import INVALID_EPISODE, INVALID_SEASON, SCAN_ERROR, UNPARSABLE_EPISODE
from local_repository import parse_episode_number, parse_season_number


@pytest.mark.parametrize("folder, expected", [
    ("Season 1", 1),
    ("season 02", 2),
    ("S03", 3),
    ("Book 4", 4),
    ("Season 0", 0),
    ("Extras", None),
    ("Specials", None),
])
def test_parse_season_number(folder, expected):
    assert parse_season_number(folder) == expected


@pytest.mark.parametrize("name, expected", [
    ("Breaking Bad S01E05.mkv", 5),
    ("The Office S02E13.mp4", 13),
    ("E07.avi", 7),
    ("Show 1x04.mkv", 4),
])
def test_parse_episode_number(name, expected):
    assert parse_episode_number(name) == expected


def test_scan_builds_tree(library, local_repo):
    root = library({
        "Breaking Bad": {
            "Season 1": ["Breaking Bad S01E01.mp4", "Breaking Bad S01E02.mkv"],
            "Season 2": ["Breaking Bad S02E01.mp4"],
        },
        "Dark": {"S01": ["Dark S01E01.mp4"]},
    })

    tree, _ = local_repo.scan()

    assert sorted(tree) == ["Breaking Bad", "Dark"]
    bb = tree["Breaking Bad"]
    assert sorted(bb.seasons) == [1, 2]
    assert bb.seasons[1].name == "Breaking Bad - Season 1"
    assert bb.seasons[1].local_path == str(root / "Breaking Bad" / "Season 1")
    assert sorted(bb.seasons[1].episodes) == [1, 2]
    assert bb.seasons[1].episodes[2].name == "Breaking Bad S01E02"
    assert bb.id is None and bb.handle is None
    assert tree["Dark"].seasons[1].episodes[1].name == "Dark S01E01"


def test_scan_ignores_non_video_files(library, local_repo):
    library({"Dark": {"Season 1": ["Dark S01E01.mp4", "Dark S01E01.srt", "notes.nfo"]}})

    tree, candidates = local_repo.scan()

    assert list(tree["Dark"].seasons[1].episodes) == [1]
    assert candidates == []


def test_invalid_numbers_never_enter_tree(library, local_repo, diagnostics):
    library({
        "Dark": {
            "Season 0": ["Dark S00E01.mp4"],
            "Extras": ["Making of.mp4"],
            "Season 1": ["Dark S01E00.mp4", "Dark S01E01.mp4", "Trailer.mp4"],
        },
    })

    tree, _ = local_repo.scan()

    assert list(tree["Dark"].seasons) == [1]
    assert list(tree["Dark"].seasons[1].episodes) == [1]
    assert len(diagnostics.events(INVALID_SEASON)) == 2
    assert len(diagnostics.events(INVALID_EPISODE)) == 1
    assert [e.context["path"].endswith("Trailer.mp4")
            for e in diagnostics.events(UNPARSABLE_EPISODE)] == [True]


def test_conversion_candidates(library, local_repo):
    root = library({
        "Dark": {"Season 1": ["Dark S01E01.mp4", "Dark S01E02.MKV", "Dark S01E03.avi"]},
    })

    _, candidates = local_repo.scan()

    assert [(c.episode_number, c.original_format) for c in candidates] == [
        (2, ".mkv"), (3, ".avi"),
    ]
    first = candidates[0]
    assert first.series_name == "Dark"
    assert first.season_number == 1
    assert first.file_path == str(root / "Dark" / "Season 1" / "Dark S01E02.MKV")
    assert first.target_format == ".mp4"


def test_candidates_are_reset_each_scan(library, local_repo):
    root = library({"Dark": {"Season 1": ["Dark S01E02.mkv"]}})
    local_repo.scan()
    (root / "Dark" / "Season 1" / "Dark S01E02.mkv").unlink()

    _, candidates = local_repo.scan()

    assert candidates == []
    assert local_repo.conversion_candidates == []


def test_conversion_candidates_property_is_a_copy(library, local_repo):
    library({"Dark": {"Season 1": ["Dark S01E02.mkv"]}})
    local_repo.scan()

    local_repo.conversion_candidates.clear()

    assert len(local_repo.conversion_candidates) == 1


def test_missing_series_dir_degrades_to_empty(local_repo, diagnostics):
    tree, candidates = local_repo.scan()

    assert tree == {}
    assert candidates == []
    assert len(diagnostics.events(SCAN_ERROR)) == 1
