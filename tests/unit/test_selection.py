"""Unit tests for selection module."""

import pytest

from soundtrack_downloader.models import TrackRecord
from soundtrack_downloader.selection import (
    FormatRanking,
    TrackSelectionKey,
    TrackSelector,
    normalize_number,
    parse_format_ranking,
    parse_track_selector,
)


@pytest.mark.parametrize(
    "raw, expected",
    [("01", "1"), ("1", "1"), ("000", "0"), ("", ""), ("*", "*"), ("10", "10")],
)
def test_normalize_number(raw, expected):
    assert normalize_number(raw) == expected


def test_normalize_is_idempotent():
    key = TrackSelectionKey("01", "007")
    assert key.normalize() == TrackSelectionKey("1", "7")
    assert key.normalize().normalize() == key.normalize()


def test_selector_matches_leading_zeros():
    selector = parse_track_selector(["1-02"])
    assert selector.matches(TrackRecord("Song", disc_number="01", track_number="2"))
    assert not selector.matches(TrackRecord("Song", disc_number="1", track_number="3"))


def test_selector_wildcards():
    selector = parse_track_selector(["2-*", "*-5"])
    assert selector.matches(TrackRecord("a", disc_number="2", track_number="9"))
    assert selector.matches(TrackRecord("b", disc_number="1", track_number="05"))
    assert not selector.matches(TrackRecord("c", disc_number="1", track_number="4"))


def test_selector_without_disc():
    """A bare track number selects tracks of albums without discs."""
    selector = parse_track_selector(["3"])
    assert selector.matches(TrackRecord("a", track_number="03"))
    assert not selector.matches(TrackRecord("b", disc_number="1", track_number="3"))


def test_everything_and_empty_selector():
    record = TrackRecord("a", disc_number="4", track_number="4")
    assert TrackSelector.everything().matches(record)
    assert parse_track_selector(["*"]) == TrackSelector.everything()
    assert not TrackSelector().matches(record)
    assert len(TrackSelector()) == 0


def test_parse_track_selector_lists():
    selector = parse_track_selector(["1-1, 1-2", "2-01", ""])
    assert selector.keys == {
        TrackSelectionKey("1", "1"),
        TrackSelectionKey("1", "2"),
        TrackSelectionKey("2", "1"),
    }


def test_parse_track_selector_rejects_extra_dash():
    with pytest.raises(ValueError, match="1-2-3"):
        parse_track_selector(["1-2-3"])


def test_format_ranking_picks_first_preferred():
    downloads = {"MP3": "m", "FLAC": "f"}
    assert FormatRanking(["FLAC", "MP3"]).select_from(downloads) == ("f", True)
    assert FormatRanking(["ogg", "mp3"]).select_from(downloads) == ("m", True)


def test_format_ranking_wildcard_takes_first_available():
    assert FormatRanking(["OGG", "*"]).select_from({"MP3": "m", "FLAC": "f"}) == ("m", True)


def test_format_ranking_no_match():
    assert FormatRanking(["OGG"]).select_from({"MP3": "m"}) == (None, False)
    assert FormatRanking().select_from({}) == (None, False)


def test_default_format_ranking():
    assert FormatRanking().codes == ("FLAC", "MP3", "OGG", "*")


def test_parse_format_ranking():
    assert parse_format_ranking(["mp3, flac", "*"]) == FormatRanking(["MP3", "FLAC", "*"])


def test_wildcard_fallback_for_unlisted_format():
    ranking = FormatRanking(["FLAC", "MP3", "*"])
    assert ranking.select_from({"OGG": "u1"}) == ("u1", True)
    assert ranking.select_from({}) == (None, False)


def test_disc_wildcard_ignores_leading_zeros():
    selector = TrackSelector([TrackSelectionKey("1", "*")])
    assert selector.matches(TrackRecord("a", disc_number="01", track_number="12"))
    assert selector.matches(TrackRecord("b", disc_number="1", track_number="003"))
    assert not selector.matches(TrackRecord("c", disc_number="2", track_number="1"))
