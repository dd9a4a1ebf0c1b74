"""Unit tests for tags module."""

import pytest

from soundtrack_downloader.models import AlbumRecord, TrackRecord
from soundtrack_downloader.tags import (
    OverwritePolicy,
    TagSet,
    album_tags,
    file_tags,
    infer_tags_from_filename,
)


def test_tag_set_is_case_insensitive():
    tags = TagSet({"artist": "A"})
    tags["Title"] = "T"

    assert tags["ARTIST"] == "A"
    assert "title" in tags
    assert set(tags) == {"ARTIST", "TITLE"}

    del tags["Artist"]
    assert "ARTIST" not in tags
    assert tags.pop("title") == "T"
    assert not tags


def test_tag_set_format_sorted():
    assert TagSet({"title": "T", "album": "A"}).format() == "ALBUM=A, TITLE=T"


def test_overwrite_policy():
    policy = OverwritePolicy(["genre", " "])
    assert policy.allows("GENRE")
    assert not policy.allows("ARTIST")
    assert not policy.allows_everything

    assert OverwritePolicy.everything().allows("anything")
    assert not OverwritePolicy().allows("GENRE")


def test_album_tags():
    album = AlbumRecord(
        source_url="https://example.com/",
        name="My Album",
        release_year="2002",
        developer="My Studio; Other Studio",
        publisher="My Publisher",
        catalog_number="ABC-123",
        album_type="Soundtrack",
    )

    assert dict(album_tags(album)) == {
        "ALBUM": "My Album",
        "DATE": "2002",
        "ARTIST": "My Studio; Other Studio",
        "ALBUMARTIST": "My Studio; Other Studio",
        "LABEL": "My Publisher",
        "CATALOGNUMBER": "ABC-123",
        "GENRE": "Soundtrack",
    }


def test_album_tags_publisher_stands_in_for_artist():
    album = AlbumRecord(source_url="", name="A", publisher="Pub")
    tags = album_tags(album)
    assert tags["ARTIST"] == "Pub"
    assert tags["ALBUMARTIST"] == "Pub"
    assert "DATE" not in tags


def test_file_tags_keyed_by_every_format():
    album = AlbumRecord(
        source_url="",
        name="A",
        tracks=[
            TrackRecord(
                name="Song 1",
                disc_number="1",
                track_number="01",
                download_urls_by_format={
                    "MP3": "https://download.com/01.%20song1.mp3",
                    "FLAC": "https://download.com/01.%20song1.flac",
                },
            ),
            TrackRecord(name="Never Fetched", track_number="02"),
        ],
    )

    tags = file_tags(album)
    assert set(tags) == {"01. song1.mp3", "01. song1.flac"}
    assert dict(tags["01. song1.flac"]) == {
        "TITLE": "Song 1",
        "DISCNUMBER": "1",
        "TRACKNUMBER": "01",
    }


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("1-01. Song Name.flac", {"DISCNUMBER": "1", "TRACKNUMBER": "01", "TITLE": "Song Name"}),
        ("07. Another.mp3", {"TRACKNUMBER": "07", "TITLE": "Another"}),
        ("02.Song.v2.ogg", {"TRACKNUMBER": "02", "TITLE": "Song.v2"}),
        ("random.mp3", {"TITLE": "random"}),
    ],
)
def test_infer_tags_from_filename(file_name, expected):
    assert dict(infer_tags_from_filename(file_name)) == expected
