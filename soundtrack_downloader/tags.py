"""Tag sets and the tag sources used during reconciliation."""

import re
from collections import UserDict
from pathlib import PurePath
from typing import Dict, Iterable, Mapping

from .models import AlbumRecord
from .urls import download_file_name

ALBUM = "ALBUM"
ALBUMARTIST = "ALBUMARTIST"
ARTIST = "ARTIST"
CATALOGNUMBER = "CATALOGNUMBER"
DATE = "DATE"
DISCNUMBER = "DISCNUMBER"
GENRE = "GENRE"
LABEL = "LABEL"
TITLE = "TITLE"
TRACKNUMBER = "TRACKNUMBER"

OVERWRITE_ALL = "*"

# "1-01. Track Name.flac"
DISC_TRACK_NAME_PATTERN = re.compile(r"^(\d+)-(\d+)\.\s*(.+)\.([^.]+)$")
# "01. Track Name.flac"
TRACK_NAME_PATTERN = re.compile(r"^(\d+)\.\s*(.+)\.([^.]+)$")


def canonical_key(key: str) -> str:
    return key.strip().upper()


class TagSet(UserDict):
    """Tag key -> single value; keys are case-insensitive (stored upper-case)."""

    def __setitem__(self, key: str, value: str):
        super().__setitem__(canonical_key(key), value)

    def __getitem__(self, key: str) -> str:
        return super().__getitem__(canonical_key(key))

    def __delitem__(self, key: str):
        super().__delitem__(canonical_key(key))

    def __contains__(self, key) -> bool:
        return isinstance(key, str) and canonical_key(key) in self.data

    def pop(self, key: str, *default):
        return self.data.pop(canonical_key(key), *default)

    def format(self) -> str:
        """``KEY=value`` pairs in key order, for log messages."""
        return ", ".join(f"{key}={value}" for key, value in sorted(self.data.items()))


class OverwritePolicy:
    """Existing tag keys that reconciliation may replace."""

    def __init__(self, keys: Iterable[str] = ()):
        self.keys = frozenset(canonical_key(key) for key in keys if key.strip())

    @classmethod
    def everything(cls) -> "OverwritePolicy":
        return cls([OVERWRITE_ALL])

    @property
    def allows_everything(self) -> bool:
        return OVERWRITE_ALL in self.keys

    def allows(self, key: str) -> bool:
        return self.allows_everything or canonical_key(key) in self.keys

    def __repr__(self) -> str:
        return f"OverwritePolicy({', '.join(sorted(self.keys))})"


def album_tags(album: AlbumRecord) -> TagSet:
    """Album-wide tags derived from a scraped album.

    The developer doubles as artist and album artist; the publisher is the
    label and stands in for the artist when no developer is known.
    """
    tags = TagSet()
    if album.name:
        tags[ALBUM] = album.name
    if album.release_year:
        tags[DATE] = album.release_year
    if album.developer:
        tags[ARTIST] = album.developer
        tags[ALBUMARTIST] = album.developer
    if album.publisher:
        tags[LABEL] = album.publisher
        if not album.developer:
            tags[ARTIST] = album.publisher
            tags[ALBUMARTIST] = album.publisher
    if album.catalog_number:
        tags[CATALOGNUMBER] = album.catalog_number
    if album.album_type:
        tags[GENRE] = album.album_type
    return tags


def file_tags(album: AlbumRecord) -> Dict[str, TagSet]:
    """Per-file title and numbering, keyed by downloaded file name.

    A track offered in several formats yields one entry per format URL.
    """
    result = {}
    for track in album.tracks:
        tags = TagSet()
        if track.name:
            tags[TITLE] = track.name
        if track.disc_number:
            tags[DISCNUMBER] = track.disc_number
        if track.track_number:
            tags[TRACKNUMBER] = track.track_number
        for url in track.download_urls_by_format.values():
            name = download_file_name(url)
            if name:
                result[name] = TagSet(tags)
    return result


def infer_tags_from_filename(file_name: str) -> TagSet:
    """Guess disc, track and title from names like ``1-01. Title.flac``."""
    tags = TagSet()
    match = DISC_TRACK_NAME_PATTERN.match(file_name)
    if match:
        tags[DISCNUMBER] = match.group(1)
        tags[TRACKNUMBER] = match.group(2)
        tags[TITLE] = match.group(3)
        return tags

    match = TRACK_NAME_PATTERN.match(file_name)
    if match:
        tags[TRACKNUMBER] = match.group(1)
        tags[TITLE] = match.group(2)
        return tags

    tags[TITLE] = PurePath(file_name).stem
    return tags


def to_tag_set(tags: Mapping[str, str]) -> TagSet:
    return tags if isinstance(tags, TagSet) else TagSet(tags)
