"""Album records built by the scraper and persisted as info.json."""

import json
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import SummaryParseFailure

SUMMARY_FILENAME = "info.json"


@dataclass
class ImageRef:
    """One image from the album gallery."""

    full_url: str
    """Target of the gallery anchor"""

    thumb_url: str = ""
    """Source of the nested thumbnail, empty if none"""

    def to_dict(self) -> dict:
        return {"ImageUrl": self.full_url, "ThumbUrl": self.thumb_url}

    @classmethod
    def from_dict(cls, data: dict) -> "ImageRef":
        return cls(full_url=data.get("ImageUrl", ""), thumb_url=data.get("ThumbUrl", ""))


@dataclass
class TrackRecord:
    """One row of the album track list."""

    name: str
    disc_number: str = ""
    """Empty when the album has no disc grouping"""

    track_number: str = ""
    detail_page_url: str = ""
    download_urls_by_format: Dict[str, str] = field(default_factory=dict)
    """Upper-cased format code -> download URL, filled in during acquisition"""

    def to_dict(self) -> dict:
        data = {"Name": self.name}
        if self.disc_number:
            data["DiscNumber"] = self.disc_number
        data["TrackNumber"] = self.track_number
        data["PageUrl"] = self.detail_page_url
        data["SongUrl"] = dict(self.download_urls_by_format)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TrackRecord":
        return cls(
            name=data.get("Name", ""),
            disc_number=data.get("DiscNumber", ""),
            track_number=data.get("TrackNumber", ""),
            detail_page_url=data.get("PageUrl", ""),
            download_urls_by_format=dict(data.get("SongUrl") or {}),
        )


@dataclass
class AlbumRecord:
    """Everything scraped from one album page.

    Multi-valued fields (platforms, developer, ...) are joined with ``; ``.
    """

    source_url: str
    name: str
    platforms: str = ""
    release_year: str = ""
    developer: str = ""
    publisher: str = ""
    catalog_number: str = ""
    album_type: str = ""
    images: List[ImageRef] = field(default_factory=list)
    tracks: List[TrackRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "Url": self.source_url,
            "Name": self.name,
            "Platforms": self.platforms,
            "Year": self.release_year,
            "Developer": self.developer,
            "Publisher": self.publisher,
            "CatalogNumber": self.catalog_number,
            "AlbumType": self.album_type,
            "Images": [image.to_dict() for image in self.images],
            "Tracks": [track.to_dict() for track in self.tracks],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AlbumRecord":
        return cls(
            source_url=data.get("Url", ""),
            name=data.get("Name", ""),
            platforms=data.get("Platforms", ""),
            release_year=data.get("Year", ""),
            developer=data.get("Developer", ""),
            publisher=data.get("Publisher", ""),
            catalog_number=data.get("CatalogNumber", ""),
            album_type=data.get("AlbumType", ""),
            images=[ImageRef.from_dict(i) for i in data.get("Images") or []],
            tracks=[TrackRecord.from_dict(t) for t in data.get("Tracks") or []],
        )


def dump_summary(album: AlbumRecord) -> str:
    """Serialize an album as indented JSON."""
    return json.dumps(album.to_dict(), indent=2, ensure_ascii=False) + "\n"


def load_summary(text: str) -> AlbumRecord:
    """Parse an info.json document.

    Raises:
        SummaryParseFailure: If the text is not a JSON object with an album name
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SummaryParseFailure(f"invalid summary JSON: {e}") from e

    if not isinstance(data, dict):
        raise SummaryParseFailure("summary must be a JSON object")

    try:
        album = AlbumRecord.from_dict(data)
    except (AttributeError, TypeError) as e:
        raise SummaryParseFailure(f"unexpected summary layout: {e}") from e

    if not album.name:
        raise SummaryParseFailure("summary has no album name")
    return album
