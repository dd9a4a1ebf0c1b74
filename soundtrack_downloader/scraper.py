"""Album and track page scraping.

The catalog pages have a fixed shape: everything of interest lives under
``#pageContent``; the album title is its first ``h2``, a description paragraph
carries ``Label: value`` lines, the gallery is a set of ``.albumImage`` anchors
and the track list is ``table#songlist``.
"""

import re
from typing import Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from .errors import AlbumNameNotFound, NoDownloadLinkFound
from .models import AlbumRecord, ImageRef, TrackRecord
from .urls import resolve_link

HTML_PARSER = "html.parser"

PLATFORMS_PATTERN = re.compile(r"Platforms:[ \t]*(.*?)[ \t\r]*$", re.MULTILINE)
YEAR_PATTERN = re.compile(r"Year:[ \t]*(\d+)")
DEVELOPER_PATTERN = re.compile(r"Developed by:[ \t]*(.*?)[ \t\r]*$", re.MULTILINE)
PUBLISHER_PATTERN = re.compile(r"Published by:[ \t]*(.*?)[ \t\r]*$", re.MULTILINE)
CATALOG_NUMBER_PATTERN = re.compile(r"Catalog Number:[ \t]*(.*?)[ \t\r]*$", re.MULTILINE)
ALBUM_TYPE_PATTERN = re.compile(r"Album type:[ \t]*(.*?)[ \t\r]*$", re.MULTILINE)

DESCRIPTION_LABELS = (
    "Platforms:",
    "Year:",
    "Developed by:",
    "Published by:",
    "Catalog Number:",
    "Album type:",
)

DOWNLOAD_LABEL_PATTERN = re.compile(r"Click here to download as\s+(\w+)")

# Header captions of the track table
DISC_HEADER = "CD"
TRACK_HEADER = "#"
TITLE_HEADER = "Song Name"

MISSING_VALUE = "N/A"
SOURCE_SEPARATOR = ", "
DISPLAY_SEPARATOR = "; "


def _make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, HTML_PARSER)


def _extract(pattern: re.Pattern, text: str, multi_valued: bool = True) -> str:
    """Pull one labelled value out of the description text."""
    match = pattern.search(text)
    if not match:
        return ""
    value = match.group(1).strip()
    if value == MISSING_VALUE:
        return ""
    if multi_valued:
        value = value.replace(SOURCE_SEPARATOR, DISPLAY_SEPARATOR)
    return value


def _description_text(content: Tag) -> str:
    """Text of the first paragraph carrying album details, one label per line."""
    for paragraph in content.find_all("p"):
        for br in paragraph.find_all("br"):
            br.replace_with("\n")
        text = paragraph.get_text()
        if any(label in text for label in DESCRIPTION_LABELS):
            return text
    return ""


def _parse_description(album: AlbumRecord, text: str):
    album.platforms = _extract(PLATFORMS_PATTERN, text)
    album.release_year = _extract(YEAR_PATTERN, text, multi_valued=False)
    album.developer = _extract(DEVELOPER_PATTERN, text)
    album.publisher = _extract(PUBLISHER_PATTERN, text)
    album.catalog_number = _extract(CATALOG_NUMBER_PATTERN, text)
    album.album_type = _extract(ALBUM_TYPE_PATTERN, text)
    # The catalog labels in-game rips "Gamerip"; tag them as regular soundtracks
    if album.album_type == "Gamerip":
        album.album_type = "Soundtrack"


def _parse_images(content: Tag, page_url: str) -> List[ImageRef]:
    images = []
    for anchor in content.select(".albumImage a[href]"):
        thumb = anchor.find("img", src=True)
        images.append(
            ImageRef(
                full_url=resolve_link(page_url, anchor["href"]),
                thumb_url=resolve_link(page_url, thumb["src"]) if thumb else "",
            )
        )
    return images


def _find_header_row(rows: List[Tag]) -> Optional[Tag]:
    for row in rows:
        if row.get("id") == "songlist_header" or row.find("th"):
            return row
    return None


def _locate_columns(header: Optional[Tag]) -> Dict[str, int]:
    """Map column role -> index from the header captions."""
    columns = {}
    if header is None:
        return columns

    roles = {DISC_HEADER: "disc", TRACK_HEADER: "track", TITLE_HEADER: "title"}
    for index, cell in enumerate(header.find_all(["th", "td"])):
        caption = cell.get_text().strip()
        role = roles.get(caption)
        if role and role not in columns:
            columns[role] = index
    return columns


def _cell_text(cells: List[Tag], index: Optional[int]) -> str:
    if index is None or index >= len(cells):
        return ""
    return cells[index].get_text().strip()


def _parse_tracks(content: Tag, page_url: str) -> List[TrackRecord]:
    table = content.find("table", id="songlist")
    if table is None:
        return []

    rows = table.find_all("tr")
    header = _find_header_row(rows)
    columns = _locate_columns(header)

    tracks = []
    for row in rows:
        if row is header or row.get("id") == "songlist_footer":
            continue

        anchor = row.find("a", href=True)
        if anchor is None:
            continue

        cells = row.find_all("td")
        name = _cell_text(cells, columns.get("title")) or anchor.get_text().strip()

        tracks.append(
            TrackRecord(
                name=name,
                disc_number=_cell_text(cells, columns.get("disc")).rstrip("."),
                track_number=_cell_text(cells, columns.get("track")).rstrip("."),
                detail_page_url=resolve_link(page_url, anchor["href"]),
            )
        )
    return tracks


def scrape_album_page(html: str, page_url: str) -> AlbumRecord:
    """Extract album metadata, images and the track list from an album page.

    Args:
        html: Album page document
        page_url: URL the document was fetched from (used to resolve links)

    Returns:
        Album record with empty download maps

    Raises:
        AlbumNameNotFound: If the page has no album title
    """
    soup = _make_soup(html)
    content = soup.find(id="pageContent")
    if content is None:
        raise AlbumNameNotFound(page_url)

    heading = content.find("h2")
    name = heading.get_text().strip() if heading else ""
    if not name:
        raise AlbumNameNotFound(page_url)

    album = AlbumRecord(source_url=page_url, name=name)
    _parse_description(album, _description_text(content))
    album.images = _parse_images(content, page_url)
    album.tracks = _parse_tracks(content, page_url)
    return album


def scrape_track_download_map(html: str, detail_page_url: str) -> Dict[str, str]:
    """Collect the download links of a track detail page by format.

    Args:
        html: Track detail page document
        detail_page_url: URL the document was fetched from

    Returns:
        Upper-cased format code -> absolute download URL, in page order

    Raises:
        NoDownloadLinkFound: If the page has no download link
    """
    soup = _make_soup(html)
    content = soup.find(id="pageContent") or soup

    downloads = {}
    for anchor in content.find_all("a", href=True):
        match = DOWNLOAD_LABEL_PATTERN.search(anchor.get_text())
        if not match:
            continue
        file_format = match.group(1).upper()
        if file_format not in downloads:
            downloads[file_format] = resolve_link(detail_page_url, anchor["href"])

    if not downloads:
        raise NoDownloadLinkFound(detail_page_url)
    return downloads
