"""Album acquisition: scrape the album page, download files, write a summary."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import requests
from loguru import logger as default_logger

from .errors import DirectoryCreateFailure, SoundtrackError
from .fetch import DEFAULT_TIMEOUT, HttpClient, create_session, fetch_page, open_download
from .models import SUMMARY_FILENAME, AlbumRecord, TrackRecord, dump_summary
from .scraper import scrape_album_page, scrape_track_download_map
from .selection import FormatRanking, TrackSelector
from .storage import FileStore, LocalFileStore, PathLike
from .urls import download_file_name, sanitize_filename

SHORTCUT_FILENAME = "page.url"
CHUNK_SIZE = 8192

SHORTCUT_TEMPLATE = (
    "[{{000214A0-0000-0000-C000-000000000046}}]\r\n"
    "Prop3=19,11\r\n"
    "[InternetShortcut]\r\n"
    "IDList=\r\n"
    "URL={url}\r\n"
)


@dataclass
class DownloadOptions:
    """What an acquisition run should do.

    ``track_selector=None`` downloads every track; an empty selector downloads
    none.
    """

    skip_images: bool = False
    skip_tracks: bool = False
    skip_summary: bool = False
    skip_shortcut: bool = False
    overwrite_existing: bool = False
    track_selector: Optional[TrackSelector] = None
    format_ranking: FormatRanking = field(default_factory=FormatRanking)


@dataclass
class AcquisitionResult:
    """Outcome of one acquisition run."""

    album: AlbumRecord
    folder: Path
    downloaded: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    """URLs that could not be fetched or written"""


class AlbumDownloader:
    """Fetches one album page and everything it links to."""

    def __init__(
        self,
        session: Optional[HttpClient] = None,
        store: Optional[FileStore] = None,
        logger=None,
        work_dir: PathLike = ".",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize downloader.

        Args:
            session: HTTP client (defaults to a fresh requests session)
            store: File store (defaults to the local disk)
            logger: Leveled logger (defaults to loguru)
            work_dir: Directory the album folder is created in
            timeout: Per-request timeout in seconds
        """
        self.session = session or create_session()
        self.store = store or LocalFileStore()
        self.logger = logger or default_logger
        self.work_dir = Path(work_dir)
        self.timeout = timeout

    def acquire_album(
        self, page_url: str, options: Optional[DownloadOptions] = None
    ) -> AcquisitionResult:
        """Download an album into ``<work_dir>/<album name>``.

        Args:
            page_url: Album page URL
            options: Run options (defaults: download everything)

        Returns:
            The populated album record, its folder and per-file outcomes

        Raises:
            AlbumNameNotFound: If the page has no album title
            HttpStatusError: If the album page cannot be fetched
            DirectoryCreateFailure: If the album folder cannot be created
        """
        options = options or DownloadOptions()

        self.logger.info(f"fetching from {page_url}")
        album = scrape_album_page(fetch_page(self.session, page_url, self.timeout), page_url)
        self.logger.info(
            f"fetched info: name={album.name!r} year={album.release_year!r} "
            f"developer={album.developer!r} publisher={album.publisher!r} "
            f"albumType={album.album_type!r} images={len(album.images)} "
            f"tracks={len(album.tracks)}"
        )

        folder = self.work_dir / sanitize_filename(album.name)
        try:
            self.store.make_directories(folder)
        except OSError as e:
            raise DirectoryCreateFailure(f"failed to create directory {folder}: {e}") from e

        result = AcquisitionResult(album=album, folder=folder)

        if not options.skip_images:
            for image in album.images:
                self._download(image.full_url, "image", result, options.overwrite_existing)
            if not album.images:
                self.logger.info("no images found")

        if not options.skip_tracks:
            for track in album.tracks:
                self._process_track(track, result, options)
            if not album.tracks:
                self.logger.info("no tracks found")

        if not options.skip_summary:
            self._write_summary(album, folder)

        if not options.skip_shortcut:
            self._write_shortcut(page_url, folder)

        self.logger.info(
            f"done: {len(result.downloaded)} downloaded, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed"
        )
        return result

    def _process_track(
        self, track: TrackRecord, result: AcquisitionResult, options: DownloadOptions
    ):
        label = f"{track.disc_number}-{track.track_number} {track.name}".strip(" -")

        selector = options.track_selector
        if selector is not None and not selector.matches(track):
            self.logger.debug(f"track {label} not selected")
            return

        try:
            html = fetch_page(self.session, track.detail_page_url, self.timeout)
            downloads = scrape_track_download_map(html, track.detail_page_url)
        except (requests.RequestException, SoundtrackError) as e:
            self.logger.error(f"failed to fetch track download url for {label}: {e}")
            result.failed.append(track.detail_page_url)
            return

        track.download_urls_by_format = downloads
        url, found = options.format_ranking.select_from(downloads)
        if not found:
            self.logger.warning(
                f"no preferred format for {label}, available: {', '.join(downloads)}"
            )
            return

        self._download(url, "track", result, options.overwrite_existing)

    @contextmanager
    def _partial_file_cleanup(self, path: Path):
        """Remove a half-written file if the transfer fails or is cancelled, then re-raise."""
        try:
            yield
        except BaseException:
            try:
                self.store.remove_file(path)
            except OSError as cleanup_error:
                self.logger.warning(f"failed to clean up {path}: {cleanup_error}")
            raise

    def _download(self, url: str, kind: str, result: AcquisitionResult, overwrite: bool):
        file_name = download_file_name(url)
        if not file_name:
            self.logger.error(f"cannot derive a file name for {kind} {url}")
            result.failed.append(url)
            return

        destination = result.folder / file_name
        if not overwrite and self.store.exists(destination):
            self.logger.info(f"skipped {destination}")
            result.skipped.append(destination)
            return

        self.logger.info(f"downloading {kind} from {url}")
        try:
            with open_download(self.session, url, self.timeout) as response:
                with self._partial_file_cleanup(destination):
                    with self.store.create_file(destination) as f:
                        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
        except (requests.RequestException, SoundtrackError, OSError) as e:
            self.logger.error(f"failed to download {kind} {url}: {e}")
            result.failed.append(url)
            return

        result.downloaded.append(destination)

    def _write_summary(self, album: AlbumRecord, folder: Path):
        self.logger.info("writing summary")
        try:
            with self.store.create_file(folder / SUMMARY_FILENAME) as f:
                f.write(dump_summary(album).encode("utf-8"))
        except OSError as e:
            self.logger.error(f"failed to create summary file: {e}")

    def _write_shortcut(self, page_url: str, folder: Path):
        self.logger.info("writing shortcut file")
        try:
            with self.store.create_file(folder / SHORTCUT_FILENAME) as f:
                f.write(SHORTCUT_TEMPLATE.format(url=page_url).encode("utf-8"))
        except OSError as e:
            self.logger.error(f"failed to create shortcut file: {e}")


def acquire_album(
    page_url: str,
    options: Optional[DownloadOptions] = None,
    session: Optional[HttpClient] = None,
    store: Optional[FileStore] = None,
    logger=None,
    work_dir: PathLike = ".",
    timeout: float = DEFAULT_TIMEOUT,
) -> AcquisitionResult:
    """Shortcut for ``AlbumDownloader(...).acquire_album(page_url, options)``."""
    downloader = AlbumDownloader(session, store, logger, work_dir, timeout)
    return downloader.acquire_album(page_url, options)
