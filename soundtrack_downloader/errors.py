"""Exceptions raised by the album pipeline and tag reconciliation."""

from typing import Optional


class SoundtrackError(Exception):
    """Base exception for soundtrack-downloader operations."""

    pass


class AlbumNameNotFound(SoundtrackError):
    """Raised when the album page has no album title."""

    def __init__(self, page_url: str = ""):
        self.page_url = page_url
        message = "failed to find album name"
        if page_url:
            message += f" on {page_url}"
        super().__init__(message)


class MalformedUrl(SoundtrackError):
    """Raised when a base URL cannot be parsed into scheme and host."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"malformed URL: {url!r}")


class NoDownloadLinkFound(SoundtrackError):
    """Raised when a track detail page offers no download link."""

    def __init__(self, page_url: str = ""):
        self.page_url = page_url
        super().__init__(f"failed to find download link on {page_url or 'track page'}")


class HttpStatusError(SoundtrackError):
    """Raised when a fetch returns anything other than 200 OK."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"unexpected response {status_code} from {url}")


class DirectoryCreateFailure(SoundtrackError):
    """Raised when the album folder cannot be created."""

    pass


class FileIOFailure(SoundtrackError):
    """Raised when a file cannot be created, written or listed."""

    pass


class TagReadFailure(SoundtrackError):
    """Raised when embedded tags cannot be read from an audio file."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        super().__init__(f"failed to read tags for {path}" + (f": {reason}" if reason else ""))


class TagWriteFailure(SoundtrackError):
    """Raised when tags cannot be written to an audio file."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        super().__init__(f"failed to write tags for {path}" + (f": {reason}" if reason else ""))


class SummaryParseFailure(SoundtrackError):
    """Raised when info.json cannot be read or decoded."""

    pass
