"""URL and file name helpers shared by the scraper, pipeline and tagger."""

import posixpath
from urllib.parse import unquote, urljoin, urlparse

from .errors import MalformedUrl

UNSAFE_FILENAME_CHARS = '/\\:*?"<>|'

_UNSAFE_TABLE = str.maketrans({char: "_" for char in UNSAFE_FILENAME_CHARS})


def resolve_link(base_url: str, link: str) -> str:
    """Resolve a link found on a page against the page's host.

    Links that already carry a scheme are returned unchanged. Anything else
    is joined onto the scheme and host of ``base_url``; the base path is
    discarded, so relative links are rooted at the host.

    Raises:
        MalformedUrl: If ``base_url`` has no scheme or host
    """
    if urlparse(link).scheme:
        return link

    try:
        parsed = urlparse(base_url)
    except ValueError as e:
        raise MalformedUrl(base_url) from e

    if not parsed.scheme or not parsed.netloc:
        raise MalformedUrl(base_url)

    return urljoin(f"{parsed.scheme}://{parsed.netloc}/", link)


def unescape_url(url: str) -> str:
    """Percent-decode a download URL (``+`` stays literal)."""
    return unquote(url)


def sanitize_filename(text: str) -> str:
    """Replace characters that are unsafe in file names with ``_``.

    Args:
        text: Text to sanitize

    Returns:
        Sanitized text
    """
    return text.translate(_UNSAFE_TABLE)


def download_file_name(url: str) -> str:
    """File name a download URL is stored under.

    The name is the last path segment of the unescaped URL, sanitized.
    Different URLs that reduce to the same name share one file. The query
    string and fragment are deliberately ignored, so ``a.mp3?token=1`` and
    ``a.mp3?token=2`` are stored as the same ``a.mp3``.
    """
    path = urlparse(url).path
    return sanitize_filename(posixpath.basename(unescape_url(path)))
