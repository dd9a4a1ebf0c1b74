"""HTTP access for album pages, track pages and file downloads."""

from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

import requests

from . import __version__
from .errors import HttpStatusError

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = f"soundtrack-downloader/{__version__}"


class HttpClient(Protocol):
    """Anything with a ``requests.Session``-style ``get``."""

    def get(self, url: str, **kwargs) -> requests.Response: ...


def create_session(user_agent: Optional[str] = None) -> requests.Session:
    """Create the HTTP session used for a whole run."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent or DEFAULT_USER_AGENT})
    return session


def _check_status(url: str, response: requests.Response):
    if response.status_code != 200:
        response.close()
        raise HttpStatusError(url, response.status_code)


def fetch_page(client: HttpClient, url: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Fetch a page and return its decoded body.

    Raises:
        HttpStatusError: If the response is not 200 OK
        requests.RequestException: On connection problems or timeouts
    """
    response = client.get(url, timeout=timeout)
    _check_status(url, response)
    try:
        return response.text
    finally:
        response.close()


@contextmanager
def open_download(
    client: HttpClient, url: str, timeout: float = DEFAULT_TIMEOUT
) -> Iterator[requests.Response]:
    """Open a streamed download; the response is closed on exit.

    Raises:
        HttpStatusError: If the response is not 200 OK
        requests.RequestException: On connection problems or timeouts
    """
    response = client.get(url, stream=True, timeout=timeout)
    _check_status(url, response)
    try:
        yield response
    finally:
        response.close()
