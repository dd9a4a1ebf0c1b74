"""Pytest fixtures for integration tests."""

import io
from pathlib import Path
from unittest.mock import Mock

import pytest

from soundtrack_downloader.config import Config
from soundtrack_downloader.errors import TagReadFailure, TagWriteFailure
from soundtrack_downloader.storage import DirEntry

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

ALBUM_URL = "https://example.com/"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class FakeResponse:
    """Just enough of requests.Response for the pipeline."""

    def __init__(self, body=b"", status_code: int = 200):
        self.content = body.encode("utf-8") if isinstance(body, str) else body
        self.status_code = status_code
        self.closed = False

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """HTTP session answering from a URL -> body/status/exception table."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requested = []

    def get(self, url, **kwargs):
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(b"not found", status_code=404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(route)


class _MemoryWriter(io.BytesIO):
    def __init__(self, store, path: Path):
        super().__init__()
        self._store = store
        self._path = path

    def close(self):
        if not self.closed:
            self._store.files[self._path] = self.getvalue()
        super().close()


class MemoryFileStore:
    """In-memory file store keyed by Path."""

    def __init__(self, files=None):
        self.files = {Path(p): data for p, data in (files or {}).items()}
        self.dirs = set()
        self.created = []
        self.fail_create = set()
        self.fail_mkdir = False

    def create_file(self, path):
        path = Path(path)
        if path.name in self.fail_create:
            raise PermissionError(f"cannot create {path}")
        self.created.append(path)
        self.files[path] = b""
        return _MemoryWriter(self, path)

    def open_file(self, path):
        path = Path(path)
        if path not in self.files:
            raise FileNotFoundError(str(path))
        return io.BytesIO(self.files[path])

    def make_directories(self, path):
        if self.fail_mkdir:
            raise PermissionError(f"cannot create {path}")
        self.dirs.add(Path(path))

    def exists(self, path):
        path = Path(path)
        return path in self.files or path in self.dirs

    def remove_file(self, path):
        self.files.pop(Path(path), None)

    def list_entries(self, path):
        path = Path(path)
        children = {}
        for file_path in self.files:
            if file_path.parent == path:
                children[file_path.name] = DirEntry(file_path.name, False)
        for dir_path in self.dirs:
            if dir_path.parent == path:
                children[dir_path.name] = DirEntry(dir_path.name, True)
        if not children and path not in self.dirs:
            raise FileNotFoundError(str(path))
        return list(children.values())

    def text(self, path) -> str:
        return self.files[Path(path)].decode("utf-8")


class FakeTagStore:
    """Tag store keeping embedded tags per file name."""

    def __init__(self, existing=None):
        self.existing = {name: dict(tags) for name, tags in (existing or {}).items()}
        self.written = {}
        self.fail_read = set()
        self.fail_write = set()

    def read_tags(self, path):
        name = Path(path).name
        if name in self.fail_read:
            raise TagReadFailure(str(path), "corrupt file")
        return {key: [value] for key, value in self.existing.get(name, {}).items()}

    def write_tags(self, path, tags):
        name = Path(path).name
        if name in self.fail_write:
            raise TagWriteFailure(str(path), "read-only file")
        self.written[name] = dict(tags)


@pytest.fixture
def album_routes():
    """Album page, two track pages and their downloads."""
    return {
        ALBUM_URL: read_fixture("album_home.html"),
        "https://example.com/album/my-album/01.%2520song1.mp3": read_fixture("song1.html"),
        "https://example.com/album/my-album/02.%2520song2.mp3": read_fixture("song2.html"),
        "https://download.com/Cover.jpg": b"content of cover",
        "https://example.com/album/my-album/Back%20Cover.jpg": b"content of back cover",
        "https://download.com/01.%20song1.flac": b"content of song1",
        "https://download.com/02.%20song2.flac": b"content of song2",
        "https://download.com/01.%20song1.mp3": b"content of song1 mp3",
        "https://download.com/02.%20song2.mp3": b"content of song2 mp3",
    }


@pytest.fixture
def fake_session(album_routes):
    return FakeSession(album_routes)


@pytest.fixture
def memory_store():
    return MemoryFileStore()


@pytest.fixture
def fake_tag_store():
    return FakeTagStore()


@pytest.fixture
def quiet_logger():
    """Logger double recording calls instead of printing."""
    return Mock()


@pytest.fixture
def create_test_audio_file():
    """Factory fixture to create test audio files with existing tags."""

    def _create(path: Path, format: str = "mp3", title: str = None, label: str = None, extra=None):
        """Copy a minimal valid audio file and tag it natively.

        Args:
            path: Path to create file at
            format: File format (mp3, flac or m4a)
            title: Title metadata
            label: Label stored as a TXXX frame, Vorbis comment or freeform atom
            extra: Other user-defined key -> value pairs, stored like the label
        """
        import shutil

        from mutagen.flac import FLAC
        from mutagen.id3 import ID3, TIT2, TXXX
        from mutagen.mp3 import MP3
        from mutagen.mp4 import MP4, MP4FreeForm

        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(FIXTURES_DIR / f"template.{format}", path)

        user_defined = dict(extra or {})
        if label:
            user_defined["LABEL"] = label

        if format == "mp3":
            audio = MP3(str(path), ID3=ID3)
            if audio.tags is None:
                audio.add_tags()
            if title:
                audio.tags.add(TIT2(encoding=3, text=title))
            for key, value in user_defined.items():
                audio.tags.add(TXXX(encoding=3, desc=key, text=[value]))
            audio.save()

        elif format == "flac":
            audio = FLAC(str(path))
            if audio.tags is None:
                audio.add_tags()
            if title:
                audio["TITLE"] = [title]
            for key, value in user_defined.items():
                audio[key] = [value]
            audio.save()

        elif format == "m4a":
            audio = MP4(str(path))
            if audio.tags is None:
                audio.add_tags()
            if title:
                audio.tags["\xa9nam"] = [title]
            for key, value in user_defined.items():
                audio.tags[f"----:com.apple.iTunes:{key}"] = [MP4FreeForm(value.encode("utf-8"))]
            audio.save()

        return path

    return _create


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary config file."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"""
output_dir: "{tmp_path / 'albums'}"
downloads:
  format_preference: [MP3, "*"]
logging:
  level: WARNING
"""
    )
    return config_path


@pytest.fixture
def test_config(temp_config_file):
    """Create a Config instance for testing."""
    Config.reset()
    config = Config(temp_config_file)
    yield config
    Config.reset()
