"""File-store capability used by the pipeline and the tagger.

The pipeline and reconciliation engine only touch the file system through
these methods so tests can run them against an in-memory store.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, List, Protocol, Union

PathLike = Union[str, Path]


@dataclass(frozen=True)
class DirEntry:
    """Name and kind of one directory entry."""

    name: str
    is_dir: bool = False


class FileStore(Protocol):
    """What the pipeline needs from a file system."""

    def create_file(self, path: PathLike) -> BinaryIO: ...

    def open_file(self, path: PathLike) -> BinaryIO: ...

    def make_directories(self, path: PathLike) -> None: ...

    def exists(self, path: PathLike) -> bool: ...

    def remove_file(self, path: PathLike) -> None: ...

    def list_entries(self, path: PathLike) -> List[DirEntry]: ...


class LocalFileStore:
    """File store backed by the local disk."""

    def create_file(self, path: PathLike) -> BinaryIO:
        return open(path, "wb")

    def open_file(self, path: PathLike) -> BinaryIO:
        return open(path, "rb")

    def make_directories(self, path: PathLike) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def exists(self, path: PathLike) -> bool:
        return Path(path).exists()

    def remove_file(self, path: PathLike) -> None:
        Path(path).unlink(missing_ok=True)

    def list_entries(self, path: PathLike) -> List[DirEntry]:
        with os.scandir(path) as entries:
            return [DirEntry(entry.name, entry.is_dir()) for entry in entries]
