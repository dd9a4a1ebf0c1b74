"""Embedded tag access for audio files."""

from pathlib import Path
from typing import Dict, List, Mapping, Protocol

from mutagen import File as MutagenFile
from mutagen import MutagenError
from mutagen.easyid3 import EasyID3
from mutagen.easymp4 import EasyMP4Tags

from .errors import TagReadFailure, TagWriteFailure
from .tags import CATALOGNUMBER, LABEL

AUDIO_EXTENSIONS = frozenset({".mp3", ".flac", ".ogg", ".opus", ".m4a"})

# Raw key prefixes of ID3 user text frames and MP4 freeform atoms
USER_TEXT_PREFIX = "TXXX:"
FREEFORM_PREFIX = "----:"

# Keys derived from album info that the easy interfaces lack out of the box
CUSTOM_KEYS = (LABEL, CATALOGNUMBER)


def _register_custom_keys():
    for key in CUSTOM_KEYS:
        if key.lower() not in EasyID3.Get:
            EasyID3.RegisterTXXXKey(key.lower(), key)
        if key.lower() not in EasyMP4Tags.Get:
            EasyMP4Tags.RegisterFreeformKey(key.lower(), key)


_register_custom_keys()


def is_audio_file(file_name: str) -> bool:
    """Check the extension against the supported formats, ignoring case."""
    return Path(file_name).suffix.lower() in AUDIO_EXTENSIONS


class TagStore(Protocol):
    """Reads and writes embedded tags."""

    def read_tags(self, path: Path) -> Dict[str, List[str]]: ...

    def write_tags(self, path: Path, tags: Mapping[str, str]) -> None: ...


class MutagenTagStore:
    """Tag store using mutagen's easy interfaces.

    Keys are exchanged upper-case (``ARTIST``, ``TRACKNUMBER``, ...). Keys the
    ID3 and MP4 easy interfaces do not know are stored as user text frames and
    freeform atoms respectively.
    """

    def _open(self, path: Path, easy: bool = True):
        try:
            audio = MutagenFile(str(path), easy=easy)
        except (MutagenError, OSError) as e:
            raise TagReadFailure(str(path), str(e)) from e
        if audio is None:
            raise TagReadFailure(str(path), "unsupported audio format")
        return audio

    def read_tags(self, path: Path) -> Dict[str, List[str]]:
        """Read embedded tags.

        ID3 user text frames and MP4 freeform atoms are reported under their
        name even when the easy interface has no mapping for them.

        Args:
            path: Path to audio file

        Returns:
            Upper-cased tag key -> values

        Raises:
            TagReadFailure: If the file cannot be parsed
        """
        audio = self._open(path)
        if audio.tags is None:
            return {}

        tags = {key.upper(): list(audio[key]) for key in audio.keys()}
        if isinstance(audio.tags, (EasyID3, EasyMP4Tags)):
            for key, values in self._read_user_defined(path).items():
                tags.setdefault(key, values)
        return tags

    def _read_user_defined(self, path: Path) -> Dict[str, List[str]]:
        raw = self._open(path, easy=False)
        found = {}
        for key, value in (raw.tags or {}).items():
            if key.startswith(USER_TEXT_PREFIX):
                found[value.desc.upper()] = [str(text) for text in value.text]
            elif key.startswith(FREEFORM_PREFIX):
                name = key.rsplit(":", 1)[-1]
                found[name.upper()] = [bytes(item).decode("utf-8", "replace") for item in value]
        return found

    def write_tags(self, path: Path, tags: Mapping[str, str]) -> None:
        """Set each tag to a single value and save the file.

        Raises:
            TagReadFailure: If the file cannot be parsed
            TagWriteFailure: If a tag is rejected or saving fails
        """
        audio = self._open(path)
        try:
            if audio.tags is None:
                audio.add_tags()

            for key, value in tags.items():
                easy_key = key.lower()
                try:
                    audio[easy_key] = [value]
                except KeyError:
                    self._register_key(audio.tags, key)
                    audio[easy_key] = [value]

            audio.save()
        except (MutagenError, OSError, KeyError, ValueError) as e:
            raise TagWriteFailure(str(path), str(e)) from e

    def _register_key(self, tags, key: str):
        """Teach the easy ID3/MP4 interfaces a custom tag key."""
        if isinstance(tags, EasyID3):
            EasyID3.RegisterTXXXKey(key.lower(), key.upper())
        elif isinstance(tags, EasyMP4Tags):
            EasyMP4Tags.RegisterFreeformKey(key.lower(), key.upper())
        else:
            raise KeyError(key)
