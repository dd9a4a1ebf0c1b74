"""Track filtering and download format preference."""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .models import TrackRecord

WILDCARD = "*"

DEFAULT_FORMAT_RANKING = ("FLAC", "MP3", "OGG", WILDCARD)


def normalize_number(value: str) -> str:
    """Strip leading zeros from a disc or track number.

    ``""`` and the wildcard pass through; an all-zero value becomes ``"0"``.
    """
    value = value.strip()
    if value in ("", WILDCARD):
        return value
    stripped = value.lstrip("0")
    return stripped or "0"


@dataclass(frozen=True)
class TrackSelectionKey:
    """Normalized (disc, track) pair; either side may be the wildcard."""

    disc_number: str
    track_number: str

    @classmethod
    def normalized(cls, disc_number: str, track_number: str) -> "TrackSelectionKey":
        return cls(normalize_number(disc_number), normalize_number(track_number))

    def normalize(self) -> "TrackSelectionKey":
        return self.normalized(self.disc_number, self.track_number)


class TrackSelector:
    """Set of selection keys deciding which tracks get downloaded.

    A selector without keys selects nothing. Callers that want every track
    either pass no selector at all or use :meth:`everything`.
    """

    def __init__(self, keys: Iterable[TrackSelectionKey] = ()):
        self.keys = {key.normalize() for key in keys}

    @classmethod
    def everything(cls) -> "TrackSelector":
        return cls([TrackSelectionKey(WILDCARD, WILDCARD)])

    def add(self, disc_number: str, track_number: str):
        self.keys.add(TrackSelectionKey.normalized(disc_number, track_number))

    def matches(self, record: TrackRecord) -> bool:
        """Whether the record's disc/track pair is selected."""
        disc = normalize_number(record.disc_number)
        track = normalize_number(record.track_number)
        candidates = (
            TrackSelectionKey(disc, track),
            TrackSelectionKey(disc, WILDCARD),
            TrackSelectionKey(WILDCARD, track),
            TrackSelectionKey(WILDCARD, WILDCARD),
        )
        return any(candidate in self.keys for candidate in candidates)

    def __len__(self) -> int:
        return len(self.keys)

    def __eq__(self, other) -> bool:
        return isinstance(other, TrackSelector) and self.keys == other.keys

    def __repr__(self) -> str:
        pairs = sorted(f"{k.disc_number}-{k.track_number}" for k in self.keys)
        return f"TrackSelector({', '.join(pairs)})"


class FormatRanking:
    """Ordered format preference used to pick one download URL per track."""

    def __init__(self, codes: Iterable[str] = DEFAULT_FORMAT_RANKING):
        self.codes = tuple(code.strip().upper() for code in codes if code.strip())

    def select_from(self, downloads: Mapping[str, str]) -> Tuple[Optional[str], bool]:
        """Pick the most preferred available URL.

        Args:
            downloads: Format code -> URL

        Returns:
            Tuple of (url, found); url is None when nothing matched
        """
        if not downloads:
            return None, False

        by_format: Dict[str, str] = {fmt.upper(): url for fmt, url in downloads.items()}
        for code in self.codes:
            if code == WILDCARD:
                return next(iter(by_format.values())), True
            if code in by_format:
                return by_format[code], True
        return None, False

    def __eq__(self, other) -> bool:
        return isinstance(other, FormatRanking) and self.codes == other.codes

    def __repr__(self) -> str:
        return f"FormatRanking({', '.join(self.codes)})"


def parse_track_selector(values: Iterable[str]) -> TrackSelector:
    """Build a selector from ``[disc-]track`` lists such as ``1-1,1-02, 3``.

    Raises:
        ValueError: If an entry has more than one ``-``
    """
    selector = TrackSelector()
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if not part:
                continue
            pieces = part.split("-")
            if len(pieces) == 1:
                if pieces[0] == WILDCARD:
                    selector.add(WILDCARD, WILDCARD)
                else:
                    selector.add("", pieces[0])
            elif len(pieces) == 2:
                selector.add(pieces[0], pieces[1])
            else:
                raise ValueError(f"invalid track number format: {part}")
    return selector


def parse_format_ranking(values: Iterable[str]) -> FormatRanking:
    """Build a ranking from comma-separated format lists."""
    codes = []
    for value in values:
        codes.extend(value.split(","))
    return FormatRanking(codes)
