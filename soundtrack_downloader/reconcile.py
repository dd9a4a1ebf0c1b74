"""Tag reconciliation for a folder of downloaded tracks.

For every audio file directly inside the folder, tags are merged from five
sources, lowest precedence first:

1. album-wide tags from ``info.json`` (``read_album_info``)
2. per-file title/numbering from the same ``info.json``
3. disc/track/title inferred from the file name (``infer_names``)
4. tags given for every file
5. tags given for that exact file name

Keys the file already carries are then dropped unless the overwrite policy
allows replacing them, and whatever is left is written (or only reported in
a dry run).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from loguru import logger as default_logger

from .errors import FileIOFailure, SoundtrackError, SummaryParseFailure
from .metadata import MutagenTagStore, TagStore, is_audio_file
from .models import SUMMARY_FILENAME, AlbumRecord, load_summary
from .storage import FileStore, LocalFileStore, PathLike
from .tags import (
    OverwritePolicy,
    TagSet,
    album_tags,
    file_tags,
    infer_tags_from_filename,
    to_tag_set,
)

WRITTEN = "written"
PROPOSED = "proposed"
UNCHANGED = "unchanged"
FAILED = "failed"


@dataclass
class ReconcileOptions:
    infer_names: bool = False
    read_album_info: bool = False
    dry_run: bool = False


@dataclass
class FileOutcome:
    name: str
    status: str
    tags: TagSet = field(default_factory=TagSet)


@dataclass
class ReconcileReport:
    """Per-file results of a reconciliation run."""

    outcomes: List[FileOutcome] = field(default_factory=list)

    def names(self, status: str) -> List[str]:
        return [outcome.name for outcome in self.outcomes if outcome.status == status]

    def tags_for(self, name: str) -> Optional[TagSet]:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome.tags
        return None


def merge_tag_sources(*sources: Optional[Mapping[str, str]]) -> TagSet:
    """Merge tag mappings; later sources win for the same key."""
    merged = TagSet()
    for source in sources:
        if source:
            merged.update(source)
    return merged


def apply_overwrite_policy(
    tags: TagSet, existing_keys: Iterable[str], policy: OverwritePolicy
) -> TagSet:
    """Drop every key the file already has unless the policy allows replacing it."""
    gated = TagSet(tags)
    for key in existing_keys:
        if not policy.allows(key) and key in gated:
            del gated[key]
    return gated


def read_album_summary(store: FileStore, folder: Path) -> AlbumRecord:
    """Load ``<folder>/info.json``.

    Raises:
        SummaryParseFailure: If the file is missing, unreadable or invalid
    """
    path = folder / SUMMARY_FILENAME
    try:
        with store.open_file(path) as f:
            text = f.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SummaryParseFailure(f"failed to read {path}: {e}") from e
    return load_summary(text)


def reconcile_tags(
    provided_tags: Optional[Mapping[str, str]],
    provided_file_tags: Optional[Mapping[str, Mapping[str, str]]],
    overwrite_policy: Optional[OverwritePolicy],
    folder: PathLike,
    options: Optional[ReconcileOptions] = None,
    store: Optional[FileStore] = None,
    tag_store: Optional[TagStore] = None,
    logger=None,
) -> ReconcileReport:
    """Merge tag sources for every audio file in ``folder`` and apply them.

    Args:
        provided_tags: Tags for every file
        provided_file_tags: File name -> tags for that file only
        overwrite_policy: Existing keys that may be replaced (None: none)
        folder: Folder holding the audio files (not searched recursively)
        options: Which optional sources to use and whether to write
        store: File store for info.json and the folder listing
        tag_store: Embedded tag reader/writer
        logger: Leveled logger (defaults to loguru)

    Returns:
        Per-file outcomes

    Raises:
        SummaryParseFailure: If ``read_album_info`` is set and info.json is unusable
        FileIOFailure: If the folder cannot be listed
    """
    options = options or ReconcileOptions()
    store = store or LocalFileStore()
    tag_store = tag_store or MutagenTagStore()
    logger = logger or default_logger
    overwrite_policy = overwrite_policy or OverwritePolicy()
    folder = Path(folder)

    summary_album_tags: Optional[TagSet] = None
    summary_file_tags: Dict[str, TagSet] = {}
    if options.read_album_info:
        album = read_album_summary(store, folder)
        summary_album_tags = album_tags(album)
        summary_file_tags = file_tags(album)

    global_tags = to_tag_set(provided_tags or {})
    per_file_tags = {
        name: to_tag_set(tags) for name, tags in (provided_file_tags or {}).items()
    }

    try:
        entries = store.list_entries(folder)
    except OSError as e:
        raise FileIOFailure(f"failed to list {folder}: {e}") from e

    report = ReconcileReport()
    for entry in sorted(entries, key=lambda e: e.name):
        if entry.is_dir or not is_audio_file(entry.name):
            continue

        name = entry.name
        merged = merge_tag_sources(
            summary_album_tags,
            summary_file_tags.get(name),
            infer_tags_from_filename(name) if options.infer_names else None,
            global_tags,
            per_file_tags.get(name),
        )

        song_path = folder / name
        try:
            existing = tag_store.read_tags(song_path)
        except SoundtrackError as e:
            logger.error(str(e))
            report.outcomes.append(FileOutcome(name, FAILED, merged))
            continue
        logger.debug(f"existing tags for {name}: {existing}")

        merged = apply_overwrite_policy(merged, existing, overwrite_policy)
        if not merged:
            logger.info(f"nothing to do for {name}")
            report.outcomes.append(FileOutcome(name, UNCHANGED))
            continue

        if options.dry_run:
            logger.info(f"would set {len(merged)} tags for {name}: {merged.format()}")
            report.outcomes.append(FileOutcome(name, PROPOSED, merged))
            continue

        logger.info(f"setting {len(merged)} tags for {name}: {', '.join(sorted(merged))}")
        try:
            tag_store.write_tags(song_path, merged)
        except SoundtrackError as e:
            logger.error(str(e))
            report.outcomes.append(FileOutcome(name, FAILED, merged))
            continue
        report.outcomes.append(FileOutcome(name, WRITTEN, merged))

    return report
