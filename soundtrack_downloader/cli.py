"""Command-line interface for soundtrack-downloader."""

import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
import yaml

from . import __version__
from .config import Config
from .downloader import AlbumDownloader, DownloadOptions
from .errors import SoundtrackError
from .fetch import create_session
from .log import setup_logging
from .reconcile import FAILED, PROPOSED, UNCHANGED, WRITTEN, ReconcileOptions, reconcile_tags
from .selection import FormatRanking, parse_format_ranking, parse_track_selector
from .tags import OverwritePolicy, album_tags, canonical_key, file_tags


class DefaultGroup(click.Group):
    """Click group that defaults to a specified command when no command is given."""

    def __init__(self, *args, **kwargs):
        self.default_command = kwargs.pop("default_command", None)
        super().__init__(*args, **kwargs)

    def resolve_command(self, ctx, args):
        # Treat an unknown first argument (the album URL) as an argument of
        # the default command, but never redirect flags
        if (
            args
            and args[0] not in self.commands
            and self.default_command is not None
            and not args[0].startswith("-")
        ):
            args.insert(0, self.default_command)

        return super().resolve_command(ctx, args)


def _load_config(ctx: click.Context) -> Config:
    config = Config(ctx.obj.get("config_path"))
    setup_logging(config.log_level, ctx.obj.get("verbose", False))
    return config


def _parse_track_option(ctx, param, values):
    if not values:
        return None
    try:
        return parse_track_selector(values)
    except ValueError as e:
        raise click.BadParameter(str(e))


def _parse_tag_option(ctx, param, values) -> Dict[str, str]:
    tags = {}
    for value in values:
        key, sep, tag_value = value.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"invalid tag format: {value}")
        tags[canonical_key(key)] = tag_value
    return tags


def _parse_file_tag_option(ctx, param, values) -> Dict[str, Dict[str, str]]:
    file_tag_map: Dict[str, Dict[str, str]] = {}
    for value in values:
        file_name, sep, assignment = value.partition(":")
        key, eq, tag_value = assignment.partition("=")
        if not sep or not file_name or not eq or not key.strip():
            raise click.BadParameter(f"invalid file tag format: {value}")
        file_tag_map.setdefault(file_name, {})[canonical_key(key)] = tag_value
    return file_tag_map


@click.group(cls=DefaultGroup, default_command="download", invoke_without_command=True)
@click.version_option(__version__, prog_name="soundtrack-downloader")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (default: ~/.config/soundtrack-downloader/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
@click.pass_context
def cli(ctx, config_path: Optional[Path], verbose: bool):
    """Soundtrack Downloader - fetch game soundtrack albums and fix their tags."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    # If no command is given, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command()
@click.argument("url")
@click.option("--no-download-image", is_flag=True, help="Don't download images")
@click.option("--no-download-track", is_flag=True, help="Don't download tracks")
@click.option(
    "--no-download", is_flag=True, help="Combine --no-download-image and --no-download-track"
)
@click.option("--no-create-album-info", is_flag=True, help="Don't create info.json")
@click.option("--no-create-windows-shortcut", is_flag=True, help="Don't create page.url")
@click.option(
    "--overwrite",
    is_flag=True,
    help="Redownload existing files (info.json and page.url are always rewritten)",
)
@click.option(
    "--track",
    "tracks",
    multiple=True,
    callback=_parse_track_option,
    help="Tracks to download as [disc-]track, comma separated (e.g. 1-1,1-2,2-*). "
    "'*' means all tracks (default)",
)
@click.option(
    "--track-format-preference",
    "format_preference",
    multiple=True,
    help="Preferred formats, most wanted first (default from config: FLAC,MP3,OGG,*)",
)
@click.option("--fix-tags", is_flag=True, help="Tag downloaded files from the album info")
@click.option(
    "--output", "-o", type=click.Path(file_okay=False, path_type=Path),
    help="Directory to create the album folder in (overrides config)",
)
@click.pass_context
def download(
    ctx,
    url: str,
    no_download_image: bool,
    no_download_track: bool,
    no_download: bool,
    no_create_album_info: bool,
    no_create_windows_shortcut: bool,
    overwrite: bool,
    tracks,
    format_preference: Tuple[str, ...],
    fix_tags: bool,
    output: Optional[Path],
):
    """Download an album from its catalog page URL."""
    config = _load_config(ctx)

    if no_download:
        no_download_image = no_download_track = True
    no_download = no_download_image and no_download_track

    if no_download and overwrite:
        click.echo("⚠️ --overwrite has no effect while nothing is downloaded", err=True)
    if no_download and no_create_album_info:
        click.echo("⚠️ Nothing meaningful to do without downloads or info.json", err=True)
    if tracks is not None and no_download_track:
        click.echo("⚠️ --track has no effect with --no-download-track", err=True)
    if format_preference and no_download_track:
        click.echo("⚠️ --track-format-preference has no effect with --no-download-track", err=True)

    ranking = (
        parse_format_ranking(format_preference)
        if format_preference
        else FormatRanking(config.format_preference)
    )
    options = DownloadOptions(
        skip_images=no_download_image,
        skip_tracks=no_download_track,
        skip_summary=no_create_album_info,
        skip_shortcut=no_create_windows_shortcut,
        overwrite_existing=overwrite or config.overwrite_downloads,
        track_selector=tracks,
        format_ranking=ranking,
    )

    downloader = AlbumDownloader(
        session=create_session(config.user_agent),
        work_dir=output or config.output_dir,
        timeout=config.timeout,
    )

    try:
        result = downloader.acquire_album(url, options)
    except KeyboardInterrupt:
        click.echo("\n⚠️ Download cancelled by user")
        sys.exit(1)
    except Exception as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"📁 {result.folder}")
    click.echo(
        f"✅ {len(result.downloaded)} downloaded, {len(result.skipped)} skipped, "
        f"{len(result.failed)} failed"
    )

    if fix_tags:
        click.echo("🏷️ Fixing tags...")
        try:
            report = reconcile_tags(
                album_tags(result.album),
                file_tags(result.album),
                OverwritePolicy(),
                result.folder,
            )
        except SoundtrackError as e:
            click.echo(f"❌ Error: {e}", err=True)
            sys.exit(1)
        click.echo(f"✅ Tagged {len(report.names(WRITTEN))} files")


@cli.command("tag")
@click.argument("folder", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--tag",
    "-t",
    "tags",
    multiple=True,
    callback=_parse_tag_option,
    help="KEY=VALUE applied to every file, e.g. ALBUM, DATE, ALBUMARTIST, ARTIST, GENRE",
)
@click.option(
    "--file-tag",
    "file_tag_values",
    multiple=True,
    callback=_parse_file_tag_option,
    help="FILE:KEY=VALUE applied to one file only",
)
@click.option("--infer-names", is_flag=True, help="Infer disc, track and title from file names")
@click.option(
    "--overwrite",
    "overwrite_keys",
    multiple=True,
    help="Tag key whose existing value may be replaced; '*' for every key",
)
@click.option("--read-album-info", is_flag=True, help="Use info.json in the folder")
@click.option("--dry-run", is_flag=True, help="Only print the proposed changes")
@click.pass_context
def tag(
    ctx,
    folder: Path,
    tags: Dict[str, str],
    file_tag_values: Dict[str, Dict[str, str]],
    infer_names: bool,
    overwrite_keys: Tuple[str, ...],
    read_album_info: bool,
    dry_run: bool,
):
    """Fix tags of the audio files in FOLDER."""
    config = _load_config(ctx)

    options = ReconcileOptions(
        infer_names=infer_names or config.infer_names,
        read_album_info=read_album_info,
        dry_run=dry_run,
    )

    try:
        report = reconcile_tags(
            tags, file_tag_values, OverwritePolicy(overwrite_keys), folder, options
        )
    except SoundtrackError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    if dry_run:
        proposed = report.names(PROPOSED)
        click.echo(f"[DRY RUN] {len(proposed)} files would change")
        for name in proposed:
            click.echo(f"  {name}: {report.tags_for(name).format()}")
    else:
        click.echo(f"✅ Tagged {len(report.names(WRITTEN))} files")

    if report.names(UNCHANGED):
        click.echo(f"ℹ️ {len(report.names(UNCHANGED))} files already up to date")
    failed = report.names(FAILED)
    if failed:
        click.echo(f"⚠️ {len(failed)} files failed: {', '.join(failed)}", err=True)


@cli.command("show-config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration."""
    config = _load_config(ctx)
    click.echo(f"# {config.config_path}")
    click.echo(yaml.safe_dump(config.config, sort_keys=False).rstrip())


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
