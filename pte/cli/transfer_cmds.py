"""Transfer command: run one playlist transfer and render its progress."""

from __future__ import annotations
import json
import time
from pathlib import Path

import click

from ..errors import TransferError
from ..providers import Credential, Platform, Playlist
from ..services.models import (
    ConflictDecision,
    ConflictResolution,
    JobState,
    ProgressEvent,
    TrackConflict,
    TransferOptions,
    TransferRequest,
)
from ..services.transfer_service import TransferEngine, provider_adapter_factory
from ..utils.logging_helpers import format_progress, format_summary
from .helpers import cli, get_history_store, platform_choice

EXIT_FAILED = 1
EXIT_CANCELLED = 130


def _load_snapshot(path: str, playlist_id: str, platform: Platform) -> Playlist:
    """Read a playlist (with tracks) captured from a web player as JSON."""
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    data.setdefault('id', playlist_id)
    data.setdefault('name', playlist_id)
    data.setdefault('platform', platform.value)
    playlist = Playlist.from_dict(data)
    if playlist.id != playlist_id:
        raise click.UsageError(f"Snapshot is for playlist '{playlist.id}', not '{playlist_id}'")
    return playlist


def _ask(conflict: TrackConflict) -> ConflictDecision:
    click.echo()
    replace = click.confirm(
        f"'{conflict.track.label}' is already in '{conflict.playlist.name}'. Replace it?", default=False
    )
    return ConflictDecision.REPLACE if replace else ConflictDecision.SKIP


def _render(event) -> None:
    if isinstance(event, ProgressEvent):
        click.echo(format_progress(event.progress, event.message))


@cli.command(name="transfer")
@click.argument('source_platform', type=platform_choice())
@click.argument('playlist_id')
@click.argument('target_platform', type=platform_choice())
@click.option('--name', 'target_name', default=None, help='Name of the new playlist (default: source name)')
@click.option('--source-token', envvar='PTE_SOURCE_TOKEN', default=None,
              help='Access token for the source platform (not needed with --snapshot)')
@click.option('--target-token', envvar='PTE_TARGET_TOKEN', required=True,
              help='Access token for the target platform')
@click.option('--snapshot', type=click.Path(exists=True, dir_okay=False), default=None,
              help='JSON playlist with tracks captured from a web player; skips fetching')
@click.option('--batch-size', type=int, default=None, help='Tracks per insert request (overrides config)')
@click.option('--retry-attempts', type=int, default=None, help='Attempts per request on transient errors (overrides config)')
@click.option('--conflict', type=click.Choice([c.value for c in ConflictResolution]), default=None,
              help='What to do with tracks already in the new playlist (overrides config)')
@click.pass_context
def transfer(ctx: click.Context, source_platform: str, playlist_id: str, target_platform: str,
             target_name: str | None, source_token: str | None, target_token: str,
             snapshot: str | None, batch_size: int | None, retry_attempts: int | None, conflict: str | None):
    """Copy a playlist from SOURCE_PLATFORM to TARGET_PLATFORM.

    Tracks are matched one by one on the target platform; tracks without an
    equivalent are reported at the end and do not fail the transfer.
    Press Ctrl+C to cancel a running transfer.
    """
    cfg = ctx.obj
    source = Platform.parse(source_platform)
    target = Platform.parse(target_platform)

    if snapshot:
        playlist = _load_snapshot(snapshot, playlist_id, source)
    else:
        playlist = Playlist(id=playlist_id, name=playlist_id, platform=source)

    credentials = {target: Credential(target_token)}
    if source_token:
        credentials[source] = Credential(source_token)

    try:
        options = TransferOptions.from_config(
            cfg, conflict_resolution=conflict, batch_size=batch_size, retry_attempts=retry_attempts
        )
        request = TransferRequest(
            source_playlist=playlist,
            source_platform=source,
            target_platform=target,
            credentials=credentials,
            options=options,
            target_name=target_name,
            conflict_resolver=_ask if options.conflict_resolution is ConflictResolution.ASK else None,
        )
    except TransferError as e:
        raise click.UsageError(str(e))

    store = get_history_store(cfg)
    try:
        engine = TransferEngine(store, cfg, adapter_factory=provider_adapter_factory(cfg), listeners=[_render])
        started = time.time()
        try:
            job = engine.start_transfer(request)
        except TransferError as e:
            raise click.ClickException(f"{e.kind}: {e}")
        click.echo(f"Transfer {job.id[:8]}: {source.display_name} -> {target.display_name}")

        try:
            while engine.wait(0.5).state is JobState.RUNNING:
                pass
        except KeyboardInterrupt:
            click.echo(click.style("Cancelling after the current request...", fg='yellow'))
            engine.cancel_transfer()
            engine.wait()
        job = engine.get_status()
    finally:
        store.close()

    click.echo(format_summary(
        job.state.value,
        job.transferred_tracks,
        job.total_tracks,
        unmatched=len(job.unmatched),
        errors=len(job.errors),
        duration_seconds=time.time() - started,
    ))
    if job.target_playlist and job.target_playlist.url:
        click.echo(f"Playlist: {job.target_playlist.url}")
    for result in job.unmatched:
        click.echo(f"  not found: {result.original.label}")
    for error in job.errors:
        click.echo(click.style(f"  error: {error}", fg='red'), err=True)

    if job.state is JobState.FAILED:
        ctx.exit(EXIT_FAILED)
    if job.state is JobState.CANCELLED:
        ctx.exit(EXIT_CANCELLED)


__all__ = ["transfer"]
