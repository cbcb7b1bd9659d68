"""Transfer history commands."""

from __future__ import annotations
import json as _json

import click

from .helpers import cli, get_history_store

_STATUS_COLORS = {"completed": "green", "failed": "red", "cancelled": "yellow"}


@cli.command(name="history")
@click.option('--limit', '-n', type=int, default=None, help='Show at most N records')
@click.option('--json', 'as_json', is_flag=True, help='Emit JSON instead of a table')
@click.option('--clear', is_flag=True, help='Delete all history records')
@click.pass_context
def history(ctx: click.Context, limit: int | None, as_json: bool, clear: bool):
    """List recent transfers, newest first."""
    store = get_history_store(ctx.obj)
    try:
        if clear:
            if click.confirm("Delete all transfer history?", default=False):
                store.clear()
                click.echo("History cleared")
            return
        records = store.list()
    finally:
        store.close()

    if limit is not None:
        records = records[:max(0, limit)]

    if as_json:
        click.echo(_json.dumps([r.to_dict() for r in records], indent=2))
        return

    if not records:
        click.echo("No transfers yet")
        return

    for r in records:
        when = r.timestamp.astimezone().strftime('%Y-%m-%d %H:%M')
        status = click.style(f"{r.status:<9}", fg=_STATUS_COLORS.get(r.status, 'white'))
        route = f"{r.source_platform.value} -> {r.target_platform.value}"
        counts = f"{r.transferred_tracks}/{r.total_tracks}"
        if r.unmatched:
            counts += f" ({r.unmatched} unmatched)"
        click.echo(f"{when}  {status} {route:<20} {r.source_playlist.name}  {counts}")


__all__ = ["history"]
