from __future__ import annotations
import copy
from pathlib import Path

import click

from ..config import load_typed_config
from ..db import SqliteHistoryStore
from ..providers import available_provider_instances
from ..version import __version__

# Config keys whose values never reach the terminal
_SECRET_KEYS = {"developer_token", "access_token"}


def get_history_store(cfg: dict) -> SqliteHistoryStore:
    """Open the history store configured under ``history``."""
    history = cfg.get('history', {})
    return SqliteHistoryStore(Path(history.get('path', 'data/history.db')), int(history.get('max_records', 50)))


def redact_config(cfg: dict) -> dict:
    """Copy of ``cfg`` with secret values masked."""
    result = copy.deepcopy(cfg)

    def _walk(node):
        if isinstance(node, dict):
            for key, value in node.items():
                if key in _SECRET_KEYS and value:
                    node[key] = '*** redacted ***'
                else:
                    _walk(value)

    _walk(result)
    return result


def platform_choice() -> click.Choice:
    return click.Choice(available_provider_instances(), case_sensitive=False)


@click.group()
@click.version_option(version=__version__, prog_name="playlist-transfer-engine")
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default=None, help='Override log_level from configuration')
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """Transfer playlists between music streaming services.

    \b
    TYPICAL WORKFLOWS:

    \b
    Transfer a playlist:
      pte transfer spotify 37i9dQZF1DXcBWIGoYBM5M youtube \\
          --source-token ... --target-token ...

    \b
    Transfer a playlist captured from a web player:
      pte transfer spotify PLAYLIST_ID apple --snapshot playlist.json

    \b
    Review:
      pte history          # Recent transfers, newest first
      pte config           # Effective configuration

    \b
    Configuration comes from PTE__* environment variables (or .env), e.g.
    PTE__TRANSFER__BATCH_SIZE=20 or PTE__PROVIDERS__APPLE__DEVELOPER_TOKEN=...
    """
    overrides = {'log_level': log_level.upper()} if log_level else None
    if isinstance(ctx.obj, dict):
        if overrides:
            ctx.obj = {**ctx.obj, **overrides}
    else:
        ctx.obj = load_typed_config(overrides).to_dict()


__all__ = ["cli", "get_history_store", "redact_config", "platform_choice"]
