"""Logging helper utilities for consistent progress reporting."""

import click

_STATE_COLORS = {
    "completed": "green",
    "failed": "red",
    "cancelled": "yellow",
}


def format_progress(progress: int, message: str, width: int = 24) -> str:
    """Render a one-line progress bar: ``[######------]  42% message``.

    Args:
        progress: Percentage 0-100 (clamped)
        message: Status message shown after the bar
        width: Bar width in characters
    """
    progress = max(0, min(100, int(progress)))
    filled = width * progress // 100
    bar = click.style('#' * filled, fg='cyan') + '-' * (width - filled)
    return f"[{bar}] {progress:3d}% {message}"


def format_summary(
    state: str,
    transferred: int,
    total: int,
    unmatched: int = 0,
    errors: int = 0,
    duration_seconds: float = 0.0,
) -> str:
    """Format a transfer summary line with colored counts.

    Args:
        state: Terminal job state (completed, failed, cancelled)
        transferred: Tracks added to the target playlist
        total: Tracks in the source playlist
        unmatched: Tracks with no equivalent on the target platform
        errors: Recorded job errors
        duration_seconds: Wall time of the job

    Returns:
        Formatted summary string with colors
    """
    color = _STATE_COLORS.get(state, 'white')
    mark = '✓' if state == 'completed' else '✗'
    parts = [
        click.style(mark, fg=color),
        click.style(state.capitalize(), fg=color, bold=True) + ":",
        click.style(f'{transferred}/{total} transferred', fg='green' if transferred else 'yellow'),
    ]

    if unmatched > 0:
        parts.append(click.style(f'{unmatched} unmatched', fg='yellow'))
    if errors > 0:
        parts.append(click.style(f'{errors} error(s)', fg='red'))

    if duration_seconds > 0:
        parts.append(f"in {duration_seconds:.2f}s")

    return " ".join(parts)


__all__ = ["format_progress", "format_summary"]
