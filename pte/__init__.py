"""Playlist transfer engine.

Moves a playlist from one music service to another by resolving each track
on the target service, creating the destination playlist and inserting the
matches in batches.
"""
from .version import __version__

__all__ = ["__version__"]
