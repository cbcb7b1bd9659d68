"""CLI package bootstrap.

Defines root group (`cli`) in helpers and imports submodules so their
decorators register commands. Keep this file minimal to avoid circular
imports and duplication.
"""
from pte.cli.helpers import cli  # root group
from pte.cli import transfer_cmds  # noqa: F401
from pte.cli import history_cmds  # noqa: F401
from pte.cli import config_cmds  # noqa: F401

__all__ = ["cli"]
