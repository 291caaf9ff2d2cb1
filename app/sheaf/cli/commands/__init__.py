"""CLI commands for sheaf.

This package contains all command implementations.
"""

from sheaf.cli.commands import copy, delete, init, move, pack, walk

__all__ = ["copy", "delete", "init", "move", "pack", "walk"]
