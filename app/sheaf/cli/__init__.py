"""CLI package for sheaf.

This package contains the Typer application and all commands.
"""

from sheaf.cli.main import app

__all__ = ["app"]
