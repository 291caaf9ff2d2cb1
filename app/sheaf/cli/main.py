"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from sheaf import __version__
from sheaf.cli.commands import copy, delete, init, move, pack, walk
from sheaf.utils.formatting import err_console, set_quiet

# Create main Typer app
app = typer.Typer(
    name="sheaf",
    help="Pattern-filtered batch file operations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sheaf version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr; DEBUG when verbose, warnings otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log every file operation.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """sheaf - copy, move, delete, pack and list files by glob pattern.

    Combine files and directory trees, filter them with include and
    exclude patterns, and apply one action to all of them.
    """
    # Store options in context for commands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose)
    set_quiet(quiet)


# Register commands
app.command(name="walk")(walk.walk)
app.command(name="copy")(copy.copy)
app.command(name="move")(move.move)
app.command(name="delete")(delete.delete)
app.command(name="pack")(pack.pack)
app.command(name="init")(init.init_recipe)


if __name__ == "__main__":
    app()
