"""commif CLI entrypoint.

Typer application; each subcommand lives in `commif.cli.commands.<name>` and
registers itself via `register(app)`.
"""

from __future__ import annotations

import logging

import typer

app = typer.Typer(
    name="commif",
    add_completion=False,
    no_args_is_help=True,
    help="commif (communication interface) command line interface.",
)


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log build/flatten diagnostics to stderr."),
) -> None:
    """commif CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command("version")
def version() -> None:
    """Print the installed commif version."""
    from commif import __version__

    typer.echo(__version__)


def _register_commands() -> None:
    """Register CLI subcommands.

    Importing these modules must remain lightweight so `commif --help` is fast.
    """
    from commif.cli.commands import flatten as flatten_cmd
    from commif.cli.commands import generate as generate_cmd
    from commif.cli.commands import parse_name as parse_name_cmd
    from commif.cli.commands import validate_pkg as validate_pkg_cmd

    parse_name_cmd.register(app)
    generate_cmd.register(app)
    flatten_cmd.register(app)
    validate_pkg_cmd.register(app)


_register_commands()
