"""`commif parse-name` command.

Prints the segments of a structured variable name, one per line, verbatim.
"""

from __future__ import annotations

import typer

from commif.core.names import ParseError, parse_structured_name


def register(app: typer.Typer) -> None:
    @app.command("parse-name")
    def parse_name(
        name: str = typer.Argument(..., help="Structured variable name, e.g. \"a.'b.c'.d\"."),
    ) -> None:
        """Split a structured variable name into its path segments."""
        try:
            parsed = parse_structured_name(name)
        except ParseError as e:
            raise typer.BadParameter(str(e), param_hint="NAME") from e

        for segment in parsed.segments:
            typer.echo(segment)
