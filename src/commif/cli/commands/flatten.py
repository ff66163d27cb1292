"""`commif flatten` command.

Loads an interface JSON document and prints the flattened members of one struct
(or of every struct) as `<struct>\t<qualified_name>\t<type>` lines.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from commif.core.resolve import StructCycleError, StructDefinitionResolver, UnknownStructError
from commif.io.interface import InterfaceFormatError, read_interface_json


def register(app: typer.Typer) -> None:
    @app.command("flatten")
    def flatten(
        interface: str = typer.Argument(..., help="Path to an interface JSON document."),
        struct: Optional[str] = typer.Option(None, "--struct", help="Flatten only this struct definition."),
    ) -> None:
        """Flatten struct definitions into qualified leaf members."""
        try:
            description = read_interface_json(Path(interface))
        except (OSError, InterfaceFormatError) as e:
            raise typer.BadParameter(str(e), param_hint="INTERFACE") from e

        resolver = StructDefinitionResolver(description.struct_definitions)
        try:
            if struct is not None:
                flattened = {struct: resolver.flatten(struct)}
            else:
                flattened = resolver.flatten_all()
        except UnknownStructError as e:
            raise typer.BadParameter(str(e), param_hint="--struct") from e
        except StructCycleError as e:
            raise typer.BadParameter(str(e), param_hint="INTERFACE") from e

        for name, flat in flattened.items():
            for qualified_name, type_name in flat.as_pairs():
                typer.echo(f"{name}\t{qualified_name}\t{type_name}")
