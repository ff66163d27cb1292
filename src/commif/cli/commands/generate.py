"""`commif generate` command.

Reads a variables JSON document, synthesizes the communication interface and
writes the interface JSON document. Optionally also saves an interface package
bundle (tables + manifest) to `--package-dir`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from commif.bundle.io import save_package
from commif.core.build import BuildOptions, build_interface
from commif.core.validate import validate_type_references
from commif.io.interface import write_interface_json
from commif.io.variables import read_variables_json

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    @app.command("generate")
    def generate(
        variables: str = typer.Argument(..., help="Path to a variables JSON document."),
        out: str = typer.Option(..., "--out", help="Output interface JSON path."),
        no_clocks: bool = typer.Option(False, "--no-clocks", help="Drop triggeredClock variables."),
        struct_suffix: str = typer.Option("_struct", "--struct-suffix", help="Suffix naming generated structs."),
        check_types: bool = typer.Option(
            False, "--check-types", help="Fail when a custom type name resolves to no struct or enum."
        ),
        package_dir: Optional[str] = typer.Option(None, "--package-dir", help="Also save a package bundle here."),
        name: Optional[str] = typer.Option(None, "--name", help="Package name (required with --package-dir)."),
        version: Optional[str] = typer.Option(None, "--version", help="Package version (required with --package-dir)."),
    ) -> None:
        """Generate an interface JSON document from a variables JSON document."""
        if package_dir is not None and (not name or not version):
            raise typer.BadParameter("--name and --version are required with --package-dir")

        src_path = Path(variables)
        try:
            options = BuildOptions(include_clocks=not no_clocks, struct_suffix=struct_suffix)
            var_list, enum_defs = read_variables_json(src_path)
            description = build_interface(var_list, enum_definitions=enum_defs, options=options)
            if check_types:
                validate_type_references(description)
        except OSError as e:
            raise typer.BadParameter(str(e), param_hint="VARIABLES") from e
        except ValueError as e:
            raise typer.BadParameter(str(e)) from e

        out_path = Path(out)
        write_interface_json(description, out_path)
        logger.info(
            "wrote %s: %d publishers, %d subscribers, %d structs",
            out_path,
            len(description.publishers),
            len(description.subscribers),
            len(description.struct_definitions),
        )

        if package_dir is not None:
            try:
                save_package(
                    Path(package_dir),
                    name=str(name),
                    version=str(version),
                    description=description,
                    source_text=src_path.read_text(encoding="utf-8"),
                    build_options=options,
                )
            except ValueError as e:
                raise typer.BadParameter(str(e), param_hint="--package-dir") from e

        typer.echo(str(out_path))
