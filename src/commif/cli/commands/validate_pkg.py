"""`commif validate` command.

Validates an interface package bundle on disk:
- loads and validates CSV tables via commif.bundle.io.load_package()
- checks custom type references via commif.core.validate.validate_type_references()
- optionally validates manifest sha256 hashes

Prints a one-line summary on success.
"""

from __future__ import annotations

from pathlib import Path

import typer

from commif.bundle.io import load_package
from commif.core.validate import validate_type_references


def register(app: typer.Typer) -> None:
    @app.command("validate")
    def validate(
        path: str = typer.Option(..., "--path", help="Path to a package root (packages/<name>/<version>)."),
        validate_hashes: bool = typer.Option(False, "--validate-hashes", help="Recompute sha256 and compare to manifest."),
        skip_type_check: bool = typer.Option(
            False, "--skip-type-check", help="Do not require custom type names to resolve."
        ),
    ) -> None:
        """Validate an interface package bundle."""
        root = Path(path)
        if not root.is_dir():
            raise typer.BadParameter(f"not a directory: {root}", param_hint="--path")

        try:
            bundle = load_package(root, validate_hashes=validate_hashes)
            if not skip_type_check:
                validate_type_references(bundle.description)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--path") from e

        desc = bundle.description
        typer.echo(
            f"OK {bundle.manifest['name']}@{bundle.manifest['version']}: "
            f"{len(desc.publishers)} publishers, {len(desc.subscribers)} subscribers, "
            f"{len(desc.struct_definitions)} structs"
        )
