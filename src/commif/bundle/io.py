"""Bundle save/load (CSV) for interface packages.

A bundle is a folder rooted at `packages/<name>/<version>/` containing:
- manifest.json
- tables/*.csv (enum_items, struct_members, publishers, subscribers,
  flattened_members)
- raw/interface.json (the interface document, authoritative)
- raw/variables.json (the variables source text, when given)

On load, the tables are validated and checked against the interface document;
a bundle whose tables disagree with `raw/interface.json` is rejected.

This module must not depend on the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from commif.core.build import BuildOptions
from commif.core.model import InterfaceDescription
from commif.core.resolve import StructDefinitionResolver
from commif.core.tables import (
    INTERFACE_TABLES,
    TABLE_COLUMN_ORDER,
    TABLE_SCHEMAS,
    flattened_members_table,
    interface_to_tables,
    normalize_tables,
)
from commif.core.validate import validate_tables
from commif.io.interface import interface_to_json_text, read_interface_json

from .manifest import build_manifest, file_entry, read_manifest, verify_entry, write_manifest

logger = logging.getLogger(__name__)

INTERFACE_PATH = PurePosixPath("raw") / "interface.json"
VARIABLES_PATH = PurePosixPath("raw") / "variables.json"


@dataclass(frozen=True)
class InterfaceBundle:
    root: Path
    manifest: dict[str, Any]
    description: InterfaceDescription
    tables: dict[str, "Any"]  # pandas.DataFrame; kept Any to avoid importing pandas at import time
    raw: dict[str, Any]  # {"source_text": str | None}


def _write_text_exact(path: Path, text: str) -> None:
    # newline="" prevents Python from translating newlines on write
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)


def save_package(
    root: Path,
    *,
    name: str,
    version: str,
    description: InterfaceDescription,
    source_text: str | None = None,
    build_options: BuildOptions | None = None,
    log: logging.Logger | None = None,
) -> dict[str, Any]:
    """Save an interface package to disk and return the manifest dict.

    Raises:
        StructCycleError: the struct catalog cannot be flattened.
    """
    log = log if log is not None else logger
    if not isinstance(description, InterfaceDescription):
        raise TypeError(f"save_package: expected InterfaceDescription, got {type(description).__name__}")
    root = Path(root)
    (root / "tables").mkdir(parents=True, exist_ok=True)

    _write_text_exact(root / INTERFACE_PATH, interface_to_json_text(description))
    sources = [file_entry(root, INTERFACE_PATH)]
    if source_text is not None:
        _write_text_exact(root / VARIABLES_PATH, source_text)
        sources.append(file_entry(root, VARIABLES_PATH))

    # flattening raises on cycles before any CSV is written
    tables = interface_to_tables(description)
    tables["flattened_members"] = flattened_members_table(StructDefinitionResolver(description.struct_definitions))

    table_entries: dict[str, dict[str, Any]] = {}
    for table_name, df in tables.items():
        rel = PurePosixPath("tables") / f"{table_name}.csv"
        frame = df.loc[:, TABLE_COLUMN_ORDER[table_name]]
        frame.to_csv(root / rel, index=False, lineterminator="\n")
        table_entries[table_name] = file_entry(
            root,
            rel,
            rows=int(len(frame)),
            dtypes={c: str(frame[c].dtype) for c in frame.columns},
        )

    manifest = build_manifest(
        name=name,
        version=version,
        sources=sources,
        tables=table_entries,
        interface_version=description.version,
        build_options=asdict(build_options) if build_options is not None else None,
    )
    write_manifest(root, manifest)
    log.info("saved interface package %s %s to %s", manifest["name"], manifest["version"], root)
    return manifest


def _read_table_csv(path: Path, table_name: str) -> "Any":
    import pandas as pd  # local import

    if not path.is_file():
        raise ValueError(f"tables.{table_name}: file not found: {path}")
    # names are read verbatim; normalization casts the position columns
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def _check_consistency(description: InterfaceDescription, tables: dict[str, Any]) -> None:
    expected = interface_to_tables(description)
    for table_name in INTERFACE_TABLES:
        if table_name not in tables:
            raise ValueError(f"bundle: missing table {table_name!r}")
        if tables[table_name].to_dict("records") != expected[table_name].to_dict("records"):
            raise ValueError(f"bundle: table {table_name!r} does not match {INTERFACE_PATH.as_posix()}")


def load_package(root: Path, *, validate_hashes: bool = False) -> InterfaceBundle:
    """Load an interface package from disk.

    If validate_hashes is True, recompute sha256 for sources and tables and raise
    ValueError on any mismatch. Table schema violations raise
    `TableValidationError`.
    """
    root = Path(root)
    manifest = read_manifest(root)

    if validate_hashes:
        for item in manifest["sources"]:
            verify_entry(root, item, where="sources[*]")
        for table_name, meta in manifest["tables"].items():
            verify_entry(root, meta, where=f"tables.{table_name}")

    description = read_interface_json(root / INTERFACE_PATH)
    variables_path = root / VARIABLES_PATH
    source_text = variables_path.read_text(encoding="utf-8") if variables_path.is_file() else None

    tables: dict[str, Any] = {}
    for table_name, meta in manifest["tables"].items():
        if table_name not in TABLE_SCHEMAS:
            raise ValueError(f"manifest.json: unknown table {table_name!r}")
        rel = meta.get("path") if isinstance(meta, dict) else None
        if not isinstance(rel, str) or not rel:
            raise ValueError(f"manifest.json: tables.{table_name}.path must be a non-empty string")
        tables[table_name] = _read_table_csv(root / rel, table_name)

    validate_tables(tables)
    tables_norm = normalize_tables(tables)
    _check_consistency(description, tables_norm)

    return InterfaceBundle(
        root=root,
        manifest=manifest,
        description=description,
        tables=tables_norm,
        raw={"source_text": source_text},
    )
