"""Quickcheck workspace: variables -> interface -> package -> reload -> flatten.

This workspace is self-contained (no repo-level assets required). It writes a
small synthetic variables document, generates the interface, saves a package
bundle under `workspaces/00_quickcheck_generate/outputs/packages/<name>/<version>/`,
reloads it with hash validation, and writes a JSON report.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from commif.bundle.io import load_package, save_package
from commif.core.build import build_interface
from commif.core.resolve import StructDefinitionResolver
from commif.io.interface import write_interface_json
from commif.io.variables import read_variables_json


def _fixture_variables() -> dict[str, Any]:
    return {
        "enum_definitions": [
            {"name": "Gear", "items": [{"name": "P", "value": 0}, {"name": "R", "value": 1}, {"name": "D", "value": 2}]}
        ],
        "variables": [
            {"name": "vehicle.speed", "causality": "output", "type": "float64"},
            {"name": "vehicle.engine.rpm", "causality": "output", "type": "float32"},
            {"name": "vehicle.'wheel.fl'.slip", "causality": "output", "type": "float64"},
            {"name": "vehicle.gear", "causality": "input", "type": "enum", "declared_type": "Gear"},
            {"name": "throttle", "causality": "input", "type": "float64"},
            {"name": "trace", "causality": "output", "type": "float64", "is_scalar": False},
            {"name": "tick", "causality": "output", "type": "triggeredClock"},
            {"name": "tmp", "causality": "local", "type": "int32"},
        ],
    }


def _write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def main() -> None:
    here = Path(__file__).resolve().parent
    outputs = here / "outputs"
    outputs.mkdir(parents=True, exist_ok=True)

    pkg_name = "demo-vehicle"
    pkg_version = "v0"
    pkg_root = outputs / "packages" / pkg_name / pkg_version

    variables_path = outputs / "variables.json"
    _write_json(variables_path, _fixture_variables())

    variables, enums = read_variables_json(variables_path)
    description = build_interface(variables, enum_definitions=enums)
    write_interface_json(description, outputs / "interface.json")

    save_package(
        pkg_root,
        name=pkg_name,
        version=pkg_version,
        description=description,
        source_text=variables_path.read_text(encoding="utf-8"),
    )
    bundle = load_package(pkg_root, validate_hashes=True)

    ok_roundtrip = bundle.description == description
    ok_rebuild = build_interface(variables, enum_definitions=enums).to_document() == description.to_document()

    resolver = StructDefinitionResolver(bundle.description.struct_definitions)
    flattened = {name: flat.as_pairs() for name, flat in resolver.flatten_all().items()}

    report = {
        "package_root": str(pkg_root),
        "roundtrip_equal": ok_roundtrip,
        "rebuild_deterministic": ok_rebuild,
        "publishers": [t.name for t in description.publishers],
        "subscribers": [t.name for t in description.subscribers],
        "flattened": flattened,
    }
    _write_json(outputs / "quickcheck_report.json", report)

    if not (ok_roundtrip and ok_rebuild):
        raise SystemExit("quickcheck failed; see outputs/quickcheck_report.json")


if __name__ == "__main__":
    main()
