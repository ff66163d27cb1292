"""Pytest configuration.

This repo follows the `src/` layout. Some environments may invoke a `pytest`
entrypoint from a different Python install than the one used for
`python -m pip install -e ...`, which can cause `import commif` to fail.

We ensure `src/` is on `sys.path` during tests.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


# =============================================================================
# Shared test helpers
# =============================================================================


def make_variable(
    name: str,
    causality: str = "output",
    kind: str = "float64",
    *,
    is_scalar: bool = True,
    enum_type: Any = None,
) -> Any:
    """Create a VariableDescriptor (imported lazily so sys.path is set first)."""
    from commif.core.model import VariableDescriptor

    return VariableDescriptor(name=name, causality=causality, kind=kind, is_scalar=is_scalar, enum_type=enum_type)


def make_variables_doc(
    variables: list[dict[str, Any]],
    enum_definitions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Create a variables JSON document."""
    return {"enum_definitions": enum_definitions or [], "variables": list(variables)}


def write_json(path: Path, obj: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, indent=2) + "\n", encoding="utf-8")
