"""Variables JSON I/O.

The input contract of `commif.core.build.build_interface` as JSON:

{
  "enum_definitions": [
    {"name": "Mode", "items": [{"name": "Off", "value": 0}, {"name": "On", "value": 1}]}
  ],
  "variables": [
    {"name": "car.speed", "causality": "output", "type": "float64"},
    {"name": "car.mode", "causality": "input", "type": "enum", "declared_type": "Mode"},
    {"name": "samples", "causality": "output", "type": "float32", "is_scalar": false}
  ]
}

Rules:
- top-level must be a JSON object; `variables` is required, `enum_definitions`
  defaults to [] when missing (null is rejected)
- `is_scalar` defaults to true; `declared_type` is required for `type: enum`
  and must name an entry of `enum_definitions`
- variable names are kept verbatim (no stripping); they are parsed later
- writer is stable: UTF-8, `indent=2`, key order preserved, newline-terminated
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from commif.core.model import Causality, EnumDefinition, ScalarKind, VariableDescriptor

_MISSING = object()


class VariablesFormatError(ValueError):
    """Raised when a variables document violates the expected shape."""


def _require_dict(value: Any, *, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise VariablesFormatError(f"{where}: expected JSON object, got {type(value).__name__}")
    return value


def _require_list(value: Any, *, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise VariablesFormatError(f"{where}: expected JSON array, got {type(value).__name__}")
    return value


def _require_int(value: Any, *, where: str) -> int:
    # bool is a subclass of int; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise VariablesFormatError(f"{where}: expected int, got {type(value).__name__}")
    return value


def _require_str(value: Any, *, where: str) -> str:
    if not isinstance(value, str):
        raise VariablesFormatError(f"{where}: expected str, got {type(value).__name__}")
    if not value.strip():
        raise VariablesFormatError(f"{where}: must be a non-empty string")
    return value


def _get_array(data: dict[str, Any], key: str, *, where: str) -> list[Any]:
    """Return array value for key; default [] if key missing; error if explicitly null."""
    v = data.get(key, _MISSING)
    if v is _MISSING:
        return []
    if v is None:
        raise VariablesFormatError(f"{where}.{key}: must be an array; got null")
    return _require_list(v, where=f"{where}.{key}")


def _enum_from_json(obj: Any, *, where: str) -> EnumDefinition:
    d = _require_dict(obj, where=where)
    name = _require_str(d.get("name"), where=f"{where}.name")
    items: list[tuple[str, int]] = []
    for j, raw in enumerate(_get_array(d, "items", where=where)):
        item = _require_dict(raw, where=f"{where}.items[{j}]")
        items.append(
            (
                _require_str(item.get("name"), where=f"{where}.items[{j}].name"),
                _require_int(item.get("value"), where=f"{where}.items[{j}].value"),
            )
        )
    return EnumDefinition(name=name, items=tuple(items))


def _variable_from_json(obj: Any, *, where: str, enums: dict[str, EnumDefinition]) -> VariableDescriptor:
    d = _require_dict(obj, where=where)
    name = d.get("name")
    if not isinstance(name, str):
        raise VariablesFormatError(f"{where}.name: expected str, got {type(name).__name__}")

    try:
        causality = Causality.parse(_require_str(d.get("causality"), where=f"{where}.causality"))
        kind = ScalarKind.parse(_require_str(d.get("type"), where=f"{where}.type"))
    except VariablesFormatError:
        raise
    except ValueError as e:
        raise VariablesFormatError(f"{where}: {e}") from e

    is_scalar = d.get("is_scalar", True)
    if not isinstance(is_scalar, bool):
        raise VariablesFormatError(f"{where}.is_scalar: expected bool, got {type(is_scalar).__name__}")

    enum_type: EnumDefinition | None = None
    declared = d.get("declared_type")
    if declared is not None:
        declared = _require_str(declared, where=f"{where}.declared_type")
        enum_type = enums.get(declared)
        if enum_type is None:
            raise VariablesFormatError(f"{where}.declared_type: unknown enum definition {declared!r}")
    elif kind is ScalarKind.ENUM:
        raise VariablesFormatError(f"{where}.declared_type: required for enum variables")

    return VariableDescriptor(name=name, causality=causality, kind=kind, is_scalar=is_scalar, enum_type=enum_type)


def variables_from_json_dict(obj: Any) -> tuple[list[VariableDescriptor], list[EnumDefinition]]:
    """Decode a variables document into (variables, enum_definitions), in document order."""
    data = _require_dict(obj, where="variables.json")

    enum_list: list[EnumDefinition] = []
    enums: dict[str, EnumDefinition] = {}
    for i, raw in enumerate(_get_array(data, "enum_definitions", where="variables.json")):
        e = _enum_from_json(raw, where=f"variables.json.enum_definitions[{i}]")
        if e.name in enums:
            raise VariablesFormatError(f"variables.json.enum_definitions[{i}].name: duplicate enum {e.name!r}")
        enums[e.name] = e
        enum_list.append(e)

    if "variables" not in data:
        raise VariablesFormatError("variables.json: missing required key 'variables'")
    variables = [
        _variable_from_json(raw, where=f"variables.json.variables[{i}]", enums=enums)
        for i, raw in enumerate(_get_array(data, "variables", where="variables.json"))
    ]
    return variables, enum_list


def read_variables_json(path: str | Path) -> tuple[list[VariableDescriptor], list[EnumDefinition]]:
    """Read a variables JSON file. See `variables_from_json_dict`."""
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise VariablesFormatError(f"{p}: invalid JSON: {e}") from e
    return variables_from_json_dict(data)


def variables_to_json_dict(
    variables: list[VariableDescriptor],
    enum_definitions: list[EnumDefinition] | tuple[EnumDefinition, ...] = (),
) -> dict[str, Any]:
    """Encode variables and enums as a JSON-ready dict.

    Enums referenced by variables but missing from `enum_definitions` are
    appended in first-encounter order.
    """
    enums: dict[str, EnumDefinition] = {e.name: e for e in enum_definitions}
    for v in variables:
        if v.enum_type is not None:
            enums.setdefault(v.enum_type.name, v.enum_type)

    out_vars: list[dict[str, Any]] = []
    for v in variables:
        row: dict[str, Any] = {"name": v.name, "causality": v.causality.value, "type": v.kind.value}
        if not v.is_scalar:
            row["is_scalar"] = False
        if v.enum_type is not None:
            row["declared_type"] = v.enum_type.name
        out_vars.append(row)

    return {
        "enum_definitions": [
            {"name": e.name, "items": [{"name": k, "value": val} for k, val in e.items]} for e in enums.values()
        ],
        "variables": out_vars,
    }


def write_variables_json(
    variables: list[VariableDescriptor],
    path: str | Path,
    *,
    enum_definitions: list[EnumDefinition] | tuple[EnumDefinition, ...] = (),
) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(variables_to_json_dict(variables, enum_definitions), indent=2)
    if not text.endswith("\n"):
        text += "\n"
    p.write_text(text, encoding="utf-8")
