"""Interface description JSON I/O.

Document shape (see `InterfaceDescription.to_document`):

{
  "Version": 1,
  "EnumDefinitions": [{"Name": "Mode", "Items": [{"Off": 0}, {"On": 1}]}],
  "StructDefinitions": [{"Name": "car_struct", "Members": [{"speed": "double"}]}],
  "Publishers": [{"car": "car_struct"}],
  "Subscribers": [{"throttle": "double"}]
}

Every list entry is a single-key object so document order is the declaration
order. Empty sections are omitted on write and default to [] on read.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from commif.core.model import (
    INTERFACE_VERSION,
    Direction,
    EnumDefinition,
    InterfaceDescription,
    StructDefinition,
    Topic,
)

_MISSING = object()


class InterfaceFormatError(ValueError):
    """Raised when an interface document violates the expected shape."""


def _require_dict(value: Any, *, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InterfaceFormatError(f"{where}: expected JSON object, got {type(value).__name__}")
    return value


def _require_list(value: Any, *, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise InterfaceFormatError(f"{where}: expected JSON array, got {type(value).__name__}")
    return value


def _get_array(data: dict[str, Any], key: str) -> list[Any]:
    v = data.get(key, _MISSING)
    if v is _MISSING:
        return []
    if v is None:
        raise InterfaceFormatError(f"{key}: must be an array; got null")
    return _require_list(v, where=key)


def _single_pair(value: Any, *, where: str) -> tuple[str, Any]:
    d = _require_dict(value, where=where)
    if len(d) != 1:
        raise InterfaceFormatError(f"{where}: expected a single-key object, got {len(d)} keys")
    ((k, v),) = d.items()
    return k, v


def _pairs(entries: list[Any], *, where: str, value_type: type) -> list[tuple[str, Any]]:
    out: list[tuple[str, Any]] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        k, v = _single_pair(entry, where=f"{where}[{i}]")
        if isinstance(v, bool) or not isinstance(v, value_type):
            raise InterfaceFormatError(f"{where}[{i}].{k}: expected {value_type.__name__}, got {type(v).__name__}")
        if k in seen:
            raise InterfaceFormatError(f"{where}[{i}]: duplicate name {k!r}")
        seen.add(k)
        out.append((k, v))
    return out


def interface_from_document(obj: Any) -> InterfaceDescription:
    """Decode an interface document (as produced by `to_document`)."""
    doc = _require_dict(obj, where="interface")

    version = doc.get("Version", _MISSING)
    if version is _MISSING:
        raise InterfaceFormatError("interface: missing required key 'Version'")
    if version != INTERFACE_VERSION:
        raise InterfaceFormatError(f"interface.Version: unsupported version {version!r}")

    try:
        enums: list[EnumDefinition] = []
        for i, raw in enumerate(_get_array(doc, "EnumDefinitions")):
            where = f"EnumDefinitions[{i}]"
            e = _require_dict(raw, where=where)
            items = _pairs(_require_list(e.get("Items", []), where=f"{where}.Items"), where=f"{where}.Items", value_type=int)
            enums.append(EnumDefinition(name=e.get("Name"), items=tuple(items)))

        structs: dict[str, StructDefinition] = {}
        for i, raw in enumerate(_get_array(doc, "StructDefinitions")):
            where = f"StructDefinitions[{i}]"
            s = _require_dict(raw, where=where)
            members = _pairs(
                _require_list(s.get("Members", []), where=f"{where}.Members"), where=f"{where}.Members", value_type=str
            )
            sd = StructDefinition(s.get("Name"), members)
            if sd.name in structs:
                raise InterfaceFormatError(f"{where}.Name: duplicate struct {sd.name!r}")
            structs[sd.name] = sd

        publishers = tuple(
            Topic(n, Direction.PUBLISH, t) for n, t in _pairs(_get_array(doc, "Publishers"), where="Publishers", value_type=str)
        )
        subscribers = tuple(
            Topic(n, Direction.SUBSCRIBE, t)
            for n, t in _pairs(_get_array(doc, "Subscribers"), where="Subscribers", value_type=str)
        )
    except InterfaceFormatError:
        raise
    except ValueError as e:
        raise InterfaceFormatError(str(e)) from e

    return InterfaceDescription(
        enum_definitions=tuple(enums),
        struct_definitions=structs,
        publishers=publishers,
        subscribers=subscribers,
    )


def read_interface_json(path: str | Path) -> InterfaceDescription:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InterfaceFormatError(f"{p}: invalid JSON: {e}") from e
    return interface_from_document(data)


def interface_to_json_text(description: InterfaceDescription) -> str:
    """Serialize deterministically: `indent=2`, key order preserved, newline-terminated."""
    text = json.dumps(description.to_document(), indent=2, ensure_ascii=False)
    if not text.endswith("\n"):
        text += "\n"
    return text


def write_interface_json(description: InterfaceDescription, path: str | Path) -> None:
    """Write the interface document to `path` (UTF-8), creating parent dirs."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(interface_to_json_text(description), encoding="utf-8")
