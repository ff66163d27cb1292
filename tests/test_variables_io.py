from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import make_variable, make_variables_doc, write_json

from commif.core.build import build_interface
from commif.core.model import Causality, EnumDefinition, ScalarKind
from commif.io.interface import (
    InterfaceFormatError,
    interface_from_document,
    read_interface_json,
    write_interface_json,
)
from commif.io.variables import (
    VariablesFormatError,
    read_variables_json,
    variables_from_json_dict,
    variables_to_json_dict,
    write_variables_json,
)

_MODE = {"name": "Mode", "items": [{"name": "Off", "value": 0}, {"name": "On", "value": 1}]}


def test_variables_from_json_dict_decodes_in_order() -> None:
    doc = make_variables_doc(
        [
            {"name": "car.speed", "causality": "output", "type": "float64"},
            {"name": "car.mode", "causality": "Input", "type": "enum", "declared_type": "Mode"},
            {"name": "samples", "causality": "LOCAL", "type": "float32", "is_scalar": False},
        ],
        [_MODE],
    )

    variables, enums = variables_from_json_dict(doc)

    assert [v.name for v in variables] == ["car.speed", "car.mode", "samples"]
    assert [v.causality for v in variables] == [Causality.OUTPUT, Causality.INPUT, Causality.LOCAL]
    assert variables[1].kind is ScalarKind.ENUM
    assert variables[1].enum_type == EnumDefinition("Mode", (("Off", 0), ("On", 1)))
    assert variables[2].is_scalar is False
    assert [e.name for e in enums] == ["Mode"]


def test_variable_names_are_not_stripped() -> None:
    variables, _ = variables_from_json_dict(make_variables_doc([{"name": " a ", "causality": "output", "type": "int8"}]))
    assert variables[0].name == " a "


@pytest.mark.parametrize(
    "doc, match",
    [
        ([], "expected JSON object"),
        ({}, "missing required key 'variables'"),
        ({"variables": None}, "must be an array; got null"),
        ({"variables": [{"name": "a", "causality": "sideways", "type": "int8"}]}, "unknown value 'sideways'"),
        ({"variables": [{"name": "a", "causality": "output", "type": "complex"}]}, "unknown value 'complex'"),
        ({"variables": [{"name": "a", "causality": "output", "type": "enum"}]}, "required for enum variables"),
        (
            {"variables": [{"name": "a", "causality": "output", "type": "enum", "declared_type": "Nope"}]},
            "unknown enum definition 'Nope'",
        ),
        ({"variables": [{"name": "a", "causality": "output", "type": "int8", "is_scalar": "no"}]}, "expected bool"),
        ({"variables": [{"name": 3, "causality": "output", "type": "int8"}]}, "expected str"),
        ({"enum_definitions": [{"name": "E", "items": [{"name": "x", "value": True}]}], "variables": []}, "expected int"),
        ({"enum_definitions": [_MODE, _MODE], "variables": []}, "duplicate enum 'Mode'"),
    ],
)
def test_variables_from_json_dict_rejects_bad_shapes(doc: object, match: str) -> None:
    with pytest.raises(VariablesFormatError, match=match):
        variables_from_json_dict(doc)


def test_read_variables_json_rejects_invalid_json(tmp_path: Path) -> None:
    p = tmp_path / "variables.json"
    p.write_text("{not json", encoding="utf-8")

    with pytest.raises(VariablesFormatError, match="invalid JSON"):
        read_variables_json(p)


def test_variables_json_file_roundtrip(tmp_path: Path) -> None:
    mode = EnumDefinition("Mode", (("Off", 0), ("On", 1)))
    variables = [
        make_variable("a.b", "input", "enum", enum_type=mode),
        make_variable("c", "output", "binary", is_scalar=False),
    ]
    p = tmp_path / "out" / "variables.json"

    write_variables_json(variables, p)
    back, enums = read_variables_json(p)

    assert back == variables
    assert enums == [mode]
    assert variables_to_json_dict(back, enums) == json.loads(p.read_text(encoding="utf-8"))


def test_write_interface_json_preserves_order(tmp_path: Path) -> None:
    desc = build_interface(
        [make_variable("z.y"), make_variable("a", "input"), make_variable("z.b", kind="int16")]
    )
    p = tmp_path / "interface.json"

    write_interface_json(desc, p)
    text = p.read_text(encoding="utf-8")

    assert text.endswith("}\n")
    assert text.index('"y"') < text.index('"b"')
    assert list(json.loads(text)) == ["Version", "StructDefinitions", "Publishers", "Subscribers"]

    back = read_interface_json(p)
    assert back.to_document() == desc.to_document()
    assert back == desc


def test_interface_from_document_rejects_bad_shapes() -> None:
    with pytest.raises(InterfaceFormatError, match="missing required key 'Version'"):
        interface_from_document({})
    with pytest.raises(InterfaceFormatError, match="unsupported version 2"):
        interface_from_document({"Version": 2})
    with pytest.raises(InterfaceFormatError, match="single-key object"):
        interface_from_document({"Version": 1, "Publishers": [{"a": "int8", "b": "int8"}]})
    with pytest.raises(InterfaceFormatError, match="duplicate name 'x'"):
        interface_from_document(
            {"Version": 1, "StructDefinitions": [{"Name": "s", "Members": [{"x": "int8"}, {"x": "double"}]}]}
        )
    with pytest.raises(InterfaceFormatError, match=r"StructDefinition\.name"):
        interface_from_document({"Version": 1, "StructDefinitions": [{"Members": []}]})


def test_written_file_is_parsed_by_json(tmp_path: Path) -> None:
    p = tmp_path / "v.json"
    write_json(p, make_variables_doc([{"name": "x", "causality": "output", "type": "string"}]))

    variables, enums = read_variables_json(p)

    assert [v.kind for v in variables] == [ScalarKind.STRING]
    assert enums == []
