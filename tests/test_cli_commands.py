from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from conftest import make_variables_doc, write_json

from commif import __version__
from commif.cli.main import app


def _write_demo_variables(path: Path) -> Path:
    write_json(
        path,
        make_variables_doc(
            [
                {"name": "car.speed", "causality": "output", "type": "float64"},
                {"name": "car.engine.rpm", "causality": "output", "type": "int32"},
                {"name": "tick", "causality": "output", "type": "triggeredClock"},
                {"name": "cmd.mode", "causality": "input", "type": "enum", "declared_type": "Mode"},
                {"name": "scratch", "causality": "local", "type": "float64"},
            ],
            [{"name": "Mode", "items": [{"name": "Off", "value": 0}, {"name": "On", "value": 1}]}],
        ),
    )
    return path


def test_version() -> None:
    result = CliRunner().invoke(app, ["version"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == __version__


def test_parse_name_prints_segments() -> None:
    result = CliRunner().invoke(app, ["parse-name", "a.'b.c'.d"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == ["a", "'b.c'", "d"]


def test_parse_name_rejects_malformed() -> None:
    result = CliRunner().invoke(app, ["parse-name", "a..b"])
    assert result.exit_code == 2


def test_generate_writes_interface_document(tmp_path: Path) -> None:
    runner = CliRunner()
    variables = _write_demo_variables(tmp_path / "variables.json")
    out = tmp_path / "out" / "interface.json"

    result = runner.invoke(app, ["generate", str(variables), "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(out)

    doc = json.loads(out.read_text(encoding="utf-8"))
    assert doc == {
        "Version": 1,
        "EnumDefinitions": [{"Name": "Mode", "Items": [{"Off": 0}, {"On": 1}]}],
        "StructDefinitions": [
            {"Name": "car_struct", "Members": [{"speed": "double"}, {"engine": "car.engine_struct"}]},
            {"Name": "car.engine_struct", "Members": [{"rpm": "int32"}]},
            {"Name": "cmd_struct", "Members": [{"mode": "Mode"}]},
        ],
        "Publishers": [{"car": "car_struct"}, {"tick": "bool"}],
        "Subscribers": [{"cmd": "cmd_struct"}],
    }


def test_generate_options(tmp_path: Path) -> None:
    variables = _write_demo_variables(tmp_path / "variables.json")
    out = tmp_path / "interface.json"

    result = CliRunner().invoke(
        app,
        ["generate", str(variables), "--out", str(out), "--no-clocks", "--struct-suffix", "_t", "--check-types"],
    )
    assert result.exit_code == 0, result.output

    doc = json.loads(out.read_text(encoding="utf-8"))
    assert doc["Publishers"] == [{"car": "car_t"}]
    assert [s["Name"] for s in doc["StructDefinitions"]] == ["car_t", "car.engine_t", "cmd_t"]


def test_generate_maps_library_errors_to_bad_parameter(tmp_path: Path) -> None:
    variables = tmp_path / "variables.json"
    write_json(variables, make_variables_doc([{"name": "bad.", "causality": "output", "type": "int8"}]))

    result = CliRunner().invoke(app, ["generate", str(variables), "--out", str(tmp_path / "i.json")])

    assert result.exit_code == 2
    assert not (tmp_path / "i.json").exists()


def test_generate_package_then_validate(tmp_path: Path) -> None:
    runner = CliRunner()
    variables = _write_demo_variables(tmp_path / "variables.json")
    pkg = tmp_path / "packages" / "demo" / "v0"

    result = runner.invoke(
        app,
        [
            "generate",
            str(variables),
            "--out",
            str(tmp_path / "interface.json"),
            "--package-dir",
            str(pkg),
            "--name",
            "demo",
            "--version",
            "v0",
        ],
    )
    assert result.exit_code == 0, result.output
    assert (pkg / "manifest.json").is_file()
    assert (pkg / "raw" / "variables.json").read_text(encoding="utf-8") == variables.read_text(encoding="utf-8")

    result = runner.invoke(app, ["validate", "--path", str(pkg), "--validate-hashes"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "OK demo@v0: 2 publishers, 1 subscribers, 3 structs"


def test_generate_package_requires_name_and_version(tmp_path: Path) -> None:
    variables = _write_demo_variables(tmp_path / "variables.json")

    result = CliRunner().invoke(
        app, ["generate", str(variables), "--out", str(tmp_path / "i.json"), "--package-dir", str(tmp_path / "pkg")]
    )

    assert result.exit_code == 2


def test_validate_requires_existing_directory(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["validate"])
    assert result.exit_code == 2

    result = CliRunner().invoke(app, ["validate", "--path", str(tmp_path / "missing")])
    assert result.exit_code == 2


def test_flatten_prints_qualified_members(tmp_path: Path) -> None:
    runner = CliRunner()
    variables = _write_demo_variables(tmp_path / "variables.json")
    interface = tmp_path / "interface.json"
    assert runner.invoke(app, ["generate", str(variables), "--out", str(interface)]).exit_code == 0

    result = runner.invoke(app, ["flatten", str(interface), "--struct", "car_struct"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "car_struct\tspeed\tdouble",
        "car_struct\tengine.rpm\tint32",
    ]

    result = runner.invoke(app, ["flatten", str(interface)])
    assert result.exit_code == 0, result.output
    assert len(result.output.splitlines()) == 4


def test_flatten_reports_unknown_struct_and_cycles(tmp_path: Path) -> None:
    runner = CliRunner()
    interface = tmp_path / "interface.json"
    write_json(
        interface,
        {"Version": 1, "StructDefinitions": [{"Name": "node", "Members": [{"next": "node"}]}]},
    )

    result = runner.invoke(app, ["flatten", str(interface), "--struct", "nope"])
    assert result.exit_code == 2

    result = runner.invoke(app, ["flatten", str(interface)])
    assert result.exit_code == 2
