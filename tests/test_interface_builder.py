from __future__ import annotations

import logging

import pytest

from conftest import make_variable

from commif.core.build import (
    BuildOptions,
    TopicConflictError,
    UnsupportedKindError,
    build_interface,
    surface_type_name,
)
from commif.core.model import Direction, EnumDefinition, ScalarKind
from commif.core.names import ParseError


def _pairs(sd) -> list[tuple[str, str]]:
    return list(sd)


def test_two_members_share_one_root_struct_in_order() -> None:
    desc = build_interface([make_variable("a.b"), make_variable("a.c")])

    assert list(desc.struct_definitions) == ["a_struct"]
    assert _pairs(desc.struct_definitions["a_struct"]) == [("b", "double"), ("c", "double")]
    assert [(t.name, t.type_name) for t in desc.publishers] == [("a", "a_struct")]
    assert desc.subscribers == ()


def test_depth_one_names_become_scalar_topics() -> None:
    desc = build_interface(
        [
            make_variable("speed", "output", "float32"),
            make_variable("throttle", "input", "float64"),
            make_variable("gain", "parameter", "int32"),
        ]
    )

    assert [(t.name, t.type_name) for t in desc.publishers] == [("speed", "float"), ("gain", "int32")]
    assert [(t.name, t.type_name, t.direction) for t in desc.subscribers] == [
        ("throttle", "double", Direction.SUBSCRIBE)
    ]
    assert desc.struct_definitions == {}


def test_nested_paths_create_one_struct_per_intermediate_path() -> None:
    desc = build_interface(
        [
            make_variable("car.engine.rpm"),
            make_variable("car.engine.temp"),
            make_variable("car.speed"),
            make_variable("car.wheel.front.left", kind="boolean"),
        ]
    )

    assert list(desc.struct_definitions) == [
        "car_struct",
        "car.engine_struct",
        "car.wheel_struct",
        "car.wheel.front_struct",
    ]
    cat = desc.struct_definitions
    assert _pairs(cat["car_struct"]) == [
        ("engine", "car.engine_struct"),
        ("speed", "double"),
        ("wheel", "car.wheel_struct"),
    ]
    assert _pairs(cat["car.engine_struct"]) == [("rpm", "double"), ("temp", "double")]
    assert _pairs(cat["car.wheel_struct"]) == [("front", "car.wheel.front_struct")]
    assert _pairs(cat["car.wheel.front_struct"]) == [("left", "bool")]
    assert [(t.name, t.type_name) for t in desc.publishers] == [("car", "car_struct")]


def test_quoted_segments_are_kept_verbatim_in_struct_names() -> None:
    desc = build_interface([make_variable("'a.b'.c.d")])

    assert list(desc.struct_definitions) == ["'a.b'_struct", "'a.b'.c_struct"]
    assert [(t.name, t.type_name) for t in desc.publishers] == [("'a.b'", "'a.b'_struct")]


def test_local_and_calculated_parameter_are_excluded() -> None:
    desc = build_interface(
        [
            make_variable("hidden", "local"),
            make_variable("derived.x", "calculatedParameter"),
            make_variable("visible", "output"),
        ]
    )

    assert [t.name for t in desc.publishers] == ["visible"]
    assert desc.struct_definitions == {}


def test_root_struct_is_shared_across_directions() -> None:
    desc = build_interface(
        [
            make_variable("ctrl.out", "output"),
            make_variable("ctrl.in", "input"),
        ]
    )

    assert [(t.name, t.type_name) for t in desc.publishers] == [("ctrl", "ctrl_struct")]
    assert [(t.name, t.type_name) for t in desc.subscribers] == [("ctrl", "ctrl_struct")]
    assert _pairs(desc.struct_definitions["ctrl_struct"]) == [("out", "double"), ("in", "double")]


def test_first_write_wins_and_logs_conflicting_type(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="commif.core.build")
    desc = build_interface(
        [
            make_variable("a.x", kind="float64"),
            make_variable("a.x", kind="int32"),
            make_variable("a.x", kind="float64"),
        ]
    )

    assert _pairs(desc.struct_definitions["a_struct"]) == [("x", "double")]
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "ignoring 'int32'" in warnings[0].getMessage()


def test_leaf_does_not_overwrite_intermediate_member() -> None:
    desc = build_interface([make_variable("a.b.c"), make_variable("a.b")])

    assert _pairs(desc.struct_definitions["a_struct"]) == [("b", "a.b_struct")]


def test_explicit_logger_receives_diagnostics(caplog: pytest.LogCaptureFixture) -> None:
    log = logging.getLogger("test.builder")
    caplog.set_level(logging.DEBUG, logger="test.builder")
    build_interface([make_variable("x", "local")], log=log)

    assert any("skipping 'x'" in r.getMessage() for r in caplog.records if r.name == "test.builder")


def test_non_scalar_becomes_list_type() -> None:
    desc = build_interface(
        [
            make_variable("samples", kind="float32", is_scalar=False),
            make_variable("s.raw", kind="binary", is_scalar=False),
        ]
    )

    assert [(t.name, t.type_name) for t in desc.publishers] == [("samples", "List<float>"), ("s", "s_struct")]
    assert _pairs(desc.struct_definitions["s_struct"]) == [("raw", "List<byte[]>")]
    assert desc.publishers[0].descriptor.is_list


def test_enum_definitions_explicit_first_then_referenced() -> None:
    mode = EnumDefinition("Mode", (("Off", 0), ("On", 1)))
    gear = EnumDefinition("Gear", (("P", 0), ("D", 1)))
    unused = EnumDefinition("Unused", (("A", 1),))

    desc = build_interface(
        [
            make_variable("car.gear", "input", "enum", enum_type=gear),
            make_variable("mode", "output", "enum", enum_type=mode),
            make_variable("car.gear2", "input", "enum", enum_type=gear),
        ],
        enum_definitions=[unused],
    )

    assert [e.name for e in desc.enum_definitions] == ["Unused", "Gear", "Mode"]
    assert _pairs(desc.struct_definitions["car_struct"]) == [("gear", "Gear"), ("gear2", "Gear")]
    assert [(t.name, t.type_name) for t in desc.publishers] == [("mode", "Mode")]


def test_clocks_are_bool_by_default_and_dropped_when_disabled() -> None:
    variables = [make_variable("tick", kind="triggeredClock"), make_variable("v")]

    desc = build_interface(variables)
    assert [(t.name, t.type_name) for t in desc.publishers] == [("tick", "bool"), ("v", "double")]

    desc = build_interface(variables, options=BuildOptions(include_clocks=False))
    assert [t.name for t in desc.publishers] == ["v"]


def test_custom_struct_suffix() -> None:
    desc = build_interface([make_variable("a.b")], options=BuildOptions(struct_suffix="Type"))

    assert list(desc.struct_definitions) == ["aType"]
    assert desc.publishers[0].type_name == "aType"


def test_build_options_reject_empty_suffix() -> None:
    with pytest.raises(ValueError, match="struct_suffix"):
        BuildOptions(struct_suffix="")


def test_malformed_name_aborts_build() -> None:
    with pytest.raises(ParseError):
        build_interface([make_variable("ok"), make_variable("bad..name")])


@pytest.mark.parametrize("kind", ["undefined", "enum"])
def test_unsupported_kind_aborts_build(kind: str) -> None:
    with pytest.raises(UnsupportedKindError) as ei:
        build_interface([make_variable("x", kind=kind)])
    assert ei.value.kind is ScalarKind(kind)


def test_surface_type_names() -> None:
    assert surface_type_name(make_variable("x", kind="float64")) == "double"
    assert surface_type_name(make_variable("x", kind="uint16")) == "uint16"
    assert surface_type_name(make_variable("x", kind="string", is_scalar=False)) == "List<string>"


def test_root_used_as_scalar_and_struct_is_rejected() -> None:
    with pytest.raises(TopicConflictError, match="already used as a single-segment topic"):
        build_interface([make_variable("a"), make_variable("a.b")])

    with pytest.raises(TopicConflictError, match="already used as a struct topic"):
        build_interface([make_variable("a.b"), make_variable("a")])


def test_duplicate_scalar_topic_is_rejected() -> None:
    with pytest.raises(TopicConflictError, match="declared more than once"):
        build_interface([make_variable("a"), make_variable("a")])


def test_same_root_in_different_directions_is_allowed() -> None:
    desc = build_interface([make_variable("a", "output"), make_variable("a", "input")])

    assert [t.name for t in desc.publishers] == ["a"]
    assert [t.name for t in desc.subscribers] == ["a"]


def test_build_is_deterministic() -> None:
    variables = [
        make_variable("z.y.x"),
        make_variable("a.b", "input"),
        make_variable("z.a"),
        make_variable("m", kind="int8"),
    ]

    first = build_interface(variables)
    second = build_interface(variables)

    assert first == second
    assert first.to_document() == second.to_document()
    assert list(first.to_document()) == ["Version", "StructDefinitions", "Publishers", "Subscribers"]


def test_document_omits_empty_sections() -> None:
    doc = build_interface([]).to_document()
    assert doc == {"Version": 1}

    doc = build_interface([make_variable("a.b", "input", "int64")]).to_document()
    assert doc == {
        "Version": 1,
        "StructDefinitions": [{"Name": "a_struct", "Members": [{"b": "int64"}]}],
        "Subscribers": [{"a": "a_struct"}],
    }


def test_build_rejects_non_descriptor_input() -> None:
    with pytest.raises(TypeError):
        build_interface([{"name": "a"}])  # type: ignore[list-item]
