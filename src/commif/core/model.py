"""Core data model for commif.

- Input side: `VariableDescriptor` records (immutable snapshot of a model
  description), with `Causality`, `ScalarKind` and `EnumDefinition`.
- Output side: `InterfaceDescription` with topics and a name-indexed struct
  catalog whose members reference each other by generated struct name.
- Flattening results: `FlattenedStructDefinition` / `FlattenedMember`.

This module must not import io/bundle/cli.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping

from commif.core.types import TypeDescriptor, parse_type_descriptor

INTERFACE_VERSION = 1


def _norm_name(value: Any, *, where: str) -> str:
    """Require a non-empty string. Names are kept verbatim (no stripping)."""
    if not isinstance(value, str):
        raise ValueError(f"{where}: expected str, got {type(value).__name__}")
    if not value.strip():
        raise ValueError(f"{where}: must be a non-empty string")
    return value


class Causality(str, Enum):
    PARAMETER = "parameter"
    CALCULATED_PARAMETER = "calculatedParameter"
    INPUT = "input"
    OUTPUT = "output"
    LOCAL = "local"
    INDEPENDENT = "independent"
    STRUCTURAL_PARAMETER = "structuralParameter"

    @classmethod
    def parse(cls, value: "str | Causality") -> "Causality":
        """Accept the FMI spelling or the member name, case-insensitively."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"causality: expected str, got {type(value).__name__}")
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"causality: unknown value {value!r}")


class ScalarKind(str, Enum):
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    BOOLEAN = "boolean"
    STRING = "string"
    BINARY = "binary"
    ENUM = "enum"
    TRIGGERED_CLOCK = "triggeredClock"
    UNDEFINED = "undefined"

    @classmethod
    def parse(cls, value: "str | ScalarKind") -> "ScalarKind":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"kind: expected str, got {type(value).__name__}")
        key = value.strip().lower()
        for member in cls:
            if key in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"kind: unknown value {value!r}")


# Surface type strings written to the interface description.
SURFACE_TYPE_NAMES: dict[ScalarKind, str] = {
    ScalarKind.FLOAT32: "float",
    ScalarKind.FLOAT64: "double",
    ScalarKind.INT8: "int8",
    ScalarKind.INT16: "int16",
    ScalarKind.INT32: "int32",
    ScalarKind.INT64: "int64",
    ScalarKind.UINT8: "uint8",
    ScalarKind.UINT16: "uint16",
    ScalarKind.UINT32: "uint32",
    ScalarKind.UINT64: "uint64",
    ScalarKind.BOOLEAN: "bool",
    ScalarKind.TRIGGERED_CLOCK: "bool",
    ScalarKind.STRING: "string",
    ScalarKind.BINARY: "byte[]",
}


@dataclass(frozen=True)
class EnumDefinition:
    """Named enumeration with ordered (item_name, value) pairs."""

    name: str
    items: tuple[tuple[str, int], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _norm_name(self.name, where="EnumDefinition.name"))
        items: list[tuple[str, int]] = []
        for i, item in enumerate(self.items):
            if not isinstance(item, (list, tuple)) or len(item) != 2:
                raise ValueError(f"EnumDefinition[{self.name}].items[{i}]: expected (name, value) pair")
            item_name = _norm_name(item[0], where=f"EnumDefinition[{self.name}].items[{i}].name")
            value = item[1]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"EnumDefinition[{self.name}].items[{i}].value: expected int")
            items.append((item_name, int(value)))
        object.__setattr__(self, "items", tuple(items))


@dataclass(frozen=True)
class VariableDescriptor:
    """One variable of the source model description."""

    name: str
    causality: Causality
    kind: ScalarKind
    is_scalar: bool = True
    enum_type: EnumDefinition | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise ValueError(f"VariableDescriptor.name: expected str, got {type(self.name).__name__}")
        object.__setattr__(self, "causality", Causality.parse(self.causality))
        object.__setattr__(self, "kind", ScalarKind.parse(self.kind))
        object.__setattr__(self, "is_scalar", bool(self.is_scalar))
        if self.enum_type is not None and not isinstance(self.enum_type, EnumDefinition):
            raise ValueError("VariableDescriptor.enum_type: expected EnumDefinition")


class Direction(str, Enum):
    PUBLISH = "publish"
    SUBSCRIBE = "subscribe"


@dataclass(frozen=True)
class Topic:
    """A publish or subscribe endpoint: root name plus its type string."""

    name: str
    direction: Direction
    type_name: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _norm_name(self.name, where="Topic.name"))
        object.__setattr__(self, "direction", Direction(self.direction))
        object.__setattr__(self, "type_name", _norm_name(self.type_name, where=f"Topic[{self.name}].type_name"))

    @property
    def descriptor(self) -> TypeDescriptor:
        return parse_type_descriptor(self.type_name)


class StructDefinition:
    """Generated record type: name plus insertion-ordered members.

    Members map member name -> type string. A member name is written at most
    once; later writes to the same name are ignored (first write wins).
    """

    __slots__ = ("name", "_members")

    def __init__(self, name: str, members: Iterable[tuple[str, str]] | Mapping[str, str] = ()):
        self.name = _norm_name(name, where="StructDefinition.name")
        self._members: dict[str, str] = {}
        pairs = members.items() if isinstance(members, Mapping) else members
        for member_name, type_name in pairs:
            self.add_member(member_name, type_name)

    @property
    def members(self) -> Mapping[str, str]:
        # read-only view; mutation goes through add_member
        return MappingProxyType(self._members)

    def add_member(self, name: str, type_name: str) -> bool:
        """Insert `name: type_name` if absent. Returns True when inserted."""
        name = _norm_name(name, where=f"StructDefinition[{self.name}].member")
        type_name = _norm_name(type_name, where=f"StructDefinition[{self.name}].members[{name}]")
        if name in self._members:
            return False
        self._members[name] = type_name
        return True

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._members.items())

    def __len__(self) -> int:
        return len(self._members)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructDefinition):
            return NotImplemented
        return self.name == other.name and list(self._members.items()) == list(other._members.items())

    def __repr__(self) -> str:
        return f"StructDefinition(name={self.name!r}, members={self._members!r})"


# Name-indexed, insertion-ordered catalog: generated struct name -> definition.
StructCatalog = dict[str, StructDefinition]


@dataclass(frozen=True)
class FlattenedMember:
    qualified_name: str
    type_name: str


@dataclass(frozen=True)
class FlattenedStructDefinition:
    """Depth-first expansion of a struct into qualified leaf members."""

    name: str
    members: tuple[FlattenedMember, ...] = ()

    def as_pairs(self) -> list[tuple[str, str]]:
        return [(m.qualified_name, m.type_name) for m in self.members]


@dataclass(frozen=True)
class InterfaceDescription:
    """Synthesized communication interface.

    `struct_definitions` is passed by reference to resolvers; it is a plain
    ordered dict so external catalogs can be supplied the same way.
    """

    enum_definitions: tuple[EnumDefinition, ...] = ()
    struct_definitions: StructCatalog = field(default_factory=dict)
    publishers: tuple[Topic, ...] = ()
    subscribers: tuple[Topic, ...] = ()
    version: int = INTERFACE_VERSION

    def __post_init__(self) -> None:
        if self.version != INTERFACE_VERSION:
            raise ValueError(f"InterfaceDescription.version: only {INTERFACE_VERSION} is supported")
        object.__setattr__(self, "enum_definitions", tuple(self.enum_definitions))
        object.__setattr__(self, "publishers", tuple(self.publishers))
        object.__setattr__(self, "subscribers", tuple(self.subscribers))
        for key, sd in self.struct_definitions.items():
            if not isinstance(sd, StructDefinition) or sd.name != key:
                raise ValueError(f"InterfaceDescription.struct_definitions[{key!r}]: key must match struct name")

    def to_document(self) -> dict[str, Any]:
        """Return the output document; empty sections are omitted.

        Shape:
            {"Version": 1,
             "EnumDefinitions": [{"Name": str, "Items": [{item: value}, ...]}],
             "StructDefinitions": [{"Name": str, "Members": [{member: type}, ...]}],
             "Publishers": [{name: type}, ...],
             "Subscribers": [{name: type}, ...]}
        """
        doc: dict[str, Any] = {"Version": self.version}
        if self.enum_definitions:
            doc["EnumDefinitions"] = [
                {"Name": e.name, "Items": [{k: v} for k, v in e.items]} for e in self.enum_definitions
            ]
        if self.struct_definitions:
            doc["StructDefinitions"] = [
                {"Name": sd.name, "Members": [{k: v} for k, v in sd]} for sd in self.struct_definitions.values()
            ]
        if self.publishers:
            doc["Publishers"] = [{t.name: t.type_name} for t in self.publishers]
        if self.subscribers:
            doc["Subscribers"] = [{t.name: t.type_name} for t in self.subscribers]
        return doc
