"""Interface synthesis: variable descriptors -> topics + struct catalog.

Rules:
- `local` and `calculatedParameter` variables are excluded entirely.
- `input` variables become subscribers; every other causality publishes.
- A single-segment name is a topic of its own (`root: type`).
- A multi-segment name contributes to a struct tree rooted at its first
  segment. The root topic (`root: root_struct`) is emitted once per direction;
  each intermediate dotted path gets its own generated struct; the last
  segment becomes a leaf member of the innermost struct.
- Struct members follow first-write-wins: a member name is never rewritten.

The whole run aborts on the first malformed name or unsupported kind; no
partial description is returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from commif.core.model import (
    SURFACE_TYPE_NAMES,
    Causality,
    Direction,
    EnumDefinition,
    InterfaceDescription,
    ScalarKind,
    StructDefinition,
    Topic,
    VariableDescriptor,
)
from commif.core.names import parse_structured_name
from commif.core.types import LIST_KEYWORD

logger = logging.getLogger(__name__)

EXCLUDED_CAUSALITIES = frozenset({Causality.LOCAL, Causality.CALCULATED_PARAMETER})


class UnsupportedKindError(ValueError):
    """Raised when a variable's kind has no surface type string."""

    def __init__(self, variable: str, kind: ScalarKind, detail: str | None = None):
        msg = f"variable {variable!r}: unsupported kind {kind.value!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
        self.variable = variable
        self.kind = kind


class TopicConflictError(ValueError):
    """Raised when one root name is declared as incompatible topics."""

    def __init__(self, root: str, direction: Direction, reason: str):
        super().__init__(f"{direction.value} topic {root!r}: {reason}")
        self.root = root
        self.direction = direction


@dataclass(frozen=True)
class BuildOptions:
    """Knobs for `build_interface`.

    - include_clocks: keep `triggeredClock` variables (as `bool` topics/members)
    - struct_suffix: marker appended to a dotted path to name its struct
    """

    include_clocks: bool = True
    struct_suffix: str = "_struct"

    def __post_init__(self) -> None:
        if not isinstance(self.struct_suffix, str) or not self.struct_suffix.strip():
            raise ValueError("BuildOptions.struct_suffix: must be a non-empty string")
        object.__setattr__(self, "include_clocks", bool(self.include_clocks))

    def struct_name(self, path: str) -> str:
        return path + self.struct_suffix


def surface_type_name(variable: VariableDescriptor) -> str:
    """Type string of a variable as written into topics and struct members."""
    kind = variable.kind
    if kind is ScalarKind.ENUM:
        if variable.enum_type is None:
            raise UnsupportedKindError(variable.name, kind, "no enum definition referenced")
        base = variable.enum_type.name
    else:
        base = SURFACE_TYPE_NAMES.get(kind)
        if base is None:
            raise UnsupportedKindError(variable.name, kind)
    return base if variable.is_scalar else f"{LIST_KEYWORD}<{base}>"


class _DirectionState:
    """Per-direction accumulator: ordered topics plus root bookkeeping."""

    def __init__(self, direction: Direction):
        self.direction = direction
        self.topics: list[Topic] = []
        self.scalar_roots: set[str] = set()
        self.struct_roots: set[str] = set()

    def add_scalar(self, root: str, type_name: str) -> None:
        if root in self.struct_roots:
            raise TopicConflictError(root, self.direction, "already used as a struct topic")
        if root in self.scalar_roots:
            raise TopicConflictError(root, self.direction, "declared more than once")
        self.scalar_roots.add(root)
        self.topics.append(Topic(root, self.direction, type_name))

    def add_struct(self, root: str, struct_name: str) -> None:
        if root in self.scalar_roots:
            raise TopicConflictError(root, self.direction, "already used as a single-segment topic")
        if root in self.struct_roots:
            return
        self.struct_roots.add(root)
        self.topics.append(Topic(root, self.direction, struct_name))


class _Builder:
    def __init__(self, options: BuildOptions, log: logging.Logger):
        self.options = options
        self.log = log
        self.publishers = _DirectionState(Direction.PUBLISH)
        self.subscribers = _DirectionState(Direction.SUBSCRIBE)
        # dotted path -> struct; insertion order is the catalog order
        self.structs_by_path: dict[str, StructDefinition] = {}
        self.enums: dict[str, EnumDefinition] = {}

    def _struct_for(self, path: str) -> StructDefinition:
        sd = self.structs_by_path.get(path)
        if sd is None:
            sd = StructDefinition(self.options.struct_name(path))
            self.structs_by_path[path] = sd
        return sd

    def _add_member(self, sd: StructDefinition, member: str, type_name: str, *, variable: str) -> None:
        if sd.add_member(member, type_name):
            return
        existing = sd.members[member]
        if existing != type_name:
            self.log.warning(
                "variable %r: member %r of %s already defined as %r; ignoring %r",
                variable,
                member,
                sd.name,
                existing,
                type_name,
            )

    def add_enum(self, enum_def: EnumDefinition) -> None:
        known = self.enums.get(enum_def.name)
        if known is None:
            self.enums[enum_def.name] = enum_def
        elif known != enum_def:
            self.log.warning("enum %r: conflicting definitions; keeping the first one", enum_def.name)

    def add_variable(self, variable: VariableDescriptor) -> None:
        if variable.causality in EXCLUDED_CAUSALITIES:
            self.log.debug("skipping %r (causality %s)", variable.name, variable.causality.value)
            return
        if variable.kind is ScalarKind.TRIGGERED_CLOCK and not self.options.include_clocks:
            self.log.debug("skipping clock %r", variable.name)
            return

        name = parse_structured_name(variable.name)
        type_name = surface_type_name(variable)
        if variable.enum_type is not None:
            self.add_enum(variable.enum_type)

        state = self.subscribers if variable.causality is Causality.INPUT else self.publishers

        if name.depth == 1:
            state.add_scalar(name.root, type_name)
            return

        root_struct = self._struct_for(name.root)
        state.add_struct(name.root, root_struct.name)

        parent = root_struct
        for segment, path in zip(name.segments[1:-1], name.prefixes()[1:]):
            child = self._struct_for(path)
            self._add_member(parent, segment, child.name, variable=variable.name)
            parent = child

        self._add_member(parent, name.leaf, type_name, variable=variable.name)

    def result(self) -> InterfaceDescription:
        return InterfaceDescription(
            enum_definitions=tuple(self.enums.values()),
            struct_definitions={sd.name: sd for sd in self.structs_by_path.values()},
            publishers=tuple(self.publishers.topics),
            subscribers=tuple(self.subscribers.topics),
        )


def build_interface(
    variables: Iterable[VariableDescriptor],
    *,
    enum_definitions: Iterable[EnumDefinition] | None = None,
    options: BuildOptions | None = None,
    log: logging.Logger | None = None,
) -> InterfaceDescription:
    """Synthesize the communication interface for `variables`.

    Args:
        variables: ordered variable descriptors; order is reproduced exactly in
            topics and struct members.
        enum_definitions: optional enum definitions emitted first, in order
            (enums referenced by variables follow in first-encounter order).
        options: BuildOptions; defaults apply when omitted.
        log: logger for diagnostics; defaults to this module's logger.

    Raises:
        ParseError: malformed variable name.
        UnsupportedKindError: kind without a surface type string.
        TopicConflictError: one root used as incompatible topics.
    """
    opts = options if options is not None else BuildOptions()
    if not isinstance(opts, BuildOptions):
        raise TypeError(f"build_interface: options must be BuildOptions, got {type(opts).__name__}")

    builder = _Builder(opts, log if log is not None else logger)
    for enum_def in enum_definitions or ():
        builder.add_enum(enum_def)

    count = 0
    for variable in variables:
        if not isinstance(variable, VariableDescriptor):
            raise TypeError(
                f"build_interface: expected VariableDescriptor, got {type(variable).__name__}"
            )
        builder.add_variable(variable)
        count += 1

    out = builder.result()
    builder.log.debug(
        "built interface from %d variables: %d publishers, %d subscribers, %d structs",
        count,
        len(out.publishers),
        len(out.subscribers),
        len(out.struct_definitions),
    )
    return out
