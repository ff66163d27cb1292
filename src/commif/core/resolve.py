"""Struct flattening: name-indexed catalog -> qualified leaf members.

Struct definitions reference each other by generated name, so the catalog is a
graph that may contain cycles. `StructDefinitionResolver` keeps its own state
and memo tables keyed by struct name; the catalog itself is only read.

Flattening is depth-first:
- a member whose type string names a struct in the catalog is expanded, and
  every nested qualified name is prefixed with `<member>.`;
- any other member (primitive, list, enum or unresolved custom name) is a leaf
  whose qualified name is the member name.

Thread-safety: first-time flattening of one struct must not run concurrently;
structs already computed can be read from any thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from commif.core.model import FlattenedMember, FlattenedStructDefinition, StructDefinition
from commif.core.names import SEPARATOR

logger = logging.getLogger(__name__)


class _State(Enum):
    IN_PROGRESS = 1
    DONE = 2


@dataclass(frozen=True)
class StructCycleError(ValueError):
    """Raised when a struct transitively contains itself.

    `chain` lists the struct names from the first re-entered struct back to
    itself, in expansion order.
    """

    chain: tuple[str, ...] = ()

    def __init__(self, *, chain: list[str] | tuple[str, ...]) -> None:
        chain_t = tuple(chain)
        super().__init__(
            "infinite recursion in struct definitions: " + " -> ".join(chain_t)
            if chain_t
            else "infinite recursion in struct definitions"
        )
        object.__setattr__(self, "chain", chain_t)


class UnknownStructError(KeyError):
    """Raised when flattening a struct name that is not in the catalog."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"unknown struct definition {self.name!r}"


class StructDefinitionResolver:
    """Memoized, cycle-safe flattening over a struct catalog.

    The catalog is held by reference. Results are cached per struct name and
    returned unchanged on later calls.
    """

    def __init__(self, catalog: Mapping[str, StructDefinition], *, log: logging.Logger | None = None):
        if not isinstance(catalog, Mapping):
            raise TypeError(f"StructDefinitionResolver: catalog must be a mapping, got {type(catalog).__name__}")
        self._catalog = catalog
        self._log = log if log is not None else logger
        self._state: dict[str, _State] = {}
        self._cache: dict[str, FlattenedStructDefinition] = {}
        # expansion stack, for cycle reporting
        self._stack: list[str] = []

    def is_struct(self, type_name: str) -> bool:
        return type_name in self._catalog

    def flatten(self, name: str) -> FlattenedStructDefinition:
        """Flatten struct `name` (depth-first, memoized).

        Raises:
            UnknownStructError: `name` is not in the catalog.
            StructCycleError: `name` is re-entered while being flattened.
        """
        state = self._state.get(name)
        if state is _State.DONE:
            return self._cache[name]
        if state is _State.IN_PROGRESS:
            start = self._stack.index(name)
            raise StructCycleError(chain=self._stack[start:] + [name])

        sd = self._catalog.get(name)
        if sd is None:
            raise UnknownStructError(name)

        self._state[name] = _State.IN_PROGRESS
        self._stack.append(name)
        try:
            members: list[FlattenedMember] = []
            for member_name, type_name in sd:
                if self.is_struct(type_name):
                    nested = self.flatten(type_name)
                    prefix = member_name + SEPARATOR
                    members.extend(
                        FlattenedMember(prefix + m.qualified_name, m.type_name) for m in nested.members
                    )
                else:
                    members.append(FlattenedMember(member_name, type_name))
        except BaseException:
            # leave no in-progress marker behind; the struct stays unvisited
            del self._state[name]
            raise
        finally:
            self._stack.pop()

        out = FlattenedStructDefinition(name=name, members=tuple(members))
        self._cache[name] = out
        self._state[name] = _State.DONE
        self._log.debug("flattened %s into %d members", name, len(out.members))
        return out

    def flatten_all(self) -> dict[str, FlattenedStructDefinition]:
        """Flatten every struct, in catalog order."""
        return {name: self.flatten(name) for name in self._catalog}
