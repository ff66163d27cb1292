"""Schema + semantic validators.

Two layers:

- Canonical tables (`validate_tables`): schema presence, strict columns,
  non-empty names, unique keys, well-formed type strings.
  `commif.core.tables` handles canonicalization; this module only checks.
- Descriptions (`validate_type_references`): every custom type name used by a
  topic or struct member must name a struct or an enum.

Both collect every `Violation` first and raise once, so messages are
deterministic and tests can assert on them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from commif.core.model import InterfaceDescription
from commif.core.tables import TABLE_COLUMN_ORDER, TABLE_KEYS, TABLE_ORDER_KEYS
from commif.core.types import TypeDescriptorError, parse_type_descriptor

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd


@dataclass(frozen=True)
class Violation:
    table: str
    message: str

    def __str__(self) -> str:
        return f"{self.table}: {self.message}"


def _aggregate_message(head: str, violations: list[Violation]) -> str:
    return head + ":\n" + "\n".join(f"  - {item}" for item in violations)


class TableValidationError(ValueError):
    """Aggregates multiple table validation failures.

    The message is stable and suitable for test assertions.
    """

    def __init__(self, violations: Iterable[Violation]):
        v = list(violations)
        if not v:
            super().__init__("table validation failed (no details)")
            self.violations = []
            return
        v_sorted = sorted(v, key=lambda x: (x.table, x.message))
        super().__init__(_aggregate_message("table validation failed", v_sorted))
        self.violations = v_sorted


class TypeReferenceError(ValueError):
    """Raised when custom type names do not resolve to a struct or an enum."""

    def __init__(self, violations: Iterable[Violation]):
        v = list(violations)
        if not v:
            super().__init__("type reference check failed (no details)")
            self.violations = []
            return
        super().__init__(_aggregate_message("unresolved type references", v))
        self.violations = v


# ----------------------------
# Table checks
# ----------------------------

# Name-like columns per table; must be non-null and non-blank.
_NAME_COLUMNS: dict[str, list[str]] = {
    "enum_items": ["enum", "item"],
    "struct_members": ["struct", "member", "type"],
    "publishers": ["name", "type"],
    "subscribers": ["name", "type"],
    "flattened_members": ["struct", "qualified_name", "type"],
}

# Columns holding type strings; must parse.
_TYPE_COLUMNS: dict[str, list[str]] = {
    "struct_members": ["type"],
    "publishers": ["type"],
    "subscribers": ["type"],
    "flattened_members": ["type"],
}


def _require_dataframe(df: object, *, table: str) -> "pd.DataFrame":
    import pandas as pd

    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"{table}: expected pandas.DataFrame, got {type(df).__name__}")
    return df


def _check_required_columns(df: "pd.DataFrame", *, table: str, violations: list[Violation]) -> None:
    missing = [c for c in TABLE_COLUMN_ORDER[table] if c not in df.columns]
    if missing:
        violations.append(Violation(table, f"missing required columns: {missing}"))


def _check_no_extra_columns(df: "pd.DataFrame", *, table: str, violations: list[Violation]) -> None:
    allowed = set(TABLE_COLUMN_ORDER[table])
    extras = [c for c in df.columns if c not in allowed]
    if extras:
        violations.append(Violation(table, f"unexpected extra columns: {extras}"))


def _check_non_empty_strings(df: "pd.DataFrame", *, table: str, col: str, violations: list[Violation]) -> None:
    s = df[col]
    if s.isna().any():
        violations.append(Violation(table, f"{col}: contains nulls"))
        return
    stripped = s.astype("string").str.strip()
    if (stripped == "").any():
        violations.append(Violation(table, f"{col}: contains empty/whitespace-only strings"))


def _check_integers(df: "pd.DataFrame", *, table: str, col: str, violations: list[Violation]) -> None:
    import pandas as pd

    s = df[col]
    if s.isna().any():
        violations.append(Violation(table, f"{col}: contains nulls"))
        return
    numeric = pd.to_numeric(s, errors="coerce")
    if numeric.isna().any():
        violations.append(Violation(table, f"{col}: contains non-numeric values"))
        return
    if (numeric % 1 != 0).any():
        violations.append(Violation(table, f"{col}: contains non-integer values"))


def _check_unique_key(df: "pd.DataFrame", *, table: str, cols: list[str], violations: list[Violation]) -> None:
    dup_mask = df.duplicated(subset=cols, keep=False)
    if dup_mask.any():
        dups = sorted({tuple(str(x) for x in row) for row in df.loc[dup_mask, cols].itertuples(index=False)})
        violations.append(Violation(table, f"duplicate key rows for {cols}: {dups}"))


def _check_type_strings(df: "pd.DataFrame", *, table: str, col: str, violations: list[Violation]) -> None:
    bad: list[str] = []
    for value in df[col].dropna().astype(str).tolist():
        try:
            parse_type_descriptor(value)
        except TypeDescriptorError:
            bad.append(value)
    if bad:
        violations.append(Violation(table, f"{col}: malformed type strings: {sorted(set(bad))}"))


def validate_table(table: str, df: "pd.DataFrame") -> None:
    """Validate one known table.

    Raises:
        TableValidationError: when any violation is found.
    """
    if table not in TABLE_COLUMN_ORDER:
        raise ValueError(f"validate_table: unknown table {table!r}")
    df = _require_dataframe(df, table=table)

    violations: list[Violation] = []
    _check_required_columns(df, table=table, violations=violations)
    _check_no_extra_columns(df, table=table, violations=violations)

    # Stop early if schema is broken to avoid noisy follow-on errors.
    if violations:
        raise TableValidationError(violations)

    for col in _NAME_COLUMNS[table]:
        _check_non_empty_strings(df, table=table, col=col, violations=violations)
    for col in TABLE_ORDER_KEYS[table]:
        _check_integers(df, table=table, col=col, violations=violations)
    if table == "enum_items":
        _check_integers(df, table=table, col="value", violations=violations)
    for col in _TYPE_COLUMNS.get(table, []):
        _check_type_strings(df, table=table, col=col, violations=violations)

    _check_unique_key(df, table=table, cols=TABLE_KEYS[table], violations=violations)
    _check_unique_key(df, table=table, cols=TABLE_ORDER_KEYS[table], violations=violations)

    if violations:
        raise TableValidationError(violations)


def validate_tables(tables: dict[str, "pd.DataFrame"]) -> None:
    """Validate a tables dict.

    Every known table present is validated; unknown names are rejected. A
    publisher and a subscriber may share a name (they live in separate tables).
    """
    if not isinstance(tables, dict):
        raise TypeError(f"tables: expected dict[str, DataFrame], got {type(tables).__name__}")

    violations: list[Violation] = []
    for name in sorted(tables):
        df = tables[name]
        if name not in TABLE_COLUMN_ORDER:
            violations.append(Violation("tables", f"unknown table {name!r}"))
            continue
        if df is None:
            continue
        try:
            validate_table(name, df)
        except TableValidationError as e:
            violations.extend(e.violations)

    if violations:
        raise TableValidationError(violations)


# ----------------------------
# Type references
# ----------------------------


def validate_type_references(description: InterfaceDescription) -> None:
    """Check that every custom type name resolves to a struct or an enum.

    List element types are checked through any number of `List<...>` wrappers.
    Violations are reported in document order (structs, publishers,
    subscribers).

    Raises:
        TypeReferenceError: unresolved names or malformed type strings.
    """
    if not isinstance(description, InterfaceDescription):
        raise TypeError(
            f"validate_type_references: expected InterfaceDescription, got {type(description).__name__}"
        )

    known = set(description.struct_definitions) | {e.name for e in description.enum_definitions}
    violations: list[Violation] = []

    def _check(where: str, owner: str, type_name: str) -> None:
        try:
            element = parse_type_descriptor(type_name).element()
        except TypeDescriptorError as e:
            violations.append(Violation(where, f"{owner}: {e}"))
            return
        if element.is_custom and element.custom_type_name not in known:
            violations.append(Violation(where, f"{owner}: unknown type {element.custom_type_name!r}"))

    for sd in description.struct_definitions.values():
        for member, type_name in sd:
            _check(sd.name, member, type_name)
    for topic in description.publishers:
        _check("Publishers", topic.name, topic.type_name)
    for topic in description.subscribers:
        _check("Subscribers", topic.name, topic.type_name)

    if violations:
        raise TypeReferenceError(violations)
