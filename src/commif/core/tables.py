"""Canonical table schemas + conversion utilities.

An `InterfaceDescription` can be represented as canonical pandas DataFrames,
one per document section. This module is the single source of truth for:

- required columns / canonical column order
- pragmatic dtype normalization (string/Int64 extension dtypes)
- deterministic row order

Row order is never alphabetical: every table carries explicit position columns
recording first-encounter order, and normalization sorts by those (stable).

This enables:
1) CSV persistence in package bundles (see `commif.bundle`),
2) schema + semantic validation (see `commif.core.validate`),
3) deterministic equality in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from commif.core.model import (
    Direction,
    EnumDefinition,
    InterfaceDescription,
    StructDefinition,
    Topic,
)

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd

    from commif.core.resolve import StructDefinitionResolver


# ----------------------------
# Canonical schema descriptors
# ----------------------------

_TOPIC_SCHEMA: dict[str, str] = {
    "position": "Int64",
    "name": "string",
    "type": "string",
}

TABLE_SCHEMAS: dict[str, dict[str, str]] = {
    "enum_items": {
        "enum": "string",
        "enum_position": "Int64",
        "position": "Int64",
        "item": "string",
        "value": "Int64",
    },
    "struct_members": {
        "struct": "string",
        "struct_position": "Int64",
        "position": "Int64",
        "member": "string",
        "type": "string",
    },
    "publishers": dict(_TOPIC_SCHEMA),
    "subscribers": dict(_TOPIC_SCHEMA),
    "flattened_members": {
        "struct": "string",
        "struct_position": "Int64",
        "position": "Int64",
        "qualified_name": "string",
        "type": "string",
    },
}

# Position columns used for the stable sort.
TABLE_ORDER_KEYS: dict[str, list[str]] = {
    "enum_items": ["enum_position", "position"],
    "struct_members": ["struct_position", "position"],
    "publishers": ["position"],
    "subscribers": ["position"],
    "flattened_members": ["struct_position", "position"],
}

# Columns that must be unique per row.
TABLE_KEYS: dict[str, list[str]] = {
    "enum_items": ["enum", "item"],
    "struct_members": ["struct", "member"],
    "publishers": ["name"],
    "subscribers": ["name"],
    "flattened_members": ["struct", "qualified_name"],
}

# Canonical column order for stable CSV export and equality tests.
TABLE_COLUMN_ORDER: dict[str, list[str]] = {
    name: list(schema.keys()) for name, schema in TABLE_SCHEMAS.items()
}

# Tables that make up an interface description (flattened_members is derived).
INTERFACE_TABLES: tuple[str, ...] = ("enum_items", "struct_members", "publishers", "subscribers")


# ----------------------------
# Internal helpers
# ----------------------------


def _require_dataframe(df: object, *, table: str) -> "pd.DataFrame":
    import pandas as pd

    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"{table}: expected pandas.DataFrame, got {type(df).__name__}")
    return df


def _require_columns(df: "pd.DataFrame", *, required: list[str], table: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{table}: missing required columns: {missing}")


def _reject_extra_columns(df: "pd.DataFrame", *, allowed: list[str], table: str) -> None:
    extras = [c for c in df.columns if c not in allowed]
    if extras:
        raise ValueError(f"{table}: unexpected extra columns: {extras}")


def _cast_to_schema(df: "pd.DataFrame", *, schema: dict[str, str]) -> "pd.DataFrame":
    import pandas as pd

    for col, dtype in schema.items():
        if col not in df.columns:
            continue
        if dtype == "string":
            # Names are identities: no stripping.
            df[col] = df[col].astype("string")
        else:
            # CSV readers may hand us strings; go through to_numeric first.
            df[col] = pd.to_numeric(df[col]).astype(dtype)
    return df


def _sort_canonical(df: "pd.DataFrame", *, keys: list[str]) -> "pd.DataFrame":
    # stable sort keeps encounter order when positions tie
    return df.sort_values(keys, kind="mergesort", na_position="last").reset_index(drop=True)


def _empty_table(table: str) -> "pd.DataFrame":
    import pandas as pd

    schema = TABLE_SCHEMAS[table]
    return pd.DataFrame({c: pd.Series([], dtype=dtype) for c, dtype in schema.items()})


def _frame(table: str, rows: list[dict[str, Any]]) -> "pd.DataFrame":
    import pandas as pd

    if not rows:
        return _empty_table(table)
    return normalize_table(table, pd.DataFrame(rows, columns=TABLE_COLUMN_ORDER[table]))


# ----------------------------
# Public normalizers
# ----------------------------


def normalize_table(table: str, df: "pd.DataFrame") -> "pd.DataFrame":
    """Return a canonicalized copy of a known table.

    Post-conditions:
    - required columns are present and no extra columns exist (strict)
    - string columns are pandas string dtype (values untouched)
    - position/value columns are Int64 extension dtype
    - rows are stably sorted by position columns
    - index is reset to RangeIndex
    """
    if table not in TABLE_SCHEMAS:
        raise ValueError(f"normalize_table: unknown table {table!r}")
    df = _require_dataframe(df, table=table)

    schema = TABLE_SCHEMAS[table]
    required_cols = list(schema.keys())
    _require_columns(df, required=required_cols, table=table)
    _reject_extra_columns(df, allowed=required_cols, table=table)

    out = df.copy(deep=True)
    out = _cast_to_schema(out, schema=schema)
    out = out.loc[:, TABLE_COLUMN_ORDER[table]]
    out = _sort_canonical(out, keys=TABLE_ORDER_KEYS[table])
    return out


def normalize_tables(tables: dict[str, "pd.DataFrame"]) -> dict[str, "pd.DataFrame"]:
    """Normalize any recognized tables in `tables` and return a new dict.

    Unknown table names are passed through unchanged.
    """
    if not isinstance(tables, dict):
        raise TypeError(f"tables: expected dict[str, DataFrame], got {type(tables).__name__}")

    out: dict[str, Any] = {}
    for name, df in tables.items():
        if name in TABLE_SCHEMAS and df is not None:
            out[name] = normalize_table(name, df)
        else:
            out[name] = df
    return out


# ----------------------------
# InterfaceDescription <-> tables
# ----------------------------


def _topic_rows(topics: tuple[Topic, ...]) -> list[dict[str, Any]]:
    return [{"position": i, "name": t.name, "type": t.type_name} for i, t in enumerate(topics)]


def interface_to_tables(description: InterfaceDescription) -> dict[str, "pd.DataFrame"]:
    """Convert a description into its canonical tables (see `INTERFACE_TABLES`)."""
    if not isinstance(description, InterfaceDescription):
        raise TypeError(
            f"interface_to_tables: expected InterfaceDescription, got {type(description).__name__}"
        )

    enum_rows: list[dict[str, Any]] = []
    for ei, enum_def in enumerate(description.enum_definitions):
        for pos, (item, value) in enumerate(enum_def.items):
            enum_rows.append(
                {"enum": enum_def.name, "enum_position": ei, "position": pos, "item": item, "value": value}
            )

    member_rows: list[dict[str, Any]] = []
    for si, sd in enumerate(description.struct_definitions.values()):
        for pos, (member, type_name) in enumerate(sd):
            member_rows.append(
                {"struct": sd.name, "struct_position": si, "position": pos, "member": member, "type": type_name}
            )

    return {
        "enum_items": _frame("enum_items", enum_rows),
        "struct_members": _frame("struct_members", member_rows),
        "publishers": _frame("publishers", _topic_rows(description.publishers)),
        "subscribers": _frame("subscribers", _topic_rows(description.subscribers)),
    }


def tables_to_interface(tables: dict[str, "pd.DataFrame"]) -> InterfaceDescription:
    """Rebuild an `InterfaceDescription` from canonical tables.

    Missing tables are treated as empty. Enums and structs without rows do not
    survive the table representation.
    """
    norm = normalize_tables({k: v for k, v in tables.items() if k in INTERFACE_TABLES})

    enums: list[EnumDefinition] = []
    enum_df = norm.get("enum_items")
    if enum_df is not None and len(enum_df):
        for _, group in enum_df.groupby("enum_position", sort=True):
            enum_name = str(group["enum"].iloc[0])
            items = [(str(i), int(v)) for i, v in zip(group["item"].tolist(), group["value"].tolist())]
            enums.append(EnumDefinition(enum_name, tuple(items)))

    structs: dict[str, StructDefinition] = {}
    member_df = norm.get("struct_members")
    if member_df is not None and len(member_df):
        for _, group in member_df.groupby("struct_position", sort=True):
            struct_name = str(group["struct"].iloc[0])
            if struct_name in structs:
                raise ValueError(f"struct_members: struct {struct_name!r} spans several struct_position values")
            pairs = zip(group["member"].astype(str).tolist(), group["type"].astype(str).tolist())
            structs[struct_name] = StructDefinition(struct_name, pairs)

    def _topics(table: str, direction: Direction) -> tuple[Topic, ...]:
        df = norm.get(table)
        if df is None or not len(df):
            return ()
        return tuple(Topic(str(n), direction, str(t)) for n, t in zip(df["name"].tolist(), df["type"].tolist()))

    return InterfaceDescription(
        enum_definitions=tuple(enums),
        struct_definitions=structs,
        publishers=_topics("publishers", Direction.PUBLISH),
        subscribers=_topics("subscribers", Direction.SUBSCRIBE),
    )


def flattened_members_table(resolver: "StructDefinitionResolver") -> "pd.DataFrame":
    """Flatten every struct of the resolver's catalog into one table."""
    rows: list[dict[str, Any]] = []
    for si, (name, flat) in enumerate(resolver.flatten_all().items()):
        for pos, m in enumerate(flat.members):
            rows.append(
                {"struct": name, "struct_position": si, "position": pos, "qualified_name": m.qualified_name, "type": m.type_name}
            )
    return _frame("flattened_members", rows)
