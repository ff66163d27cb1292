"""Type descriptor grammar for topic and struct member types.

A type string is either a plain name or a list wrapper, each optionally
suffixed by `?`:

    type := (NAME | "List" "<" type ">") "?"?

Only `<` and `>` delimit tokens, and only outside single-quoted runs, so a NAME
may hold inner whitespace, quotes, or a `?` that is not its last character
(`'a b'_struct`, `int double`). Whitespace at either end of a token is ignored.

Plain names are canonicalized case-insensitively to a fixed set of primitive
kinds (`double`, `float64` and `real` all become `PrimitiveKind.FLOAT64`, ...).
Names without a primitive canonicalization are kept verbatim as opaque
custom-type references; resolving them against enum/struct definitions happens
elsewhere (see `commif.core.validate.validate_type_references`).

This module must not import the rest of `commif.core`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

LIST_KEYWORD = "List"

_DELIMITERS = "<>"


class PrimitiveKind(str, Enum):
    """Canonical primitive kinds. Each value is itself an accepted alias."""

    BOOLEAN = "boolean"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BINARY = "binary"


_ALIASES: dict[str, PrimitiveKind] = {
    "bool": PrimitiveKind.BOOLEAN,
    "boolean": PrimitiveKind.BOOLEAN,
    "sbyte": PrimitiveKind.INT8,
    "int8": PrimitiveKind.INT8,
    "short": PrimitiveKind.INT16,
    "int16": PrimitiveKind.INT16,
    "int": PrimitiveKind.INT32,
    "integer": PrimitiveKind.INT32,
    "int32": PrimitiveKind.INT32,
    "long": PrimitiveKind.INT64,
    "int64": PrimitiveKind.INT64,
    "byte": PrimitiveKind.UINT8,
    "uint8": PrimitiveKind.UINT8,
    "ushort": PrimitiveKind.UINT16,
    "uint16": PrimitiveKind.UINT16,
    "uint": PrimitiveKind.UINT32,
    "uint32": PrimitiveKind.UINT32,
    "ulong": PrimitiveKind.UINT64,
    "uint64": PrimitiveKind.UINT64,
    "float": PrimitiveKind.FLOAT32,
    "float32": PrimitiveKind.FLOAT32,
    "double": PrimitiveKind.FLOAT64,
    "float64": PrimitiveKind.FLOAT64,
    "real": PrimitiveKind.FLOAT64,
    "string": PrimitiveKind.STRING,
    "binary": PrimitiveKind.BINARY,
    "byte[]": PrimitiveKind.BINARY,
}


class TypeDescriptorError(ValueError):
    """Raised for malformed type strings."""

    def __init__(self, text: str, reason: str):
        super().__init__(f"malformed type {text!r}: {reason}")
        self.text = text
        self.reason = reason


def canonicalize_type_name(name: str) -> PrimitiveKind | None:
    """Map a surface alias to its primitive kind, or None for custom names."""
    if isinstance(name, PrimitiveKind):
        return name
    if not isinstance(name, str):
        raise TypeError(f"canonicalize_type_name: expected str, got {type(name).__name__}")
    return _ALIASES.get(name.strip().lower())


@dataclass(frozen=True)
class TypeDescriptor:
    """Parsed type string.

    Exactly one of `primitive`, `custom_type_name` or `inner` is set; `inner`
    is set iff `is_list`.
    """

    is_optional: bool = False
    is_list: bool = False
    primitive: PrimitiveKind | None = None
    custom_type_name: str | None = None
    inner: "TypeDescriptor | None" = None

    def __post_init__(self) -> None:
        payload = [x for x in (self.primitive, self.custom_type_name, self.inner) if x is not None]
        if len(payload) != 1:
            raise ValueError("TypeDescriptor: exactly one of primitive/custom_type_name/inner must be set")
        if self.is_list != (self.inner is not None):
            raise ValueError("TypeDescriptor: inner is required for (and only for) list descriptors")
        if self.custom_type_name is not None and not self.custom_type_name:
            raise ValueError("TypeDescriptor.custom_type_name: must be a non-empty string")

    @property
    def is_custom(self) -> bool:
        return self.custom_type_name is not None

    def element(self) -> "TypeDescriptor":
        """Innermost non-list descriptor."""
        d = self
        while d.inner is not None:
            d = d.inner
        return d

    def __str__(self) -> str:
        if self.inner is not None:
            body = f"{LIST_KEYWORD}<{self.inner}>"
        elif self.primitive is not None:
            body = self.primitive.value
        else:
            body = str(self.custom_type_name)
        return body + ("?" if self.is_optional else "")


class _TypeParser:
    """Splits on `<` and `>` only; everything between is one token.

    Delimiters inside single-quoted runs (as produced by quoted name segments)
    are part of the token. `\\'` inside quotes does not close the run.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _read_token(self) -> str:
        start = self.pos
        quoted = False
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if quoted and ch == "\\" and self.text[self.pos + 1 : self.pos + 2] == "'":
                self.pos += 2
                continue
            if ch == "'":
                quoted = not quoted
            elif not quoted and ch in _DELIMITERS:
                break
            self.pos += 1
        return self.text[start:self.pos].strip()

    def parse(self) -> TypeDescriptor:
        out = self._parse_type()
        if self.pos < len(self.text):
            raise TypeDescriptorError(self.text, f"unexpected trailing {self._peek()!r} at position {self.pos}")
        return out

    def _parse_type(self) -> TypeDescriptor:
        start = self.pos
        token = self._read_token()
        if self._peek() == "<":
            if token != LIST_KEYWORD:
                raise TypeDescriptorError(
                    self.text, f"contained unexpected token {token!r} (expected {LIST_KEYWORD!r})"
                )
            self.pos += 1
            inner = self._parse_type()
            if self._peek() != ">":
                raise TypeDescriptorError(self.text, f"missing '>' to close {LIST_KEYWORD!r}")
            self.pos += 1
            suffix = self._read_token()
            if suffix not in ("", "?"):
                raise TypeDescriptorError(self.text, f"unexpected token {suffix!r} after {LIST_KEYWORD!r}")
            return TypeDescriptor(is_optional=suffix == "?", is_list=True, inner=inner)

        is_optional = token.endswith("?")
        name = token[:-1].rstrip() if is_optional else token
        if not name:
            raise TypeDescriptorError(self.text, f"expected a type name at position {start}")
        primitive = canonicalize_type_name(name)
        if primitive is not None:
            return TypeDescriptor(is_optional=is_optional, primitive=primitive)
        return TypeDescriptor(is_optional=is_optional, custom_type_name=name)


def parse_type_descriptor(text: str) -> TypeDescriptor:
    """Parse a type string such as `double`, `Color?` or `List<float?>`.

    Raises:
        TypeDescriptorError: for empty input or malformed list syntax.
    """
    if not isinstance(text, str):
        raise TypeError(f"parse_type_descriptor: expected str, got {type(text).__name__}")
    if not text.strip():
        raise TypeDescriptorError(text, "empty type")
    return _TypeParser(text).parse()
