"""Structured variable names.

Variable names encode a hierarchy as dot-separated segments:

    path    := segment ("." segment)*
    segment := plain | quoted

- `plain` is one or more characters other than `.` and `'`.
- `quoted` starts and ends with `'`. Inside, `.` is literal and `\\'` is an
  escaped quote; any other character (including a lone backslash) is literal.

Segments are kept verbatim, quotes and escape sequences included, so joining
them with `.` reproduces the input exactly. The joined path is the identity of
a variable's structural position.

Parsing is strict: a malformed name raises `ParseError` and never yields a
partial result.
"""

from __future__ import annotations

from dataclasses import dataclass

SEPARATOR = "."
QUOTE = "'"
ESCAPE = "\\"


class ParseError(ValueError):
    """Raised when a structured name violates the grammar."""

    def __init__(self, name: str, position: int, reason: str):
        super().__init__(f"invalid structured name {name!r} (position {position}): {reason}")
        self.name = name
        self.position = position
        self.reason = reason


@dataclass(frozen=True)
class StructuredName:
    """Ordered, non-empty sequence of verbatim path segments."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        segs = tuple(self.segments)
        if not segs:
            raise ValueError("StructuredName: at least one segment is required")
        for i, s in enumerate(segs):
            if not isinstance(s, str) or not s:
                raise ValueError(f"StructuredName.segments[{i}]: must be a non-empty string")
        object.__setattr__(self, "segments", segs)

    @property
    def root(self) -> str:
        return self.segments[0]

    @property
    def leaf(self) -> str:
        return self.segments[-1]

    @property
    def depth(self) -> int:
        return len(self.segments)

    @property
    def path(self) -> str:
        return SEPARATOR.join(self.segments)

    def prefixes(self) -> list[str]:
        """Accumulated dotted paths of every segment except the leaf.

        `a.b.c.d` -> `["a", "a.b", "a.b.c"]`
        """
        out: list[str] = []
        acc = ""
        for seg in self.segments[:-1]:
            acc = seg if not acc else acc + SEPARATOR + seg
            out.append(acc)
        return out

    def __str__(self) -> str:
        return self.path


def _scan_quoted(raw: str, start: int) -> int:
    """Return the index of the closing quote of the segment opened at `start`."""
    i = start + 1
    n = len(raw)
    while i < n:
        c = raw[i]
        if c == ESCAPE and i + 1 < n and raw[i + 1] == QUOTE:
            i += 2
            continue
        if c == QUOTE:
            return i
        i += 1
    raise ParseError(raw, start, "unterminated quoted segment")


def _scan_plain(raw: str, start: int) -> int:
    """Return the index one past the end of the plain segment at `start`."""
    i = start
    n = len(raw)
    while i < n:
        c = raw[i]
        if c == SEPARATOR:
            break
        if c == QUOTE:
            raise ParseError(raw, i, "quote character without an opening quote")
        if c == ESCAPE:
            raise ParseError(raw, i, "escape character outside of a quoted segment")
        i += 1
    return i


def parse_structured_name(raw: str) -> StructuredName:
    """Split `raw` into its path segments.

    Raises:
        ParseError: on empty input, leading/trailing/consecutive separators,
            unterminated quotes, stray quotes or escapes, or a missing
            separator after a quoted segment.
    """
    if not isinstance(raw, str):
        raise TypeError(f"parse_structured_name: expected str, got {type(raw).__name__}")
    if not raw:
        raise ParseError(raw, 0, "name is empty")

    segments: list[str] = []
    n = len(raw)
    i = 0
    while True:
        if raw[i] == SEPARATOR:
            reason = "leading separator" if i == 0 else "consecutive separators"
            raise ParseError(raw, i, reason)

        if raw[i] == QUOTE:
            end = _scan_quoted(raw, i) + 1
        else:
            end = _scan_plain(raw, i)
        segments.append(raw[i:end])

        if end == n:
            break
        if raw[end] != SEPARATOR:
            # only reachable after a quoted segment
            raise ParseError(raw, end, "missing separator after quoted segment")
        i = end + 1
        if i == n:
            raise ParseError(raw, end, "trailing separator")

    return StructuredName(tuple(segments))
