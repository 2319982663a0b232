"""Error type shared by the lexer, parsers, sanitizers and exporter.

Every failure carries an error kind and a structured field path. Validators
prepend their own location while the error travels upward; the dotted form
(``apis[0].responses[1].headers[0].name``) is only rendered at the boundary.
"""

from enum import Enum


class ErrorKind(str, Enum):
    LEX_ERROR = "lex-error"
    INVALID_TYPE = "invalid-type"
    INVALID_STATUS = "invalid-status"
    MISSING_REQUIRED_FIELD = "missing-required-field"
    INVALID_FORMAT = "invalid-format"
    DUPLICATE_REFERENCE = "duplicate-reference"


def render_path(segments: tuple) -> str:
    """Render path segments: names are dot-joined, ints become ``[i]``."""
    out = ""
    for seg in segments:
        if isinstance(seg, int):
            out += f"[{seg}]"
        elif out:
            out += "." + seg
        else:
            out = seg
    return out


class ApidocError(Exception):
    """A single parse or validation failure."""

    def __init__(
        self,
        kind: ErrorKind,
        *path: str | int,
        file: str = "",
        line: int = 0,
        column: int = 0,
        detail: str = "",
    ):
        self.kind = kind
        self.path = tuple(path)
        self.file = file
        self.line = line
        self.column = column
        self.detail = detail
        super().__init__(str(self))

    @property
    def field(self) -> str:
        return render_path(self.path)

    def prefix(self, *segments: str | int) -> "ApidocError":
        """Prepend the caller's location to the path and return self."""
        self.path = tuple(segments) + self.path
        self.args = (str(self),)
        return self

    def located(self, file: str, line: int = 0, column: int = 0) -> "ApidocError":
        if not self.file:
            self.file = file
            self.line = line
            self.column = column
            self.args = (str(self),)
        return self

    def __str__(self) -> str:
        parts = []
        if self.file:
            parts.append(f"{self.file}:{self.line}:{self.column}")
        if self.path:
            parts.append(self.field)
        parts.append(self.kind.value)
        if self.detail:
            parts.append(self.detail)
        return ": ".join(parts)
