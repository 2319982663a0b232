"""Tag lexer.

Splits an annotation block (comment text with the comment markers already
removed) into ``@name body`` tags. A tag runs until the next line starting
with a tag, so bodies may span lines; that is how multi-line examples work.
There is no escape: a body line that looks like a tag always starts a new one.
"""

import re

from pydantic import BaseModel, ConfigDict

from apidoc.errors import ApidocError, ErrorKind

TAG_START_RE = re.compile(r"^(\s*)@([A-Za-z]+)(?=\s|$)")
MALFORMED_RE = re.compile(r"^\s*@api[A-Za-z]*[^A-Za-z\s]")


class Block(BaseModel):
    """One isolated comment region and where it came from."""

    text: str
    file: str = ""
    line: int = 1
    column: int = 0


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str  # without the leading @
    body: str = ""
    file: str = ""
    line: int = 0
    column: int = 0

    def error(self, kind: ErrorKind, *path: str | int, detail: str = "") -> ApidocError:
        return ApidocError(
            kind, *path, file=self.file, line=self.line, column=self.column, detail=detail
        )


def lex(block: Block) -> list[Tag]:
    """Lex a block into its ordered tags."""
    tags: list[Tag] = []
    current: dict | None = None
    lines: list[str] = []

    def flush():
        if current is not None:
            tags.append(Tag(body="\n".join(lines).rstrip(), **current))

    for offset, line in enumerate(block.text.split("\n")):
        match = TAG_START_RE.match(line)
        if match is None:
            if MALFORMED_RE.match(line):
                raise ApidocError(
                    ErrorKind.LEX_ERROR,
                    file=block.file,
                    line=block.line + offset,
                    column=line.index("@") + (block.column if offset == 0 else 0),
                    detail=line.strip(),
                )
            if current is not None:
                lines.append(line)
            continue

        flush()
        indent = len(match.group(1))
        current = {
            "name": match.group(2),
            "file": block.file,
            "line": block.line + offset,
            "column": indent + (block.column if offset == 0 else 0),
        }
        lines = [line[match.end():].lstrip()]

    flush()
    return tags


def lex_text(text: str) -> list[Tag]:
    return lex(Block(text=text))


def new_tag(text: str) -> Tag:
    """Lex a single tag; text without a tag header becomes an unnamed tag body."""
    tags = lex_text(text)
    if tags:
        return tags[0]
    return Tag(name="", body=text.strip())
