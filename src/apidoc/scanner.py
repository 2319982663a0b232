"""Comment block extraction from source files.

The scanner only knows where comments start and end; it strips the comment
markers and hands the raw text to the lexer as Blocks. Languages are looked up
in a Languages value built once by the caller, never in global state.
"""

import re
from pathlib import Path

import structlog
from pydantic import BaseModel

from apidoc.parser.lexer import Block

logger = structlog.get_logger()

# " * text" continuation lines inside /* ... */
BLOCK_LINE_RE = re.compile(r"^\s*\*(?!/) ?")


class CommentSyntax(BaseModel):
    line: str = ""
    block_start: str = ""
    block_end: str = ""


C_STYLE = CommentSyntax(line="//", block_start="/*", block_end="*/")
HASH_STYLE = CommentSyntax(line="#")


class Language(BaseModel):
    name: str
    exts: list[str]
    syntax: CommentSyntax


DEFAULT_LANGUAGES = [
    Language(name="go", exts=[".go"], syntax=C_STYLE),
    Language(name="c", exts=[".h", ".c"], syntax=C_STYLE),
    Language(name="cpp", exts=[".h", ".cpp", ".cxx", ".c"], syntax=C_STYLE),
    Language(name="php", exts=[".php"], syntax=C_STYLE),
    Language(name="js", exts=[".js"], syntax=C_STYLE),
    Language(name="python", exts=[".py"], syntax=HASH_STYLE),
    Language(name="ruby", exts=[".rb"], syntax=HASH_STYLE),
]


class Languages:
    """Language lookup by name or file extension."""

    def __init__(self, languages: list[Language]):
        self._by_name = {lang.name: lang for lang in languages}
        self._by_ext: dict[str, Language] = {}
        for lang in languages:
            for ext in lang.exts:
                self._by_ext.setdefault(ext, lang)

    @classmethod
    def default(cls) -> "Languages":
        return cls(DEFAULT_LANGUAGES)

    def get(self, name: str) -> Language | None:
        return self._by_name.get(name)

    def for_file(self, path: Path) -> Language | None:
        return self._by_ext.get(path.suffix)

    def names(self) -> list[str]:
        return sorted(self._by_name)


def scan_text(text: str, syntax: CommentSyntax, file: str = "") -> list[Block]:
    """Extract comment blocks that contain annotation tags."""
    blocks = []
    lines = text.split("\n")
    i = 0
    while i < len(lines):
        stripped = lines[i].lstrip()
        column = len(lines[i]) - len(stripped)
        start = i

        if syntax.block_start and stripped.startswith(syntax.block_start):
            body = []
            rest = stripped[len(syntax.block_start):].lstrip("*").lstrip(" ")
            while True:
                end = rest.find(syntax.block_end)
                if end >= 0:
                    body.append(rest[:end])
                    break
                body.append(rest)
                i += 1
                if i >= len(lines):
                    break
                rest = BLOCK_LINE_RE.sub("", lines[i], count=1)
            i += 1
        elif syntax.line and stripped.startswith(syntax.line):
            body = []
            marker = re.compile(r"^\s*" + re.escape(syntax.line) + " ?")
            while i < len(lines) and lines[i].lstrip().startswith(syntax.line):
                body.append(marker.sub("", lines[i], count=1))
                i += 1
        else:
            i += 1
            continue

        content = "\n".join(body)
        if "@api" in content:
            blocks.append(Block(text=content, file=file, line=start + 1, column=column))
    return blocks


def scan_file(path: Path, languages: Languages, lang: str | None = None) -> list[Block]:
    language = languages.get(lang) if lang else languages.for_file(path)
    if language is None:
        logger.debug("file_skipped", file=str(path), reason="unknown language")
        return []
    text = path.read_text(encoding="utf-8")
    blocks = scan_text(text, language.syntax, file=str(path))
    logger.debug("file_scanned", file=str(path), blocks=len(blocks))
    return blocks


def find_files(root: Path, exts: list[str], recursive: bool = False) -> list[Path]:
    """Source files under root with one of exts, sorted by path."""
    candidates = root.rglob("*") if recursive else root.glob("*")
    return sorted(p for p in candidates if p.is_file() and p.suffix in exts)
