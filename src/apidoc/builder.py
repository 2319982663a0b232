"""Builds one Doc from many annotation blocks.

Blocks are independent, so they are parsed on a thread pool. Fragments are
merged in (file, line, column) order, which keeps output identical no matter
which worker finishes first.
"""

import json
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import structlog
import yaml

from apidoc.config import Config
from apidoc.openapi.exporter import export
from apidoc.openapi.models import OpenAPI
from apidoc.parser.api import Fragment, parse_block
from apidoc.parser.base import API, Doc
from apidoc.parser.lexer import Block
from apidoc.sanitize import sanitize
from apidoc.scanner import Languages, find_files, scan_file

logger = structlog.get_logger()


def _block_key(block: Block) -> tuple[str, int, int]:
    return (block.file, block.line, block.column)


def merge(fragments: list[Fragment]) -> Doc:
    """Fold ordered fragments into a Doc; the first doc fragment wins."""
    doc: Doc | None = None
    apis: list[API] = []
    for fragment in fragments:
        if isinstance(fragment, API):
            apis.append(fragment)
        elif doc is None:
            doc = fragment
        else:
            logger.warning("doc_redeclared", title=fragment.title)

    if doc is None:
        doc = Doc()
    doc.apis = apis
    logger.debug("doc_merged", apis=len(apis))
    return doc


def parse_blocks(blocks: list[Block], max_workers: int | None = None) -> Doc:
    """Parse blocks concurrently and merge them deterministically."""
    ordered = sorted(blocks, key=_block_key)
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(parse_block, ordered))

    fragments = [fragment for result in results for fragment in result]
    return merge(fragments)


def build(blocks: list[Block], max_workers: int | None = None) -> OpenAPI:
    """Parse, sanitize and export. Raises ApidocError on the first problem."""
    doc = parse_blocks(blocks, max_workers=max_workers)
    sanitize(doc)
    document = export(doc)
    document.sanitize()
    return document


def collect_blocks(config: Config, languages: Languages, base: Path = Path(".")) -> list[Block]:
    blocks = []
    for opt in config.inputs:
        root = base / opt.dir
        for path in find_files(root, opt.exts, recursive=opt.recursive):
            blocks.extend(scan_file(path, languages, lang=opt.lang))
    return blocks


def render(document: OpenAPI, fmt: str = "yaml") -> str:
    data = document.to_dict()
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)
