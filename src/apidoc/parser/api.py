"""Turns a block's tag stream into document fragments.

A block holds one or more sections, each opened by ``@api`` (an API) or
``@apidoc`` (document info). Tags before the first section are ignored.
Within a section, tags are dispatched through a table keyed by TagKind;
unknown kinds have no entry and are skipped.
"""

from collections.abc import Callable, Sequence

import structlog

from apidoc.parser.base import API, Doc, DocTag, ExternalDocs, License, Server
from apidoc.parser.body import (
    ParamScope,
    new_header,
    new_request,
    parse_response,
)
from apidoc.parser.lexer import Block, Tag, lex
from apidoc.parser.tags import BODY_KINDS, TagKind, split_fields

logger = structlog.get_logger()

Fragment = API | Doc


class _Section:
    """Parse state for one section: the target model and open scopes."""

    def __init__(self, target: Fragment):
        self.target = target
        self.in_body = False  # after @apiRequest/@apiResponse
        if isinstance(target, API):
            self.params = ParamScope(target.params)
            self.queries = ParamScope(target.queries)


Handler = Callable[[_Section, Sequence[Tag], int], None]


def _rest(tag: Tag) -> str:
    fields = split_fields(tag.body, 1)
    return fields[0] if fields else ""


def _description(section: _Section, tags: Sequence[Tag], index: int) -> None:
    section.target.description = tags[index].body


def _group(section: _Section, tags: Sequence[Tag], index: int) -> None:
    section.target.group = _rest(tags[index])


def _param(section: _Section, tags: Sequence[Tag], index: int) -> None:
    if not section.in_body:
        section.params.add(tags[index])


def _query(section: _Section, tags: Sequence[Tag], index: int) -> None:
    section.queries.add(tags[index])


def _header(section: _Section, tags: Sequence[Tag], index: int) -> None:
    if section.in_body:
        return
    header = new_header(tags[index])
    if header is not None:
        section.target.headers.append(header)


def _request(section: _Section, tags: Sequence[Tag], index: int) -> None:
    section.in_body = True
    req = new_request(tags[index + 1:], tags[index])
    if req is None:
        return
    if section.target.request is not None:
        tag = tags[index]
        logger.warning("request_redeclared", file=tag.file, line=tag.line)
    section.target.request = req


def _response(section: _Section, tags: Sequence[Tag], index: int) -> None:
    section.in_body = True
    parse_response(section.target.responses, tags[index + 1:], tags[index])


def _version(section: _Section, tags: Sequence[Tag], index: int) -> None:
    section.target.version = _rest(tags[index])


def _server(section: _Section, tags: Sequence[Tag], index: int) -> None:
    fields = split_fields(tags[index].body, 2)
    if fields:
        section.target.servers.append(Server(url=fields[0], description=fields[1] if len(fields) > 1 else ""))


def _tag(section: _Section, tags: Sequence[Tag], index: int) -> None:
    fields = split_fields(tags[index].body, 2)
    if fields:
        section.target.tags.append(DocTag(name=fields[0], description=fields[1] if len(fields) > 1 else ""))


def _license(section: _Section, tags: Sequence[Tag], index: int) -> None:
    fields = split_fields(tags[index].body, 2)
    if fields:
        section.target.license = License(name=fields[0], url=fields[1] if len(fields) > 1 else "")


def _external_docs(section: _Section, tags: Sequence[Tag], index: int) -> None:
    fields = split_fields(tags[index].body, 2)
    if fields:
        section.target.external_docs = ExternalDocs(url=fields[0], description=fields[1] if len(fields) > 1 else "")


API_HANDLERS: dict[TagKind, Handler] = {
    TagKind.DESCRIPTION: _description,
    TagKind.GROUP: _group,
    TagKind.PARAM: _param,
    TagKind.QUERY: _query,
    TagKind.HEADER: _header,
    TagKind.REQUEST: _request,
    TagKind.RESPONSE: _response,
}

DOC_HANDLERS: dict[TagKind, Handler] = {
    TagKind.DESCRIPTION: _description,
    TagKind.VERSION: _version,
    TagKind.SERVER: _server,
    TagKind.TAG: _tag,
    TagKind.LICENSE: _license,
    TagKind.EXTERNAL_DOCS: _external_docs,
    TagKind.RESPONSE: _response,
}


def new_api(tag: Tag) -> API | None:
    """``@api method path summary``"""
    fields = split_fields(tag.body, 3)
    if len(fields) < 2:
        logger.debug("tag_dropped", tag=tag.name, file=tag.file, line=tag.line, reason="api needs a method and path")
        return None
    return API(
        method=fields[0].upper(),
        path=fields[1],
        summary=fields[2] if len(fields) > 2 else "",
        file=tag.file,
        line=tag.line,
    )


def new_doc(tag: Tag) -> Doc:
    """``@apidoc title``"""
    return Doc(title=_rest(tag))


def _parse_section(target: Fragment, handlers: dict[TagKind, Handler], tags: Sequence[Tag]) -> None:
    section = _Section(target)
    for index in range(len(tags)):
        kind = TagKind.of(tags[index].name)
        if section.in_body and kind in BODY_KINDS:
            continue
        handler = handlers.get(kind)
        if handler is not None:
            handler(section, tags, index)


def parse_tags(tags: Sequence[Tag]) -> list[Fragment]:
    """Parse a lexed tag stream into API and Doc fragments, in order."""
    starts = [i for i, tag in enumerate(tags) if TagKind.of(tag.name) in (TagKind.API, TagKind.DOC)]
    fragments: list[Fragment] = []
    for n, start in enumerate(starts):
        end = starts[n + 1] if n + 1 < len(starts) else len(tags)
        head = tags[start]
        body = tags[start + 1:end]
        if TagKind.of(head.name) == TagKind.API:
            api = new_api(head)
            if api is None:
                continue
            _parse_section(api, API_HANDLERS, body)
            fragments.append(api)
        else:
            doc = new_doc(head)
            _parse_section(doc, DOC_HANDLERS, body)
            fragments.append(doc)
    return fragments


def parse_block(block: Block) -> list[Fragment]:
    """Lex and parse one block."""
    fragments = parse_tags(lex(block))
    logger.debug("block_parsed", file=block.file, line=block.line, fragments=len(fragments))
    return fragments
