"""Parsers for the tags that make up a request or response body.

Every parser is forgiving about short tags: if a tag has fewer fields than
its grammar needs, it is dropped without error. Malformed types and statuses
are not guessed and raise ApidocError.
"""

from collections.abc import Sequence

import structlog

from apidoc.errors import ApidocError, ErrorKind
from apidoc.parser.base import Body, Example, Header, Param, Request, Response, Type
from apidoc.parser.lexer import Tag
from apidoc.parser.tags import BOUNDARY_KINDS, TagKind, is_optional, split_fields
from apidoc.parser.types import parse_type

logger = structlog.get_logger()


def _dropped(tag: Tag, reason: str) -> None:
    logger.debug("tag_dropped", tag=tag.name, file=tag.file, line=tag.line, reason=reason)


def tag_type(tag: Tag, token: str, description: str = "") -> Type:
    """Parse a type token, locating any error at the tag."""
    try:
        return parse_type(token, description)
    except ApidocError as err:
        raise err.prefix(tag.name, "type").located(tag.file, tag.line, tag.column)


def parse_status(tag: Tag, token: str) -> int:
    if not token.isdigit():
        raise tag.error(ErrorKind.INVALID_STATUS, tag.name, "status", detail=token)
    return int(token)


def new_example(tag: Tag) -> Example | None:
    """``@apiExample mimetype summary...`` then the example value on the following lines."""
    head, _, value = tag.body.partition("\n")
    fields = split_fields(head, 2)
    if not fields or not value.strip():
        _dropped(tag, "example needs a mimetype and a value")
        return None
    return Example(
        mimetype=fields[0],
        summary=fields[1] if len(fields) > 1 else "",
        value=value,
    )


def new_header(tag: Tag) -> Header | None:
    """``@apiHeader name (required|optional) summary``"""
    fields = split_fields(tag.body, 3)
    if len(fields) < 2:
        _dropped(tag, "header needs a name and optional flag")
        return None
    return Header(
        name=fields[0],
        optional=is_optional(fields[1]),
        summary=fields[2] if len(fields) > 2 else "",
    )


def new_param(tag: Tag) -> Param | None:
    """``@apiParam name type (required|optional) description``"""
    fields = split_fields(tag.body, 4)
    if len(fields) < 3:
        _dropped(tag, "param needs a name, type and optional flag")
        return None
    return Param(
        name=fields[0],
        type=tag_type(tag, fields[1]),
        optional=is_optional(fields[2]),
        description=fields[3] if len(fields) > 3 else "",
    )


def parse_example(body: Body, tag: Tag) -> None:
    example = new_example(tag)
    if example is not None:
        body.examples.append(example)


def parse_header(body: Body, tag: Tag) -> None:
    header = new_header(tag)
    if header is not None:
        body.headers.append(header)


class ParamScope:
    """Attaches params to a root container, nesting dotted names.

    ``user object`` opens a scope; ``user.name string`` becomes a property of
    ``user``. A scope closes when a param at the same or a shallower level
    is declared.
    """

    def __init__(self, root: dict[str, Param] | list[Param] | None):
        self.root = root
        self._open: list[tuple[tuple[str, ...], Param]] = []

    def add(self, tag: Tag) -> Param | None:
        param = new_param(tag)
        if param is None:
            return None

        names = tuple(param.name.split("."))
        if not all(names):
            _dropped(tag, "empty segment in param name")
            return None

        while self._open:
            path, _ = self._open[-1]
            if len(path) < len(names) and names[: len(path)] == path:
                break
            self._open.pop()

        if len(names) == 1:
            container = self.root
        elif self._open and self._open[-1][0] == names[:-1]:
            container = self._open[-1][1].type.object_root().properties
        else:
            logger.warning("param_scope_closed", tag=tag.name, name=param.name, file=tag.file, line=tag.line)
            return None

        if container is None:
            logger.warning("param_without_object", tag=tag.name, name=param.name, file=tag.file, line=tag.line)
            return None

        param.name = names[-1]
        if isinstance(container, dict):
            container[param.name] = param
        else:
            container.append(param)

        if param.type.object_root() is not None:
            self._open.append((names, param))
        return param


def collect_body(body: Body, tags: Sequence[Tag]) -> None:
    """Fill body from the tags following its declaration, up to a boundary.

    Tags that belong to the enclosing API (``@apiQuery``, ``@apiGroup``...)
    are skipped here; the API parser handles them.
    """
    root = body.type.object_root() if body.type is not None else None
    scope = ParamScope(root.properties if root is not None else None)
    for tag in tags:
        kind = TagKind.of(tag.name)
        if kind in BOUNDARY_KINDS:
            break
        if kind == TagKind.HEADER:
            parse_header(body, tag)
        elif kind == TagKind.EXAMPLE:
            parse_example(body, tag)
        elif kind == TagKind.PARAM:
            scope.add(tag)


def new_response(tags: Sequence[Tag], tag: Tag) -> Response | None:
    """``@apiResponse status type mimetype description``

    Builds a fresh Response from ``tag`` and the body tags in ``tags``; the
    inputs are not consumed, so the same stream may be used again.
    """
    fields = split_fields(tag.body, 4)
    if len(fields) < 3:
        _dropped(tag, "response needs a status, type and mimetype")
        return None

    resp = Response(
        status=parse_status(tag, fields[0]),
        type=tag_type(tag, fields[1], fields[3] if len(fields) > 3 else ""),
        mimetype=fields[2],
    )
    collect_body(resp, tags)
    return resp


def new_request(tags: Sequence[Tag], tag: Tag) -> Request | None:
    """``@apiRequest type mimetype description``"""
    fields = split_fields(tag.body, 3)
    if len(fields) < 2:
        _dropped(tag, "request needs a type and mimetype")
        return None

    req = Request(
        type=tag_type(tag, fields[0], fields[2] if len(fields) > 2 else ""),
        mimetype=fields[1],
    )
    collect_body(req, tags)
    return req


def parse_response(responses: list[Response], tags: Sequence[Tag], tag: Tag) -> Response | None:
    resp = new_response(tags, tag)
    if resp is not None:
        responses.append(resp)
    return resp
