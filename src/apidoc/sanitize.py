"""Validation and default filling for the document model.

Checks run depth-first and stop at the first failure. Each level prefixes its
own location to the error path, so callers always see a fully qualified
field such as ``apis[0].responses[1].headers[0].name``.
"""

from apidoc.errors import ApidocError, ErrorKind
from apidoc.formats import is_semver, is_url
from apidoc.parser.base import API, Body, Doc, Param, Response, Server, Type

DEFAULT_VERSION = "1.0.0"

METHODS = frozenset({"GET", "PUT", "POST", "DELETE", "OPTIONS", "HEAD", "PATCH", "TRACE"})


def _required(value: str, *path: str | int) -> None:
    if not value:
        raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, *path)


def sanitize(doc: Doc) -> None:
    """Validate doc in place, filling defaults. Raises ApidocError."""
    if not doc.servers:
        doc.servers = [Server(url="/")]
    for index, srv in enumerate(doc.servers):
        if not is_url(srv.url, allow_relative=True):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "servers", index, "url", detail=srv.url)

    if not doc.version:
        doc.version = DEFAULT_VERSION
    elif not is_semver(doc.version):
        raise ApidocError(ErrorKind.INVALID_FORMAT, "version", detail=doc.version)

    _required(doc.title, "title")

    if not doc.apis:
        raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "paths")

    for index, tag in enumerate(doc.tags):
        _required(tag.name, "tags", index, "name")

    if doc.license is not None:
        _required(doc.license.name, "license", "name")
        if doc.license.url and not is_url(doc.license.url):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "license", "url", detail=doc.license.url)

    if doc.external_docs is not None and not is_url(doc.external_docs.url):
        raise ApidocError(ErrorKind.INVALID_FORMAT, "external_docs", "url", detail=doc.external_docs.url)

    for index, resp in enumerate(doc.responses):
        try:
            sanitize_body(resp)
        except ApidocError as err:
            raise err.prefix("responses", index)

    for index, api in enumerate(doc.apis):
        try:
            sanitize_api(api)
        except ApidocError as err:
            raise err.prefix("apis", index).located(api.file, api.line)


def sanitize_api(api: API) -> None:
    if api.method not in METHODS:
        raise ApidocError(ErrorKind.INVALID_FORMAT, "method", detail=api.method)
    _required(api.path, "path")
    if not api.path.startswith("/"):
        raise ApidocError(ErrorKind.INVALID_FORMAT, "path", detail=api.path)

    for index, header in enumerate(api.headers):
        _required(header.name, "headers", index, "name")

    for field in ("params", "queries"):
        for index, param in enumerate(getattr(api, field)):
            try:
                sanitize_param(param)
            except ApidocError as err:
                raise err.prefix(field, index)

    if api.request is not None:
        try:
            sanitize_body(api.request)
        except ApidocError as err:
            raise err.prefix("request")

    for index, resp in enumerate(api.responses):
        try:
            sanitize_body(resp)
        except ApidocError as err:
            raise err.prefix("responses", index)


def sanitize_body(body: Body) -> None:
    _required(body.mimetype, "mimetype")
    if isinstance(body, Response) and not 100 <= body.status <= 599:
        raise ApidocError(ErrorKind.INVALID_STATUS, "status", detail=str(body.status))

    for index, header in enumerate(body.headers):
        _required(header.name, "headers", index, "name")

    for index, example in enumerate(body.examples):
        _required(example.mimetype, "examples", index, "mimetype")

    if body.type is not None:
        try:
            sanitize_type(body.type)
        except ApidocError as err:
            raise err.prefix("type")


def sanitize_param(param: Param) -> None:
    _required(param.name, "name")
    try:
        sanitize_type(param.type)
    except ApidocError as err:
        raise err.prefix("type")


def sanitize_type(typ: Type) -> None:
    if typ.items is not None:
        try:
            sanitize_type(typ.items)
        except ApidocError as err:
            raise err.prefix("items")

    for name, prop in (typ.properties or {}).items():
        try:
            sanitize_param(prop)
        except ApidocError as err:
            raise err.prefix("properties", name)
