"""OpenAPI document reader.

Maps an OpenAPI 3.x document (as written by the exporter, JSON or YAML) back
into the document model. Responses under ``components.responses`` become the
doc's shared responses; operation entries that only ``$ref`` them are not
repeated on the API.
"""

from http import HTTPStatus
from pathlib import Path

import yaml

from apidoc.openapi.exporter import RESPONSE_REF
from apidoc.openapi.models import OPERATION_METHODS
from apidoc.parser.base import (
    API,
    Body,
    Doc,
    DocTag,
    Example,
    ExternalDocs,
    Header,
    License,
    Param,
    Request,
    Response,
    Server,
    Type,
    TypeKind,
)

TYPE_KINDS = {
    "boolean": TypeKind.BOOL,
    "number": TypeKind.NUMBER,
    "integer": TypeKind.NUMBER,
    "string": TypeKind.STRING,
    "object": TypeKind.OBJECT,
    "array": TypeKind.ARRAY,
}


def load_openapi(file_path: Path) -> Doc:
    """Read an OpenAPI file into a Doc."""
    text = file_path.read_text(encoding="utf-8")
    return read_openapi(yaml.safe_load(text))


def read_openapi(data: dict) -> Doc:
    info = data.get("info", {})
    doc = Doc(
        title=info.get("title", ""),
        description=info.get("description", ""),
        version=info.get("version", ""),
        servers=[Server(url=s["url"], description=s.get("description", "")) for s in data.get("servers", [])],
        tags=[DocTag(name=t["name"], description=t.get("description", "")) for t in data.get("tags", [])],
    )
    if "license" in info:
        doc.license = License(name=info["license"]["name"], url=info["license"].get("url", ""))
    if "externalDocs" in data:
        ext = data["externalDocs"]
        doc.external_docs = ExternalDocs(url=ext["url"], description=ext.get("description", ""))

    shared = data.get("components", {}).get("responses", {})
    doc.responses = [r for status, resp in shared.items() for r in _read_responses(status, resp)]

    for path, item in data.get("paths", {}).items():
        for method in OPERATION_METHODS:
            if method in item:
                doc.apis.append(_read_operation(method, path, item[method]))
    return doc


def _read_operation(method: str, path: str, op: dict) -> API:
    tags = op.get("tags", [])
    api = API(
        method=method.upper(),
        path=path,
        summary=op.get("summary", ""),
        description=op.get("description", ""),
        group=tags[0] if tags else "",
    )

    for p in op.get("parameters", []):
        location = p.get("in", "query")
        if location == "header":
            api.headers.append(
                Header(name=p["name"], summary=p.get("description", ""), optional=not p.get("required", False))
            )
            continue
        param = Param(
            name=p["name"],
            type=read_schema(p.get("schema", {})),
            optional=not p.get("required", False),
            description=p.get("description", ""),
        )
        if location == "path":
            api.params.append(param)
        else:
            api.queries.append(param)

    body = op.get("requestBody")
    if body:
        api.request = Request()
        _read_content(api.request, body.get("content", {}), body.get("description", ""))

    for status, resp in op.get("responses", {}).items():
        if resp.get("$ref", "").startswith(RESPONSE_REF):
            continue
        api.responses.extend(_read_responses(status, resp))
    return api


def _read_responses(status: str, resp: dict) -> list[Response]:
    """One response per distinct schema: merged responses are split apart again.

    Headers and examples stay on the first response.
    """
    code = int(status)
    description = resp.get("description", "")
    try:
        if description == HTTPStatus(code).phrase:
            description = ""  # generated by the exporter
    except ValueError:
        pass

    result = Response(status=code)
    for name, header in resp.get("headers", {}).items():
        result.headers.append(
            Header(name=name, summary=header.get("description", ""), optional=not header.get("required", False))
        )
    extra = _read_content(result, resp.get("content", {}), description)
    return [result] + [Response(status=code, mimetype=mimetype, type=typ) for mimetype, typ in extra]


def _read_content(body: Body, content: dict, description: str) -> list[tuple[str, Type]]:
    """Fill body from content; returns (mimetype, type) for each further distinct schema.

    description only applies to a body without a schema; typed bodies carry
    theirs on the schema.
    """
    seen = []
    extra = []
    for mimetype, media in content.items():
        schema = media.get("schema")
        alternatives = (schema.get("oneOf") or [schema]) if schema is not None else []
        for alt in alternatives:
            if alt in seen:
                continue
            seen.append(alt)
            if body.type is None:
                body.type = read_schema(alt)
                body.mimetype = _mimetype(mimetype)
            else:
                extra.append((_mimetype(mimetype), read_schema(alt)))
        for example in media.get("examples", {}).values():
            body.examples.append(
                Example(mimetype=_mimetype(mimetype), summary=example.get("summary", ""), value=example.get("value", ""))
            )
    if body.type is None:
        # no schema: an empty body
        body.type = Type(kind=TypeKind.NONE, description=description)
    if not body.mimetype:
        body.mimetype = _mimetype(next(iter(content))) if content else "*"
    return extra


def read_schema(schema: dict) -> Type:
    kind = TYPE_KINDS.get(schema.get("type", ""))
    if kind is None:
        kind = TypeKind.NONE if schema.get("nullable") else TypeKind.ANY
    description = schema.get("description", "")

    if kind == TypeKind.ARRAY:
        return Type(kind=kind, items=read_schema(schema.get("items", {})), description=description)
    if kind != TypeKind.OBJECT:
        return Type(kind=kind, description=description)

    required = set(schema.get("required", []))
    properties = {}
    for name, prop in schema.get("properties", {}).items():
        typ = read_schema(prop)
        typ.description = ""  # a property's description belongs to the param
        properties[name] = Param(
            name=name,
            type=typ,
            optional=name not in required,
            description=prop.get("description", ""),
        )
    return Type(kind=kind, properties=properties, description=description)


def _mimetype(key: str) -> str:
    return "*" if key == "*/*" else key
