"""Maps a sanitized document model into an OpenAPI document.

The document model is only read, never modified. Responses declared in the
``@apidoc`` block are hoisted into ``components.responses`` and referenced by
every operation that does not declare its own response for that status.
"""

from http import HTTPStatus

import structlog

from apidoc.errors import ApidocError, ErrorKind
from apidoc.openapi import models as oa
from apidoc.parser.base import API, Body, Doc, Header, Param, Response, Type, TypeKind

logger = structlog.get_logger()

SCHEMA_TYPES = {
    TypeKind.BOOL: "boolean",
    TypeKind.NUMBER: "number",
    TypeKind.STRING: "string",
    TypeKind.OBJECT: "object",
    TypeKind.ARRAY: "array",
    TypeKind.ANY: "",
}

RESPONSE_REF = "#/components/responses/"


def mimetype_key(mimetype: str) -> str:
    return "*/*" if mimetype == "*" else mimetype


def free_key(table: dict, name: str) -> str:
    """name, or name-n with the first n that is not already a key of table."""
    key, n = name, len(table)
    while key in table:
        key = f"{name}-{n}"
        n += 1
    return key


def export_schema(typ: Type) -> oa.Schema:
    """Map a type tree onto a schema, structure for structure."""
    if typ.kind == TypeKind.NONE:
        return oa.Schema(nullable=True, description=typ.description)

    schema = oa.Schema(type=SCHEMA_TYPES[typ.kind], description=typ.description)
    if typ.items is not None:
        schema.items = export_schema(typ.items)
    if typ.properties is not None:
        schema.properties = {name: _property_schema(p) for name, p in typ.properties.items()}
        schema.required = [name for name, p in typ.properties.items() if not p.optional]
    return schema


def _property_schema(param: Param) -> oa.Schema:
    schema = export_schema(param.type)
    if param.description:
        schema.description = param.description
    return schema


def export_header(header: Header) -> oa.Header:
    return oa.Header(
        description=header.summary,
        required=not header.optional,
        schema=oa.Schema(type="string"),
    )


def export_parameter(param: Param, location: str) -> oa.Parameter:
    return oa.Parameter(
        name=param.name,
        in_=location,
        description=param.description,
        required=location == "path" or not param.optional,
        schema=export_schema(param.type),
    )


def export_content(body: Body) -> dict[str, oa.MediaType]:
    """Content keyed by mimetype; examples go under their own mimetype."""
    schema = None
    if body.type is not None and body.type.kind != TypeKind.NONE:
        schema = export_schema(body.type)

    content: dict[str, oa.MediaType] = {}
    if schema is not None:
        content[mimetype_key(body.mimetype)] = oa.MediaType(schema=schema)

    for example in body.examples:
        key = mimetype_key(example.mimetype)
        media = content.setdefault(key, oa.MediaType(schema=schema))
        name = free_key(media.examples, example.summary or key)
        media.examples[name] = oa.Example(summary=example.summary, value=example.value)
    return content


def _response_description(resp: Response) -> str:
    if resp.type is not None and resp.type.description:
        return resp.type.description
    try:
        return HTTPStatus(resp.status).phrase
    except ValueError:
        return str(resp.status)


def export_response(resp: Response) -> oa.Response:
    return oa.Response(
        description=_response_description(resp),
        headers={h.name: export_header(h) for h in resp.headers},
        content=export_content(resp),
    )


def _merge_schema(into: oa.Schema | None, other: oa.Schema | None) -> oa.Schema | None:
    """Differing schemas under one mimetype become alternatives of a oneOf."""
    if into is None or other is None or into == other:
        return into or other
    alternatives = list(into.one_of) if into.one_of else [into]
    if other not in alternatives:
        alternatives.append(other)
    return oa.Schema(one_of=alternatives)


def _merge_response(into: oa.Response, other: oa.Response) -> None:
    """Responses sharing a status become one, content keyed by mimetype.

    Equal headers are shared; a differing header or any example whose key is
    taken is renamed with a -n suffix.
    """
    for name, header in other.headers.items():
        if into.headers.get(name) != header:
            into.headers[free_key(into.headers, name)] = header
    for key, media in other.content.items():
        existing = into.content.get(key)
        if existing is None:
            into.content[key] = media
            continue
        existing.schema_ = _merge_schema(existing.schema_, media.schema_)
        for name, example in media.examples.items():
            existing.examples[free_key(existing.examples, name)] = example


def export_responses(responses: list[Response]) -> dict[str, oa.Response]:
    result: dict[str, oa.Response] = {}
    for resp in responses:
        key = str(resp.status)
        exported = export_response(resp)
        if key in result:
            _merge_response(result[key], exported)
        else:
            result[key] = exported
    return result


def export_operation(api: API, shared: dict[str, oa.Response]) -> oa.Operation:
    params = [export_parameter(p, "path") for p in api.params]
    params += [export_parameter(p, "query") for p in api.queries]
    params += [
        oa.Parameter(
            name=h.name,
            in_="header",
            description=h.summary,
            required=not h.optional,
            schema=oa.Schema(type="string"),
        )
        for h in api.headers
    ]

    request_body = None
    if api.request is not None:
        request_body = oa.RequestBody(
            description=api.request.type.description if api.request.type is not None else "",
            content=export_content(api.request),
            required=True,
        )

    responses = export_responses(api.responses)
    for status in shared:
        responses.setdefault(status, oa.Response(ref=RESPONSE_REF + status))

    return oa.Operation(
        tags=[api.group] if api.group else [],
        summary=api.summary,
        description=api.description,
        parameters=params,
        requestBody=request_body,
        responses=responses,
    )


def _shared_responses(doc: Doc) -> dict[str, oa.Response]:
    shared: dict[str, oa.Response] = {}
    for resp in doc.responses:
        key = str(resp.status)
        exported = export_response(resp)
        existing = shared.get(key)
        if existing is not None and existing != exported:
            raise ApidocError(ErrorKind.DUPLICATE_REFERENCE, "components", f"responses[{key}]")
        shared[key] = exported
    return shared


def export(doc: Doc) -> oa.OpenAPI:
    """Build the OpenAPI document for a sanitized doc."""
    shared = _shared_responses(doc)

    paths: dict[str, oa.PathItem] = {}
    for api in doc.apis:
        item = paths.setdefault(api.path, oa.PathItem())
        method = api.method.lower()
        if getattr(item, method) is not None:
            raise ApidocError(
                ErrorKind.DUPLICATE_REFERENCE, f"paths[{api.path}]", method, file=api.file, line=api.line
            )
        setattr(item, method, export_operation(api, shared))

    tags = [oa.Tag(name=t.name, description=t.description) for t in doc.tags]
    declared = {t.name for t in doc.tags}
    for api in doc.apis:
        if api.group and api.group not in declared:
            declared.add(api.group)
            tags.append(oa.Tag(name=api.group))

    info = oa.Info(title=doc.title, description=doc.description, version=doc.version)
    if doc.license is not None:
        info.license = oa.License(name=doc.license.name, url=doc.license.url)

    document = oa.OpenAPI(
        info=info,
        servers=[oa.Server(url=s.url, description=s.description) for s in doc.servers],
        paths=paths,
        components=oa.Components(responses=shared) if shared else None,
        tags=tags,
    )
    if doc.external_docs is not None:
        document.external_docs = oa.ExternalDocumentation(
            url=doc.external_docs.url, description=doc.external_docs.description
        )
    logger.debug("doc_exported", paths=len(paths), shared_responses=len(shared))
    return document
