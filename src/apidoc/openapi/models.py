"""OpenAPI 3 document types and their validation.

https://github.com/OAI/OpenAPI-Specification

Optional fields are omitted from serialized output when empty. Reusable
objects carry an optional ``$ref``; once set, it is the only key written.
"""

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from apidoc.errors import ApidocError, ErrorKind
from apidoc.formats import is_semver, is_url

LATEST_VERSION = "3.0.1"

SCHEMA_TYPES = frozenset({"", "boolean", "number", "integer", "string", "object", "array"})
PARAMETER_LOCATIONS = frozenset({"query", "header", "path", "cookie"})
OPERATION_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class OpenAPIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Referable(OpenAPIModel):
    ref: str = Field(default="", alias="$ref")

    @model_serializer(mode="wrap")
    def _prefer_ref(self, handler):
        if self.ref:
            return {"$ref": self.ref}
        return handler(self)


class Server(OpenAPIModel):
    url: str
    description: str = ""

    def sanitize(self) -> None:
        if not is_url(self.url, allow_relative=True):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "url", detail=self.url)


class ExternalDocumentation(OpenAPIModel):
    description: str = ""
    url: str

    def sanitize(self) -> None:
        if not is_url(self.url):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "url", detail=self.url)


class License(OpenAPIModel):
    name: str
    url: str = ""

    def sanitize(self) -> None:
        if not self.name:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "name")
        if self.url and not is_url(self.url):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "url", detail=self.url)


class Info(OpenAPIModel):
    title: str
    description: str = ""
    version: str
    license: License | None = None

    def sanitize(self) -> None:
        if not self.title:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "title")
        if not self.version:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "version")
        if self.license is not None:
            try:
                self.license.sanitize()
            except ApidocError as err:
                raise err.prefix("license")


class Tag(OpenAPIModel):
    name: str
    description: str = ""
    external_docs: ExternalDocumentation | None = Field(default=None, alias="externalDocs")

    def sanitize(self) -> None:
        if not self.name:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "name")
        if self.external_docs is not None:
            try:
                self.external_docs.sanitize()
            except ApidocError as err:
                raise err.prefix("externalDocs")


class Schema(Referable):
    type: str = ""
    description: str = ""
    nullable: bool = False
    items: "Schema | None" = None
    properties: "dict[str, Schema]" = {}
    required: list[str] = []
    one_of: "list[Schema]" = Field(default=[], alias="oneOf")

    def sanitize(self) -> None:
        if self.ref:
            return
        if self.type not in SCHEMA_TYPES:
            raise ApidocError(ErrorKind.INVALID_FORMAT, "type", detail=self.type)
        if self.type == "array":
            if self.items is None:
                raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "items")
            try:
                self.items.sanitize()
            except ApidocError as err:
                raise err.prefix("items")
        for index, alt in enumerate(self.one_of):
            try:
                alt.sanitize()
            except ApidocError as err:
                raise err.prefix("oneOf", index)
        for name, prop in self.properties.items():
            try:
                prop.sanitize()
            except ApidocError as err:
                raise err.prefix(f"properties[{name}]")
        for name in self.required:
            if name not in self.properties:
                raise ApidocError(ErrorKind.INVALID_FORMAT, "required", detail=name)


Schema.model_rebuild()


class Example(Referable):
    summary: str = ""
    description: str = ""
    value: str = ""
    external_value: str = Field(default="", alias="externalValue")

    def sanitize(self) -> None:
        if self.value and self.external_value:
            raise ApidocError(ErrorKind.INVALID_FORMAT, "value", detail="value and externalValue are exclusive")


def _sanitize_schema(schema: Schema | None) -> None:
    if schema is not None:
        try:
            schema.sanitize()
        except ApidocError as err:
            raise err.prefix("schema")


class Header(Referable):
    description: str = ""
    required: bool = False
    schema_: Schema | None = Field(default=None, alias="schema")

    def sanitize(self) -> None:
        if not self.ref:
            _sanitize_schema(self.schema_)


class MediaType(OpenAPIModel):
    schema_: Schema | None = Field(default=None, alias="schema")
    examples: dict[str, Example] = {}

    def sanitize(self) -> None:
        _sanitize_schema(self.schema_)
        for name, example in self.examples.items():
            try:
                example.sanitize()
            except ApidocError as err:
                raise err.prefix(f"examples[{name}]")


def _sanitize_content(content: dict[str, MediaType]) -> None:
    for mimetype, media in content.items():
        try:
            media.sanitize()
        except ApidocError as err:
            raise err.prefix(f"content[{mimetype}]")


class Parameter(Referable):
    name: str = ""
    in_: str = Field(default="", alias="in")
    description: str = ""
    required: bool = False
    schema_: Schema | None = Field(default=None, alias="schema")

    def sanitize(self) -> None:
        if self.ref:
            return
        if not self.name:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "name")
        if self.in_ not in PARAMETER_LOCATIONS:
            raise ApidocError(ErrorKind.INVALID_FORMAT, "in", detail=self.in_)
        if self.in_ == "path" and not self.required:
            raise ApidocError(ErrorKind.INVALID_FORMAT, "required", detail="path parameters are required")
        _sanitize_schema(self.schema_)


class RequestBody(Referable):
    description: str = ""
    content: dict[str, MediaType] = {}
    required: bool = False

    def sanitize(self) -> None:
        if self.ref:
            return
        if not self.content:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "content")
        _sanitize_content(self.content)


class Link(Referable):
    operation_ref: str = Field(default="", alias="operationRef")
    operation_id: str = Field(default="", alias="operationId")
    parameters: dict[str, str] = {}
    request_body: str = Field(default="", alias="requestBody")
    description: str = ""
    server: Server | None = None

    def sanitize(self) -> None:
        if self.server is not None:
            try:
                self.server.sanitize()
            except ApidocError as err:
                raise err.prefix("server")


class Response(Referable):
    description: str = ""
    headers: dict[str, Header] = {}
    content: dict[str, MediaType] = {}
    links: dict[str, Link] = {}

    def sanitize(self) -> None:
        if self.ref:
            return
        if not self.description:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "description")
        for name, header in self.headers.items():
            try:
                header.sanitize()
            except ApidocError as err:
                raise err.prefix(f"headers[{name}]")
        _sanitize_content(self.content)
        for name, link in self.links.items():
            try:
                link.sanitize()
            except ApidocError as err:
                raise err.prefix(f"links[{name}]")


class Operation(OpenAPIModel):
    tags: list[str] = []
    summary: str = ""
    description: str = ""
    operation_id: str = Field(default="", alias="operationId")
    parameters: list[Parameter] = []
    request_body: RequestBody | None = Field(default=None, alias="requestBody")
    responses: dict[str, Response] = {}
    deprecated: bool = False

    def sanitize(self) -> None:
        for index, param in enumerate(self.parameters):
            try:
                param.sanitize()
            except ApidocError as err:
                raise err.prefix("parameters", index)
        if self.request_body is not None:
            try:
                self.request_body.sanitize()
            except ApidocError as err:
                raise err.prefix("requestBody")
        if not self.responses:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "responses")
        for status, resp in self.responses.items():
            try:
                resp.sanitize()
            except ApidocError as err:
                raise err.prefix(f"responses[{status}]")


class PathItem(OpenAPIModel):
    summary: str = ""
    description: str = ""
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None
    trace: Operation | None = None

    def operations(self) -> dict[str, Operation]:
        ops = {}
        for method in OPERATION_METHODS:
            op = getattr(self, method)
            if op is not None:
                ops[method] = op
        return ops

    def sanitize(self) -> None:
        for method, op in self.operations().items():
            try:
                op.sanitize()
            except ApidocError as err:
                raise err.prefix(method)


class Components(OpenAPIModel):
    schemas: dict[str, Schema] = {}
    responses: dict[str, Response] = {}
    parameters: dict[str, Parameter] = {}
    examples: dict[str, Example] = {}
    request_bodies: dict[str, RequestBody] = Field(default={}, alias="requestBodies")
    headers: dict[str, Header] = {}
    links: dict[str, Link] = {}
    callbacks: dict[str, dict[str, PathItem]] = {}

    def sanitize(self) -> None:
        for table in ("schemas", "responses", "parameters", "examples", "request_bodies", "headers", "links"):
            field = type(self).model_fields[table].alias or table
            for key, item in getattr(self, table).items():
                try:
                    item.sanitize()
                except ApidocError as err:
                    raise err.prefix(f"{field}[{key}]")


class OpenAPI(OpenAPIModel):
    """Root of an OpenAPI document."""

    openapi: str = ""
    info: Info | None = None
    servers: list[Server] = []
    paths: dict[str, PathItem] = {}
    components: Components | None = None
    tags: list[Tag] = []
    external_docs: ExternalDocumentation | None = Field(default=None, alias="externalDocs")

    def sanitize(self) -> None:
        """Fill defaults and validate. Raises ApidocError on the first problem."""
        if not self.openapi:
            self.openapi = LATEST_VERSION
        if not is_semver(self.openapi):
            raise ApidocError(ErrorKind.INVALID_FORMAT, "openapi", detail=self.openapi)

        if self.info is None:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "info")
        try:
            self.info.sanitize()
        except ApidocError as err:
            raise err.prefix("info")

        if not self.servers:
            self.servers = [Server(url="/")]
        for index, srv in enumerate(self.servers):
            try:
                srv.sanitize()
            except ApidocError as err:
                raise err.prefix("servers", index)

        if not self.paths:
            raise ApidocError(ErrorKind.MISSING_REQUIRED_FIELD, "paths")
        for path, item in self.paths.items():
            try:
                item.sanitize()
            except ApidocError as err:
                raise err.prefix(f"paths[{path}]")

        if self.components is not None:
            try:
                self.components.sanitize()
            except ApidocError as err:
                raise err.prefix("components")

        for index, tag in enumerate(self.tags):
            try:
                tag.sanitize()
            except ApidocError as err:
                raise err.prefix("tags", index)

        if self.external_docs is not None:
            try:
                self.external_docs.sanitize()
            except ApidocError as err:
                raise err.prefix("externalDocs")

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_defaults=True)
