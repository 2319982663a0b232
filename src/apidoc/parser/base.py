"""Document model built from annotation tags.

Tag parsers populate these models; the sanitizer validates them and the
OpenAPI exporter reads them.
"""

from enum import Enum

from pydantic import BaseModel, PrivateAttr, model_validator


class TypeKind(str, Enum):
    NONE = "none"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    OBJECT = "object"
    ARRAY = "array"
    ANY = "any"  # the * wildcard


class Type(BaseModel):
    """A node of a type tree such as ``array.object``."""

    kind: TypeKind
    items: "Type | None" = None  # array only
    properties: "dict[str, Param] | None" = None  # object only
    description: str = ""

    _implicit: bool = PrivateAttr(default=False)  # items of a bare "array"

    @model_validator(mode="after")
    def _check_shape(self) -> "Type":
        if (self.items is not None) != (self.kind == TypeKind.ARRAY):
            raise ValueError("items is present iff kind is array")
        if (self.properties is not None) != (self.kind == TypeKind.OBJECT):
            raise ValueError("properties is present iff kind is object")
        return self

    def depth(self) -> int:
        """Number of dotted segments the tree was declared with."""
        if self.items is not None and not self.items.implicit:
            return 1 + self.items.depth()
        return 1

    @property
    def implicit(self) -> bool:
        return self._implicit

    def object_root(self) -> "Type | None":
        """The object node members attach to: self, or the innermost array items."""
        node = self
        while node.kind == TypeKind.ARRAY:
            node = node.items
        if node.kind == TypeKind.OBJECT:
            return node
        return None


class Param(BaseModel):
    """A named, typed value: path/query parameter or object property."""

    name: str
    type: Type
    optional: bool = False
    description: str = ""


Type.model_rebuild()


class Header(BaseModel):
    name: str
    summary: str = ""
    optional: bool = False


class Example(BaseModel):
    mimetype: str
    summary: str = ""
    value: str = ""  # verbatim, newlines included


class Body(BaseModel):
    """Shape shared by requests and responses."""

    headers: list[Header] = []
    examples: list[Example] = []
    type: Type | None = None


class Request(Body):
    mimetype: str = ""


class Response(Body):
    status: int
    mimetype: str = ""


class API(BaseModel):
    """A single documented operation."""

    method: str  # GET / POST / PUT / DELETE / PATCH ...
    path: str  # /users/{id}
    summary: str = ""
    description: str = ""
    group: str = ""
    headers: list[Header] = []
    params: list[Param] = []  # path parameters
    queries: list[Param] = []  # query parameters
    request: Request | None = None
    responses: list[Response] = []
    file: str = ""
    line: int = 0


class Server(BaseModel):
    url: str
    description: str = ""


class DocTag(BaseModel):
    name: str
    description: str = ""


class License(BaseModel):
    name: str
    url: str = ""


class ExternalDocs(BaseModel):
    url: str
    description: str = ""


class Doc(BaseModel):
    """Root of the document model."""

    title: str = ""
    description: str = ""
    version: str = ""
    servers: list[Server] = []
    tags: list[DocTag] = []
    license: License | None = None
    external_docs: ExternalDocs | None = None
    responses: list[Response] = []  # inherited by every API
    apis: list[API] = []
