"""Dotted composite type grammar: ``string``, ``array.object``, ``array.array.int``."""

from apidoc.errors import ApidocError, ErrorKind
from apidoc.parser.base import Type, TypeKind

KEYWORDS = {
    "bool": TypeKind.BOOL,
    "number": TypeKind.NUMBER,
    "int": TypeKind.NUMBER,
    "float": TypeKind.NUMBER,
    "string": TypeKind.STRING,
    "object": TypeKind.OBJECT,
    "array": TypeKind.ARRAY,
    "none": TypeKind.NONE,
    "void": TypeKind.NONE,
    "*": TypeKind.ANY,
}


def parse_type(token: str, description: str = "") -> Type:
    """Parse a type token into a Type tree.

    The last segment is the leaf; every earlier segment must be ``array`` and
    wraps what follows it. Raises ApidocError(INVALID_TYPE) otherwise.
    """
    segments = token.split(".")
    kinds = []
    for seg in segments:
        kind = KEYWORDS.get(seg.lower())
        if kind is None:
            raise ApidocError(ErrorKind.INVALID_TYPE, detail=f"unknown type {seg!r} in {token!r}")
        kinds.append(kind)

    for kind in kinds[:-1]:
        if kind != TypeKind.ARRAY:
            raise ApidocError(ErrorKind.INVALID_TYPE, detail=f"{kind.value} cannot wrap a type in {token!r}")

    result = _leaf(kinds[-1])
    for _ in kinds[:-1]:
        result = Type(kind=TypeKind.ARRAY, items=result)
    result.description = description
    return result


def _leaf(kind: TypeKind) -> Type:
    if kind == TypeKind.OBJECT:
        return Type(kind=kind, properties={})
    if kind == TypeKind.ARRAY:
        # a bare "array" has unknown items
        items = Type(kind=TypeKind.ANY)
        items._implicit = True
        return Type(kind=kind, items=items)
    return Type(kind=kind)
