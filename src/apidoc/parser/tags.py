"""Known tag kinds and the field splitter shared by every tag grammar."""

import re
from enum import Enum

WORD_RE = re.compile(r"\S+")


class TagKind(str, Enum):
    DOC = "apidoc"
    API = "api"
    VERSION = "apiVersion"
    DESCRIPTION = "apiDescription"
    SERVER = "apiServer"
    TAG = "apiTag"
    LICENSE = "apiLicense"
    EXTERNAL_DOCS = "apiExternalDocs"
    GROUP = "apiGroup"
    PARAM = "apiParam"
    QUERY = "apiQuery"
    HEADER = "apiHeader"
    EXAMPLE = "apiExample"
    REQUEST = "apiRequest"
    RESPONSE = "apiResponse"
    UNKNOWN = ""

    @classmethod
    def of(cls, name: str) -> "TagKind":
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


BODY_KINDS = frozenset({TagKind.HEADER, TagKind.EXAMPLE, TagKind.PARAM})

# a request/response collects body tags until one of these
BOUNDARY_KINDS = frozenset({TagKind.REQUEST, TagKind.RESPONSE, TagKind.API, TagKind.DOC})


def split_fields(text: str, size: int) -> list[str]:
    """Split text on whitespace runs into at most ``size`` fields.

    The last field keeps the remainder verbatim, internal whitespace and
    newlines included.
    """
    fields = []
    for match in WORD_RE.finditer(text):
        if len(fields) == size - 1:
            fields.append(text[match.start():].rstrip())
            break
        fields.append(match.group())
    return fields


def is_optional(token: str) -> bool:
    return token.lower() == "optional"
