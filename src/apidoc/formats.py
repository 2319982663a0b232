"""Format checks used by the sanitizers."""

import re

from pydantic import AnyUrl, TypeAdapter, ValidationError

SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

_url_adapter = TypeAdapter(AnyUrl)


def is_semver(value: str) -> bool:
    return bool(SEMVER_RE.match(value))


def is_url(value: str, allow_relative: bool = False) -> bool:
    """Check an absolute URL, or a server-relative path when allowed."""
    if not value:
        return False
    if allow_relative and value.startswith("/"):
        return " " not in value
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True
