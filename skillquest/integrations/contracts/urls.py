"""
URL building for descriptor path templates.

Placeholders are written `:name` where `name` is an identifier. A token only
matches when the character after it is NOT an identifier character, so `:id`
never matches inside `:idOther`.

Substitution is a single pass over the template, and values are
percent-encoded as one path segment, so an inserted value can never be read
as another placeholder or change which path is targeted.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping, Optional, Set, Union
from urllib.parse import quote, urlencode

from ..errors import MissingPathParameterError

_IDENT_CHARS = "A-Za-z0-9_"
_PLACEHOLDER_RE = re.compile(rf":([A-Za-z_][{_IDENT_CHARS}]*)")

ParamValue = Union[str, int]


def placeholders(template: str) -> List[str]:
    """Placeholder names in order of appearance."""
    return _PLACEHOLDER_RE.findall(template)


def unresolved_placeholders(url: str) -> List[str]:
    path = url.split("?", 1)[0]
    return placeholders(path)


def build_url(
    template: str,
    params: Optional[Mapping[str, ParamValue]] = None,
    *,
    strict: bool = False,
) -> str:
    """
    Substitute `:name` placeholders in `template`.

    Each entry replaces the first whole-token occurrence of its name. Names
    absent from the template are ignored. Placeholders without a value are
    left verbatim, so a forgotten parameter shows up as a literal `:name` in
    the URL (and a 404 at the server) instead of hitting another resource.
    With strict=True unresolved placeholders raise MissingPathParameterError.
    """
    values = {str(name): value for name, value in (params or {}).items()}
    used: Set[str] = set()

    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in values or name in used:
            return match.group(0)
        used.add(name)
        return quote(str(values[name]), safe="")

    url = _PLACEHOLDER_RE.sub(substitute, template)

    if strict:
        missing = unresolved_placeholders(url)
        if missing:
            raise MissingPathParameterError(template, missing)
    return url


def with_query(path: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """Append a query string, skipping None and empty values; insertion order is kept."""
    if not query:
        return path
    pairs = [(key, _query_value(value)) for key, value in query.items() if value is not None and value != ""]
    if not pairs:
        return path
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{urlencode(pairs)}"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_route_path(template: str) -> str:
    """`/api/problems/:slug` -> `/api/problems/{slug}` (server routing syntax)."""
    return _PLACEHOLDER_RE.sub(lambda m: "{" + m.group(1) + "}", template)
