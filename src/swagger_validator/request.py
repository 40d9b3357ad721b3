"""The request abstraction the validator works on.

Query strings are decoded the way Rack/Plug style frameworks do it, so that
bracket-style names such as ``filter[route]=Red`` become nested mappings:
``{"filter": {"route": "Red"}}``. Parameter lookup walks that structure one key
at a time.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")


def split_path(path: str) -> list[str]:
    """Split a URL path or path template into non-empty segments."""
    return [segment for segment in path.split("/") if segment]


def param_keys(name: str) -> list[str]:
    """Split ``filter[route]`` into ``["filter", "route"]``.

    ``tags[]`` yields ``["tags", ""]``; the empty key marks a list append.
    """
    index = name.find("[")
    if index <= 0:
        return [name]
    return [name[:index], *_BRACKET_RE.findall(name[index:])]


def decode_query(pairs: Iterable[tuple[str, str]]) -> dict:
    """Decode ``(name, value)`` pairs into a nested parameter mapping.

    Repeated plain names keep the last value; ``name[]`` collects a list.
    """
    decoded: dict = {}
    for name, value in pairs:
        _assign(decoded, param_keys(name), value)
    return decoded


def _assign(target: dict, keys: list[str], value: str) -> None:
    key, rest = keys[0], keys[1:]
    if not rest:
        target[key] = value
        return
    if rest == [""]:
        existing = target.get(key)
        if not isinstance(existing, list):
            existing = target[key] = []
        existing.append(value)
        return
    child = target.get(key)
    if not isinstance(child, dict):
        child = target[key] = {}
    _assign(child, rest, value)


def lookup_param(params: Mapping, name: str) -> Any:
    """Fetch a possibly nested parameter value, or None when absent."""
    value: Any = params
    for key in param_keys(name):
        if key == "":
            break
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
        if value is None:
            return None
    return value


@dataclass
class Request:
    """An inbound HTTP request, already decoded by the host."""

    method: str
    path_segments: list[str]
    params: dict = field(default_factory=dict)
    body: Any = None

    @property
    def path(self) -> str:
        return "/" + "/".join(self.path_segments)

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        body: Any = None,
        path_params: Mapping | None = None,
    ) -> "Request":
        """Build a request from a raw URL such as ``/api/pets?tags=cats,dogs``."""
        parts = urlsplit(url)
        params = decode_query(parse_qsl(parts.query, keep_blank_values=True))
        if path_params:
            params.update(path_params)
        segments = [unquote(segment) for segment in split_path(parts.path)]
        return cls(method=method, path_segments=segments, params=params, body=body)
