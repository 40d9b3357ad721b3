"""Compiled operations and the process-wide registry they are published to.

A Registry is an immutable snapshot. Writers compile a new snapshot and swap
the module-level reference under a lock; readers take whatever reference is
current and never lock.
"""

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from jsonschema import Draft4Validator

from swagger_validator.schema.base import Parameter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedOperation:
    """The validation-ready form of one ``(method, path template)`` pair."""

    key: str
    method: str
    path_template: str
    base_path: str | None
    template_segments: tuple[str, ...]
    base_segments: tuple[str, ...]
    properties: Mapping[str, dict]
    required: tuple[str, ...]
    parameters: tuple[Parameter, ...]
    body_required: bool
    body_validator: Draft4Validator = field(repr=False, compare=False)
    payload_validator: Draft4Validator = field(repr=False, compare=False)

    @property
    def body_schema(self) -> dict:
        return self.body_validator.schema

    @property
    def payload_schema(self) -> dict:
        return self.payload_validator.schema


def _precedence(operation: ResolvedOperation) -> tuple[bool, ...]:
    # At the first differing position of basePath plus template, a literal
    # segment sorts before a wildcard.
    segments = (*operation.base_segments, *operation.template_segments)
    return tuple(segment.startswith("{") for segment in segments)


class Registry:
    """Immutable lookup table from operation key to ResolvedOperation.

    Iteration yields operations in match order: literal path templates ahead
    of templated ones, otherwise in insertion order.
    """

    def __init__(self, operations: Iterable[ResolvedOperation] = ()):
        by_key: dict[str, ResolvedOperation] = {}
        for operation in operations:
            by_key[operation.key] = operation
        ordered = sorted(by_key.values(), key=_precedence)
        self._entries = tuple(ordered)
        self._by_key = MappingProxyType({operation.key: operation for operation in ordered})

    def get(self, key: str) -> ResolvedOperation | None:
        return self._by_key.get(key)

    def entry(self, key: str) -> tuple[str | None, ResolvedOperation] | None:
        """Return ``(basePath, operation)`` for a key, or None."""
        operation = self._by_key.get(key)
        if operation is None:
            return None
        return operation.base_path, operation

    def keys(self) -> list[str]:
        return [operation.key for operation in self._entries]

    def merged(self, other: "Registry") -> "Registry":
        """New snapshot where ``other`` overwrites matching keys of this one."""
        return Registry([*self._entries, *other._entries])

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[ResolvedOperation]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Registry({self.keys()!r})"


_write_lock = threading.Lock()
_current = Registry()


def current_registry() -> Registry:
    """The registry most recently published in this process."""
    return _current


def publish(registry: Registry) -> Registry:
    """Merge ``registry`` into the current snapshot and swap it in atomically."""
    global _current
    with _write_lock:
        _current = _current.merged(registry)
        logger.info("Published registry with %d operations", len(_current))
        return _current


def reset() -> None:
    """Drop every published operation."""
    global _current
    with _write_lock:
        _current = Registry()
        logger.debug("Registry reset")
