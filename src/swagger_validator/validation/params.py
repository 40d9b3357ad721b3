"""Validation of path and query parameters.

Parameters are checked one by one in declaration order and the first failure
is returned. Raw values arrive as strings, so type checks are parse attempts;
the parse helpers return None instead of raising.
"""

import json
import re
from collections.abc import Mapping
from typing import Any, assert_never

from swagger_validator.request import lookup_param
from swagger_validator.schema.base import Items, Parameter, ParamLocation, ParamType
from swagger_validator.schema.registry import ResolvedOperation
from swagger_validator.validation.outcome import OK, Invalid, ValidationOutcome

VALIDATED_LOCATIONS = (ParamLocation.PATH, ParamLocation.QUERY)

COLLECTION_SEPARATORS = {"csv": ",", "ssv": " ", "tsv": "\t", "pipes": "|"}

_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_NUMBER_RE = re.compile(r"[+-]?\d+(\.\d+)?([eE][+-]?\d+)?", re.ASCII)


def parse_integer(text: str) -> int | None:
    if _INTEGER_RE.fullmatch(text) is None:
        return None
    return int(text)


def parse_number(text: str) -> float | None:
    if _NUMBER_RE.fullmatch(text) is None:
        return None
    return float(text)


def parse_boolean(text: str) -> bool | None:
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def _as_text(value: Any) -> str | None:
    """Textual form of a scalar parameter value; None for structured values."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _in_enum(text: str | None, enum: list) -> bool:
    if text is None:
        return False
    return any(text == (member if isinstance(member, str) else _as_text(member)) for member in enum)


def _mismatch(name: str, expected: str) -> Invalid:
    return Invalid(f"Type mismatch. Expected {expected} but got String.", f"#/{name}")


def _elements(value: Any, collection_format: str) -> list:
    if isinstance(value, list):
        return value
    text = _as_text(value)
    if text is None:
        return [value]
    separator = COLLECTION_SEPARATORS.get(collection_format, ",")
    return text.split(separator)


def check_value(
    name: str,
    value: Any,
    param_type: ParamType,
    enum: list | None = None,
    items: Items | None = None,
    collection_format: str = "csv",
) -> Invalid | None:
    """Validate one present value; return the error or None."""
    text = _as_text(value)
    if enum is not None and not _in_enum(text, enum):
        shown = text if text is not None else json.dumps(value)
        return Invalid(f'Value "{shown}" is not allowed in enum.', f"#/{name}")

    if param_type is ParamType.STRING or param_type is ParamType.FILE:
        return None
    if param_type is ParamType.INTEGER:
        if text is None or parse_integer(text) is None:
            return _mismatch(name, "Integer")
        return None
    if param_type is ParamType.NUMBER:
        if text is None or parse_number(text) is None:
            return _mismatch(name, "Number")
        return None
    if param_type is ParamType.BOOLEAN:
        if text is None or parse_boolean(text) is None:
            return _mismatch(name, "Boolean")
        return None
    if param_type is ParamType.ARRAY:
        item = items or Items()
        for element in _elements(value, collection_format):
            error = check_value(
                name, element, item.type, item.enum, item.items, item.collection_format
            )
            if error is not None:
                return error
        return None
    assert_never(param_type)


def _validated(parameter: Parameter) -> bool:
    return parameter.location in VALIDATED_LOCATIONS and parameter.type is not None


def validate_params(operation: ResolvedOperation, params: Mapping) -> ValidationOutcome:
    """Validate path and query parameters of a matched operation."""
    for parameter in operation.parameters:
        if not _validated(parameter):
            continue
        value = lookup_param(params, parameter.name)
        if value is None:
            if parameter.required:
                return Invalid(f"Required property {parameter.name} was not present.", "#")
            continue
        error = check_value(
            parameter.name,
            value,
            parameter.type,
            parameter.enum,
            parameter.items,
            parameter.collection_format,
        )
        if error is not None:
            return error
    return OK
