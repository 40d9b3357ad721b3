"""JSON-Schema validation of request bodies.

The heavy lifting is done by ``jsonschema``; this module turns its errors into
``(message, path)`` pairs with JSON-pointer paths rooted at ``#``.
"""

import json
from collections.abc import Iterable, Mapping
from typing import Any

from jsonschema import Draft4Validator, ValidationError

from swagger_validator.schema.registry import ResolvedOperation
from swagger_validator.validation.outcome import OK, ValidationOutcome, from_errors


def type_name(value: Any) -> str:
    """JSON type name of a decoded value, capitalised."""
    if value is None:
        return "Null"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, float):
        return "Number"
    if isinstance(value, str):
        return "String"
    if isinstance(value, (list, tuple)):
        return "Array"
    if isinstance(value, Mapping):
        return "Object"
    return type(value).__name__


def pointer(path: Iterable) -> str:
    """JSON pointer rooted at ``#``, with ``~`` and ``/`` escaped per segment."""
    return "#" + "".join("/" + str(part).replace("~", "~0").replace("/", "~1") for part in path)


def _type_message(error: ValidationError) -> str:
    expected = error.validator_value
    if isinstance(expected, str):
        expected = [expected]
    names = ", ".join(name.capitalize() for name in expected)
    return f"Type mismatch. Expected {names} but got {type_name(error.instance)}."


def _required_message(missing: list[str]) -> str:
    if len(missing) == 1:
        return f"Required property {missing[0]} was not present."
    return f"Required properties {', '.join(missing)} were not present."


def collect_errors(validator: Draft4Validator, instance: Any) -> list[tuple[str, str]]:
    """Run the validator and return every error as ``(message, path)``.

    jsonschema reports one error per missing required property; those are
    grouped into a single message per object.
    """
    errors = []
    reported_required = set()
    for error in validator.iter_errors(instance):
        path = pointer(error.absolute_path)
        if error.validator == "required":
            if path in reported_required:
                continue
            reported_required.add(path)
            missing = [name for name in error.validator_value if name not in error.instance]
            errors.append((_required_message(missing), path))
        elif error.validator == "type":
            errors.append((_type_message(error), path))
        elif error.validator == "enum":
            errors.append((f"Value {json.dumps(error.instance)} is not allowed in enum.", path))
        else:
            errors.append((error.message, path))
    return errors


def validate_body(operation: ResolvedOperation, body: Any) -> ValidationOutcome:
    """Validate a decoded body against the operation's object schema.

    A missing body passes unless a body parameter is required, in which case
    it is checked as an empty object.
    """
    if body is None:
        if not operation.body_required:
            return OK
        body = {}
    return from_errors(collect_errors(operation.body_validator, body), operation.key)
