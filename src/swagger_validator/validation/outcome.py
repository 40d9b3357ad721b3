"""Validation outcomes returned by the validator.

Every request produces exactly one of these; none of them is ever raised.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Ok:
    """The request conforms to its operation."""


@dataclass(frozen=True)
class ResourceNotFound:
    """No operation of the registry matches the request."""


@dataclass(frozen=True)
class Invalid:
    """A single validation error located by a JSON-pointer path."""

    message: str
    path: str


@dataclass(frozen=True)
class MultipleInvalid:
    """Several simultaneous errors from body validation."""

    errors: tuple[tuple[str, str], ...]
    operation_key: str

    @property
    def first(self) -> Invalid:
        message, path = self.errors[0]
        return Invalid(message, path)


ValidationOutcome = Ok | ResourceNotFound | Invalid | MultipleInvalid

OK = Ok()
RESOURCE_NOT_FOUND = ResourceNotFound()


def from_errors(errors: list[tuple[str, str]], operation_key: str) -> ValidationOutcome:
    """Fold a list of ``(message, path)`` errors into an outcome."""
    if not errors:
        return OK
    if len(errors) == 1:
        message, path = errors[0]
        return Invalid(message, path)
    return MultipleInvalid(tuple(errors), operation_key)


def describe(outcome: ValidationOutcome) -> dict:
    """JSON-friendly summary of an outcome."""
    if isinstance(outcome, Ok):
        return {"status": "ok"}
    if isinstance(outcome, ResourceNotFound):
        return {"status": "not_found", "message": "API does not provide resource"}
    if isinstance(outcome, Invalid):
        return {"status": "invalid", "errors": [{"message": outcome.message, "path": outcome.path}]}
    return {
        "status": "invalid",
        "operation": outcome.operation_key,
        "errors": [{"message": message, "path": path} for message, path in outcome.errors],
    }
