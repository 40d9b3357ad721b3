"""Single entry point for validating a request against a registry."""

import logging
from collections.abc import Mapping

from swagger_validator.request import Request
from swagger_validator.schema.registry import Registry
from swagger_validator.validation.body import collect_errors, validate_body
from swagger_validator.validation.matcher import match_operation, path_params
from swagger_validator.validation.outcome import (
    OK,
    RESOURCE_NOT_FOUND,
    Ok,
    ValidationOutcome,
    from_errors,
)
from swagger_validator.validation.params import validate_params

logger = logging.getLogger(__name__)


def validate(registry: Registry, request: Request) -> ValidationOutcome:
    """Validate a request: route it, then check its body, then its parameters.

    The body is always checked before the parameters.
    """
    operation = match_operation(registry, request.method, request.path_segments)
    if operation is None:
        logger.debug("No operation for %s %s", request.method, request.path)
        return RESOURCE_NOT_FOUND

    outcome = validate_body(operation, request.body)
    if not isinstance(outcome, Ok):
        logger.debug("Body of %s rejected: %s", operation.key, outcome)
        return outcome

    params = {**request.params, **path_params(operation, request.path_segments)}
    outcome = validate_params(operation, params)
    if not isinstance(outcome, Ok):
        logger.debug("Parameters of %s rejected: %s", operation.key, outcome)
        return outcome
    return OK


def validate_payload(registry: Registry, operation_key: str, payload: Mapping) -> ValidationOutcome:
    """Validate already-typed data against an operation's flattened schema.

    Path and query parameters count as ordinary properties here, so
    ``{"limit": "10"}`` fails an integer ``limit`` parameter.
    """
    operation = registry.get(operation_key)
    if operation is None:
        return RESOURCE_NOT_FOUND
    return from_errors(collect_errors(operation.payload_validator, payload), operation.key)
