"""Validation of response bodies against ``#/definitions`` models.

Swagger 2.0 marks nullable fields with the ``x-nullable`` vendor extension,
which JSON Schema does not understand. Definitions are rewritten so that a
nullable ``type`` becomes ``[type, "null"]`` before any model is compiled.
"""

import json
import logging
from typing import Any

from jsonschema import Draft4Validator

from swagger_validator.schema.compiler import compile_model, merge_documents
from swagger_validator.schema.loader import DocumentSource, parse_document
from swagger_validator.validation.body import collect_errors
from swagger_validator.validation.outcome import Invalid, MultipleInvalid, Ok, ValidationOutcome, from_errors

logger = logging.getLogger(__name__)


def nullable_to_json_schema(schema: Any) -> Any:
    """Return a copy of ``schema`` with ``x-nullable: true`` types widened to allow null."""
    if isinstance(schema, list):
        return [nullable_to_json_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema
    if schema.get("x-nullable") is True and isinstance(schema.get("type"), str):
        schema = {**schema, "type": [schema["type"], "null"]}
    return {key: nullable_to_json_schema(value) for key, value in schema.items()}


def _error_lines(outcome: ValidationOutcome) -> list[str]:
    if isinstance(outcome, Invalid):
        return [f"At {outcome.path}: {outcome.message}"]
    if isinstance(outcome, MultipleInvalid):
        return [f"At {path}: {message}" for message, path in outcome.errors]
    return []


class ResponseValidator:
    """Checks response data against the models of one or more documents.

    Documents are merged the same way the request compiler merges them. Each
    model is compiled on first use and kept for later calls.
    """

    def __init__(self, documents: DocumentSource | list[DocumentSource]):
        if not isinstance(documents, list):
            documents = [documents]
        merged = merge_documents(parse_document(document) for document in documents)
        self.definitions: dict[str, dict] = nullable_to_json_schema(merged.definitions)
        self._validators: dict[str, Draft4Validator] = {}

    def validator(self, model_name: str) -> Draft4Validator:
        """Raises SchemaCompileError when the model is not defined."""
        if model_name not in self._validators:
            self._validators[model_name] = compile_model(self.definitions, model_name)
            logger.debug("Compiled response model %s", model_name)
        return self._validators[model_name]

    def validate(self, model_name: str, data: Any) -> ValidationOutcome:
        errors = collect_errors(self.validator(model_name), data)
        return from_errors(errors, f"#/definitions/{model_name}")

    def assert_valid(self, model_name: str, data: Any) -> Any:
        """Return ``data`` unchanged, or raise AssertionError listing every error.

        Meant for host test suites checking their JSON responses.
        """
        outcome = self.validate(model_name, data)
        if isinstance(outcome, Ok):
            return data
        headline = f"Response JSON does not conform to swagger schema from #/definitions/{model_name}."
        raise AssertionError("\n".join([headline, *_error_lines(outcome), json.dumps(data, indent=2)]))


def validate_response(
    documents: DocumentSource | list[DocumentSource], model_name: str, data: Any
) -> ValidationOutcome:
    """Validate ``data`` against ``#/definitions/<model_name>`` of the given documents."""
    return ResponseValidator(documents).validate(model_name, data)
