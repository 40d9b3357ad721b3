"""Compile description documents into a Registry.

Compilation merges the documents, resolves every ``$ref`` once and assembles,
per operation, the JSON-Schema object used for body validation. Path and query
parameters are kept as raw parameter metadata for the parameter validator.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import MappingProxyType

from jsonschema import Draft4Validator, SchemaError

from swagger_validator.request import split_path
from swagger_validator.schema.base import (
    DescriptionDocument,
    Items,
    Parameter,
    ParamLocation,
    ParamType,
    PathItem,
)
from swagger_validator.schema.errors import SchemaCompileError
from swagger_validator.schema.loader import DocumentSource, parse_document
from swagger_validator.schema.registry import Registry, ResolvedOperation, publish

logger = logging.getLogger(__name__)

# Keys whose values are literal data, never schemas to resolve.
_LITERAL_KEYS = frozenset({"enum", "default", "example", "examples", "x-example"})
# Keys whose values map names to schemas.
_SCHEMA_MAPS = frozenset({"properties", "patternProperties"})


@dataclass
class MergedDocument:
    """Key-wise merge of several description documents."""

    paths: dict[str, tuple[str | None, PathItem]] = field(default_factory=dict)
    definitions: dict[str, dict] = field(default_factory=dict)
    parameters: dict[str, Parameter] = field(default_factory=dict)


def merge_documents(documents: Iterable[DescriptionDocument]) -> MergedDocument:
    """Merge documents in order; later documents win on key collisions.

    Each path template remembers the basePath of the document it came from.
    """
    merged = MergedDocument()
    for document in documents:
        for template, path_item in document.paths.items():
            merged.paths[template] = (document.base_path, path_item)
        merged.definitions.update(document.definitions)
        merged.parameters.update(document.parameters)
    return merged


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _escape(name: str) -> str:
    return name.replace("~", "~0").replace("/", "~1")


def _split_ref(ref: str, section: str) -> str:
    """Return the definition name of a local ``#/<section>/<name>`` pointer."""
    prefix = f"#/{section}/"
    if not ref.startswith(prefix) or "/" in ref[len(prefix):]:
        raise SchemaCompileError(f"Unsupported $ref {ref!r}; expected {prefix}<name>")
    return _unescape(ref[len(prefix):])


class SchemaResolver:
    """Inline ``$ref`` pointers to ``#/definitions`` transitively.

    Self-referential definitions cannot be inlined; the cycle is cut with a
    local ``$ref`` and the definition is collected in ``recursive`` so it can
    be embedded into the final schema.
    """

    def __init__(self, definitions: dict[str, dict]):
        self.definitions = definitions
        self.recursive: set[str] = set()

    def definition(self, ref: str) -> tuple[str, dict]:
        name = _split_ref(ref, "definitions")
        if name not in self.definitions:
            raise SchemaCompileError(f"Unresolvable $ref {ref!r}: no definition named {name!r}")
        return name, self.definitions[name]

    def resolve(self, schema, stack: tuple[str, ...] = ()):
        if isinstance(schema, list):
            return [self.resolve(item, stack) for item in schema]
        if not isinstance(schema, dict):
            return schema
        ref = schema.get("$ref")
        if isinstance(ref, str):
            name, definition = self.definition(ref)
            if name in stack:
                self.recursive.add(name)
                return {"$ref": "#/definitions/" + _escape(name)}
            return self.resolve(definition, stack + (name,))
        resolved = {}
        for key, value in schema.items():
            if key in _SCHEMA_MAPS and isinstance(value, dict):
                resolved[key] = {name: self.resolve(sub, stack) for name, sub in value.items()}
            elif key in _LITERAL_KEYS:
                resolved[key] = value
            else:
                resolved[key] = self.resolve(value, stack)
        return resolved

    def embedded_definitions(self) -> dict[str, dict]:
        """Resolved bodies of every definition that had to stay a ``$ref``."""
        embedded: dict[str, dict] = {}
        pending = set(self.recursive)
        while pending:
            name = pending.pop()
            embedded[name] = self.resolve(self.definitions[name], (name,))
            pending |= self.recursive - embedded.keys()
        return embedded


def _object_schema(properties: dict, required: list[str], definitions: dict) -> dict:
    schema: dict = {"type": "object", "properties": properties}
    # draft 4 rejects an empty "required" array
    if required:
        schema["required"] = list(required)
    if definitions:
        schema["definitions"] = definitions
    return schema


def _param_property(parameter: Parameter | Items) -> dict:
    prop: dict = {"type": parameter.type.value}
    if parameter.enum is not None:
        prop["enum"] = parameter.enum
    if parameter.items is not None:
        prop["items"] = _param_property(parameter.items)
    return prop


def _build_validator(schema: dict, where: str) -> Draft4Validator:
    try:
        Draft4Validator.check_schema(schema)
    except SchemaError as e:
        raise SchemaCompileError(f"Invalid schema for {where}: {e.message}") from e
    return Draft4Validator(schema)


def compile_model(definitions: dict[str, dict], model_name: str) -> Draft4Validator:
    """Precompile a validator for the single model ``#/definitions/<model_name>``."""
    resolver = SchemaResolver(definitions)
    schema = resolver.resolve({"$ref": "#/definitions/" + _escape(model_name)})
    embedded = resolver.embedded_definitions()
    if embedded:
        schema = {**schema, "definitions": embedded}
    return _build_validator(schema, f"#/definitions/{model_name}")


class SchemaCompiler:
    """Builds ResolvedOperations out of one merged document."""

    def __init__(self, merged: MergedDocument):
        self.merged = merged

    def compile(self) -> Registry:
        operations = []
        for template, (base_path, path_item) in self.merged.paths.items():
            for method, operation in path_item.operations():
                parameters = self._effective_parameters(template, method, path_item, operation.parameters)
                compiled = self._compile_operation(template, method, base_path, parameters)
                logger.debug("Compiled operation %s", compiled.key)
                operations.append(compiled)
        return Registry(operations)

    def _resolve_parameter(self, parameter: Parameter, where: str) -> Parameter:
        if parameter.ref is not None:
            name = _split_ref(parameter.ref, "parameters")
            if name not in self.merged.parameters:
                raise SchemaCompileError(
                    f"Unresolvable $ref {parameter.ref!r} in {where}: no parameter named {name!r}"
                )
            parameter = self.merged.parameters[name]
            if parameter.ref is not None:
                raise SchemaCompileError(f"Parameter {name!r} must not itself be a $ref")
        if not parameter.name or parameter.location is None:
            raise SchemaCompileError(f"Parameter in {where} is missing 'name' or 'in'")
        return parameter

    def _effective_parameters(
        self, template: str, method: str, path_item: PathItem, own: list[Parameter]
    ) -> list[Parameter]:
        where = f"{method.upper()} {template}"
        shared = [self._resolve_parameter(p, where) for p in path_item.parameters]
        resolved = [self._resolve_parameter(p, where) for p in own]
        overridden = {(p.name, p.location) for p in resolved}
        return [p for p in shared if (p.name, p.location) not in overridden] + resolved

    def _compile_operation(
        self, template: str, method: str, base_path: str | None, parameters: list[Parameter]
    ) -> ResolvedOperation:
        resolver = SchemaResolver(self.merged.definitions)
        properties: dict[str, dict] = {}
        required: list[str] = []
        payload_properties: dict[str, dict] = {}
        payload_required: list[str] = []

        for parameter in parameters:
            if parameter.location is ParamLocation.BODY:
                schema = resolver.resolve(parameter.body_schema or {})
                for name, prop in (schema.get("properties") or {}).items():
                    properties.setdefault(name, prop)
                    payload_properties.setdefault(name, prop)
                for name in schema.get("required") or []:
                    if name not in required:
                        required.append(name)
                    if name not in payload_required:
                        payload_required.append(name)
            elif parameter.type is not None and parameter.type is not ParamType.FILE:
                payload_properties.setdefault(parameter.name, _param_property(parameter))
                if parameter.required and parameter.name not in payload_required:
                    payload_required.append(parameter.name)

        definitions = resolver.embedded_definitions()
        key = f"{method}{template}"
        return ResolvedOperation(
            key=key,
            method=method,
            path_template=template,
            base_path=base_path,
            template_segments=tuple(split_path(template)),
            base_segments=tuple(split_path(base_path or "")),
            properties=MappingProxyType(properties),
            required=tuple(required),
            parameters=tuple(parameters),
            body_required=any(
                p.location is ParamLocation.BODY and p.required for p in parameters
            ),
            body_validator=_build_validator(_object_schema(properties, required, definitions), key),
            payload_validator=_build_validator(
                _object_schema(payload_properties, payload_required, definitions), key
            ),
        )


def compile_documents(documents: DocumentSource | list[DocumentSource]) -> Registry:
    """Compile one document or an ordered list of documents into a Registry.

    Raises SchemaCompileError on malformed input or an unresolvable ``$ref``.
    """
    if not isinstance(documents, list):
        documents = [documents]
    parsed = [parse_document(document) for document in documents]
    registry = SchemaCompiler(merge_documents(parsed)).compile()
    logger.info("Compiled %d operations from %d documents", len(registry), len(parsed))
    return registry


def install(documents: DocumentSource | list[DocumentSource]) -> Registry:
    """Compile documents and publish them to the process-wide registry."""
    return publish(compile_documents(documents))
