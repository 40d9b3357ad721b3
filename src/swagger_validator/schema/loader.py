"""Load description documents from JSON or YAML files."""

from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from swagger_validator.schema.base import DescriptionDocument
from swagger_validator.schema.errors import SchemaCompileError

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")

DocumentSource = DescriptionDocument | Mapping | str | Path


def load_document(file_path: Path) -> dict:
    """Read a description document file into a plain mapping.

    YAML is a superset of JSON, so both formats go through ``yaml.safe_load``.
    """
    file_path = Path(file_path)
    if file_path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise SchemaCompileError(
            f"Unsupported document extension {file_path.suffix!r} for {file_path}. "
            "Use .json, .yaml or .yml"
        )
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaCompileError(f"Cannot read description document {file_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SchemaCompileError(f"Failed to parse {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise SchemaCompileError(f"Description document {file_path} must be a mapping")
    return data


def parse_document(source: DocumentSource) -> DescriptionDocument:
    """Turn a file path, raw mapping or parsed model into a DescriptionDocument."""
    if isinstance(source, DescriptionDocument):
        return source
    origin = "<mapping>"
    if isinstance(source, (str, Path)):
        origin = str(source)
        source = load_document(Path(source))
    try:
        return DescriptionDocument.model_validate(source)
    except ValidationError as e:
        raise SchemaCompileError(f"Malformed description document {origin}: {e}") from e
