"""Host-facing configuration: which documents to compile and how to fail."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError


class ConfigError(ValueError):
    """The validator configuration file is missing or malformed."""


class ValidatorConfig(BaseModel):
    """Settings the HTTP layer passes to the validator at startup."""

    documents: list[Path] = []
    failure_status: int = Field(default=400, ge=400, le=599)


def load_config(file_path: Path) -> ValidatorConfig:
    """Load a YAML config; relative document paths resolve next to the file."""
    file_path = Path(file_path)
    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config {file_path}: {e}") from e

    try:
        config = ValidatorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {file_path}: {e}") from e

    base = file_path.parent
    config.documents = [doc if doc.is_absolute() else base / doc for doc in config.documents]
    return config
