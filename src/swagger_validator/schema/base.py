"""Typed models for Swagger 2.0 description documents.

Raw documents (JSON or YAML mappings) are parsed into these models before
compilation, so structural mistakes surface as configuration errors instead
of failing later on a live request.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")


class ParamLocation(str, Enum):
    """Where a parameter is carried in the request."""

    PATH = "path"
    QUERY = "query"
    BODY = "body"
    HEADER = "header"
    FORM_DATA = "formData"


class ParamType(str, Enum):
    """Primitive types a non-body parameter may declare."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    FILE = "file"


class Items(BaseModel):
    """Element descriptor of an array parameter."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: ParamType = ParamType.STRING
    enum: list | None = None
    items: "Items | None" = None
    collection_format: str = Field(default="csv", alias="collectionFormat")


class Parameter(BaseModel):
    """A single operation parameter, or a `$ref` to a shared one."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = ""
    location: ParamLocation | None = Field(default=None, alias="in")
    type: ParamType | None = None
    required: bool = False
    enum: list | None = None
    items: Items | None = None
    collection_format: str = Field(default="csv", alias="collectionFormat")
    body_schema: dict | None = Field(default=None, alias="schema")
    ref: str | None = Field(default=None, alias="$ref")


class Operation(BaseModel):
    """Operation metadata for one HTTP verb of a path."""

    model_config = ConfigDict(extra="allow")

    parameters: list[Parameter] = []


class PathItem(BaseModel):
    """All operations declared under one path template."""

    model_config = ConfigDict(extra="allow")

    parameters: list[Parameter] = []  # shared by every operation of the path
    get: Operation | None = None
    put: Operation | None = None
    post: Operation | None = None
    delete: Operation | None = None
    options: Operation | None = None
    head: Operation | None = None
    patch: Operation | None = None

    def operations(self) -> list[tuple[str, Operation]]:
        """Return the declared ``(method, operation)`` pairs in verb order."""
        result = []
        for method in HTTP_METHODS:
            operation = getattr(self, method)
            if operation is not None:
                result.append((method, operation))
        return result


class DescriptionDocument(BaseModel):
    """The sections of a description document the validator relies on."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    base_path: str | None = Field(default=None, alias="basePath")
    paths: dict[str, PathItem] = {}
    definitions: dict[str, dict] = {}
    parameters: dict[str, Parameter] = {}
