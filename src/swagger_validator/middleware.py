"""Starlette middleware that rejects requests not conforming to the registry."""

import json
import logging
from pathlib import Path

from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request as HttpRequest
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from swagger_validator.config import ValidatorConfig, load_config
from swagger_validator.request import Request, decode_query, split_path
from swagger_validator.schema.compiler import install
from swagger_validator.schema.registry import Registry, current_registry
from swagger_validator.validation.facade import validate
from swagger_validator.validation.outcome import MultipleInvalid, Ok, ResourceNotFound

logger = logging.getLogger(__name__)

# request.state attribute marking a request as already validated
VALID_FLAG = "swagger_valid"

NOT_FOUND_MESSAGE = "API does not provide resource"


def error_response(status: int, message: str, path: str) -> JSONResponse:
    return JSONResponse({"error": {"path": path, "message": message}}, status_code=status)


def _is_json(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class SchemaValidationMiddleware(BaseHTTPMiddleware):
    """Validate each request before it reaches the application.

    Args:
        app: The wrapped ASGI application.
        failure_status: Status code for validation failures (default 400).
        registry: Registry to validate against; defaults to the process-wide one.
    """

    def __init__(self, app: ASGIApp, failure_status: int = 400, registry: Registry | None = None):
        super().__init__(app)
        self.failure_status = failure_status
        self._registry = registry

    @property
    def registry(self) -> Registry:
        return self._registry if self._registry is not None else current_registry()

    async def dispatch(self, request: HttpRequest, call_next: RequestResponseEndpoint) -> Response:
        if getattr(request.state, VALID_FLAG, False):
            return await call_next(request)

        raw = await request.body()
        body = None
        if raw and _is_json(request.headers.get("content-type", "")):
            try:
                body = json.loads(raw)
            except ValueError:
                return error_response(self.failure_status, "Request body is not valid JSON.", "#")

        outcome = validate(
            self.registry,
            Request(
                method=request.method,
                path_segments=split_path(request.scope["path"]),
                params={**decode_query(request.query_params.multi_items()), **request.path_params},
                body=body,
            ),
        )

        if isinstance(outcome, Ok):
            setattr(request.state, VALID_FLAG, True)
            return await call_next(request)
        if isinstance(outcome, ResourceNotFound):
            return error_response(404, NOT_FOUND_MESSAGE, request.url.path)
        if isinstance(outcome, MultipleInvalid):
            outcome = outcome.first
        logger.debug("Rejected %s %s: %s", request.method, request.url.path, outcome.message)
        return error_response(self.failure_status, outcome.message, outcome.path)


def setup(app: Starlette, config: ValidatorConfig | Path) -> Registry:
    """Compile the configured documents and put the validator in front of ``app``.

    ``config`` may be a loaded ValidatorConfig or the path of a YAML config file.
    Returns the process-wide registry after the documents are installed.
    """
    if not isinstance(config, ValidatorConfig):
        config = load_config(config)
    registry = install(config.documents)
    app.add_middleware(SchemaValidationMiddleware, failure_status=config.failure_status)
    logger.info("Request validation enabled with failure status %d", config.failure_status)
    return registry
