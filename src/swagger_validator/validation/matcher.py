"""Find the registry operation a request path addresses."""

from collections.abc import Sequence

from swagger_validator.schema.registry import Registry, ResolvedOperation


def strip_base_path(segments: Sequence[str], base_segments: Sequence[str]) -> list[str] | None:
    """Remove the basePath prefix, or return None if the path lies outside it."""
    if list(segments[: len(base_segments)]) != list(base_segments):
        return None
    return list(segments[len(base_segments):])


def equal_paths(template: Sequence[str], request: Sequence[str]) -> bool:
    """Segment-wise comparison where ``{...}`` template segments match anything."""
    if len(template) != len(request):
        return False
    for expected, actual in zip(template, request):
        if expected.startswith("{"):
            continue
        if expected != actual:
            return False
    return True


def match_operation(
    registry: Registry, method: str, segments: Sequence[str]
) -> ResolvedOperation | None:
    """Return the first operation, in registry order, matching the request."""
    verb = method.lower()
    for operation in registry:
        remainder = strip_base_path(segments, operation.base_segments)
        if remainder is None:
            continue
        if equal_paths([operation.method, *operation.template_segments], [verb, *remainder]):
            return operation
    return None


def path_params(operation: ResolvedOperation, segments: Sequence[str]) -> dict[str, str]:
    """Values captured by ``{name}`` template segments of a matched request."""
    remainder = strip_base_path(segments, operation.base_segments) or []
    captured = {}
    for template, actual in zip(operation.template_segments, remainder):
        if template.startswith("{") and template.endswith("}"):
            captured[template[1:-1]] = actual
    return captured
