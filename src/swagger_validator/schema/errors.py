"""Configuration errors raised while compiling description documents."""


class SchemaCompileError(ValueError):
    """A description document cannot be compiled into a registry.

    Raised for malformed documents and unresolvable ``$ref`` pointers. The host
    should refuse to serve traffic when this is raised.
    """
