"""
MUSE Server Package.

This package contains the web server implementation for MUSE.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration.
    services: Request-scoped services and FastAPI dependencies.
    middleware: Request tracing middleware.
    exception_handlers: Mapping of domain errors to HTTP responses.
"""
