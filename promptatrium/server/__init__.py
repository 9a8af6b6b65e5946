"""
PromptAtrium Server Package.

This package contains the web server implementation for the PromptAtrium platform.
It includes the API definition, core service logic, and configuration.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and constants.
    services: Business logic and service layer.
    middleware: Request tracing middleware.
    exception_handlers: Mapping of application errors to HTTP responses.
"""
