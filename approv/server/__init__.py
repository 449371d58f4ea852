"""
Approv Server Package.

This package contains the web server implementation for Approv.
It includes the API definition, request/response schemas, middleware,
service wrappers and configuration.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration, constants and the application error hierarchy.
    middleware: Request logging, security headers, rate limiting and CSRF.
    schemas: Pydantic schemas for API request/response validation.
    services: Business logic and third-party service wrappers.
    cron: Scheduled jobs.
"""
