"""Approv.

Backend for sending clients secure approval links for project deliverables.

High-level architecture
-----------------------

- ``approv.core``: domain enums and lifecycle rules, persistence (SQLModel
  entities and repositories), logging, monitoring and audit redaction.
- ``approv.server``: the FastAPI application, its routers, middleware,
  exception handlers, third-party service wrappers and the reminder job.
"""

__version__ = "1.0.0"
