"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware
(security headers, CORS, rate limiting, request logging), registers the
exception handlers and includes all API routers. It serves as the root of
the web server.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from approv.core.database import init_db
from approv.core.logging_config import get_logger, setup_logging
from approv.core.monitoring import initialize_logfire

from .api.v1 import (
    activity,
    approvals,
    clients,
    csrf,
    dashboard,
    dropbox,
    health,
    monday,
    notifications,
    organizations,
    portal,
    projects,
    uploads,
    webhooks,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import GeneralRateLimitMiddleware, LogfireMiddleware, SecurityHeadersMiddleware, verify_csrf

# Initialize logging
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    try:
        logger.info(f"Starting up {constant.PROJECT_NAME} Server ({settings.app_env})...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info(f"Shutting down {constant.PROJECT_NAME} Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Approv Server API

    This API provides the backend services for Approv, client approval links for architecture practices.
    It supports managing clients and projects, sending approval requests and reminders, the client
    portal, dashboards and reports, and Monday.com, Dropbox and Slack integrations.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_PREFIX}/openapi.json",
    docs_url=f"{constant.API_PREFIX}/docs",
    redoc_url=f"{constant.API_PREFIX}/redoc",
    lifespan=lifespan,
)

setup_exception_handlers(app)
initialize_logfire(app)

# Middleware added last runs first
app.add_middleware(LogfireMiddleware)
app.add_middleware(GeneralRateLimitMiddleware, max_requests=100, window_seconds=60)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)

csrf_protected = [Depends(verify_csrf)]

# Unprotected: health checks, token issuing and signed webhooks
app.include_router(health.router, prefix=constant.API_PREFIX, tags=["health"])
app.include_router(csrf.router, prefix=constant.API_PREFIX, tags=["csrf"])
app.include_router(webhooks.router, prefix=f"{constant.API_PREFIX}/webhooks", tags=["webhooks"])

# The approval link view endpoint is public, so approvals applies CSRF per route
app.include_router(approvals.router, prefix=f"{constant.API_PREFIX}/approvals", tags=["approvals"])

app.include_router(
    projects.router, prefix=f"{constant.API_PREFIX}/projects", tags=["projects"], dependencies=csrf_protected
)
app.include_router(
    dashboard.router, prefix=f"{constant.API_PREFIX}/dashboard", tags=["dashboard"], dependencies=csrf_protected
)
app.include_router(portal.router, prefix=f"{constant.API_PREFIX}/portal", tags=["portal"], dependencies=csrf_protected)
app.include_router(
    uploads.router, prefix=f"{constant.API_PREFIX}/uploads", tags=["uploads"], dependencies=csrf_protected
)
app.include_router(
    dropbox.router, prefix=f"{constant.API_PREFIX}/dropbox", tags=["dropbox"], dependencies=csrf_protected
)
app.include_router(monday.router, prefix=f"{constant.API_PREFIX}/monday", tags=["monday"], dependencies=csrf_protected)
app.include_router(
    notifications.router,
    prefix=f"{constant.API_PREFIX}/notifications",
    tags=["notifications"],
    dependencies=csrf_protected,
)
app.include_router(
    clients.router, prefix=f"{constant.API_PREFIX}/clients", tags=["clients"], dependencies=csrf_protected
)
app.include_router(
    organizations.router,
    prefix=f"{constant.API_PREFIX}/organizations",
    tags=["organizations"],
    dependencies=csrf_protected,
)
app.include_router(
    activity.router, prefix=f"{constant.API_PREFIX}/activity", tags=["activity"], dependencies=csrf_protected
)


def main() -> None:
    """Run the API server with uvicorn."""
    uvicorn.run(
        "approv.server.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
