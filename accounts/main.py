"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from accounts.api import users
from accounts.common.envelope import EnvelopeRoute, skip_envelope
from accounts.common.exception_handlers import register_exception_handlers
from accounts.config import get_settings
from accounts.database import init_db
from accounts.logging_config import configure_logging

settings = get_settings()
configure_logging(settings)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    init_db()
    logger.info("Accounts API started (%s)", settings.environment)
    yield


app = FastAPI(
    title="Accounts API",
    description="User account management with soft deletion",
    version="0.1.0",
    lifespan=lifespan,
)
app.router.route_class = EnvelopeRoute

register_exception_handlers(app)

# Register routers
app.include_router(users.router)


@app.get("/health")
@skip_envelope
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
