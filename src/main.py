"""Cooperative payments FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.api import payment_providers
from src.services import init_db
from src.services.config import get_settings
from src.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    settings = get_settings()
    setup_server_logging(settings.log_file, settings.log_level)

    # Startup: Initialize database tables
    init_db()
    logger.info("Database tables initialized")
    if not settings.payment_encryption_key.get_secret_value():
        logger.warning("PAYMENT_ENCRYPTION_KEY is not set; provider credentials cannot be stored")
    yield
    logger.info("Application shutting down")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.api_title,
        description="Payment provider integration and credential custody for cooperatives",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.include_router(payment_providers.router)

    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()


def main(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run the API server."""
    settings = get_settings()
    setup_server_logging(settings.log_file, settings.log_level)
    logger.info(f"Starting API server on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
