"""FastAPI application exposing pipeline parsing."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from flowport_core import get_settings

from flowport_api.routes import health, parse


def configure_logging() -> None:
    """Configure root logging from settings."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()
    settings = get_settings()

    app = FastAPI(
        title="Flowport API",
        description="Normalizes exported CI/CD pipeline definitions into processes and flows",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api")
    app.include_router(parse.router, prefix="/api")

    return app


app = create_app()
