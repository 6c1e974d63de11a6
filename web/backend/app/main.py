"""FastAPI application for the private provider registry.

Provides the endpoints of the Terraform provider registry protocol:
- Service discovery (/.well-known/terraform.json)
- Version listing and platform package lookup (consumed by ``terraform init``)
- Registration of new platform builds by the publisher
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from provider_registry import __version__
from provider_registry.config import RegistryConfig
from provider_registry.errors import RegistryError
from provider_registry.logs import configure_logging
from provider_registry.registry.service import RegistryService, build_service

from web.backend.app.routers import discovery, providers

logger = structlog.get_logger()


def create_app(
    config: Optional[RegistryConfig] = None,
    service: Optional[RegistryService] = None,
) -> FastAPI:
    """Build the application.

    ``config`` defaults to the environment; ``service`` defaults to one backed
    by the filesystem store under ``config.storage_dir``.
    """
    config = config or RegistryConfig.from_env()
    configure_logging(config.log_level, config.log_json)

    app = FastAPI(
        title="Provider Registry API",
        description=(
            "Private Terraform provider registry. Serves service discovery, "
            "version listing and package lookup, and accepts registrations."
        ),
        version=__version__,
    )
    app.state.registry = service or build_service(config)

    # -----------------------------------------------------------------------
    # Error handling
    # -----------------------------------------------------------------------
    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError):
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "request_failed",
            path=request.url.path,
            status_code=exc.status_code,
            **exc.to_dict(),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error_code": exc.error_code},
        )

    # -----------------------------------------------------------------------
    # Include routers
    # -----------------------------------------------------------------------
    app.include_router(discovery.router)
    app.include_router(providers.router)

    # -----------------------------------------------------------------------
    # Root and health-check endpoints
    # -----------------------------------------------------------------------
    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "Provider Registry API",
            "version": __version__,
            "discovery": "/.well-known/terraform.json",
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    logger.info(
        "app_created",
        storage_dir=str(config.storage_dir),
        signing_identity=config.signing_identity or None,
        key_source="file" if config.public_key_file else "gpg",
    )
    return app
