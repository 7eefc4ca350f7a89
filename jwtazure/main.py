"""
Example FastAPI application protected by ``BearerAuthMiddleware``.

Run with the factory flag so key sets are only fetched when the server starts::

    JWTAZURE_TENANT_ID=contoso JWTAZURE_AUDIENCES='["api://myapp"]' \
        uvicorn jwtazure.main:create_app --factory
"""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jwtazure.entra.validator import TokenValidator
from jwtazure.logging_config import configure_app_logging
from jwtazure.routers import me
from jwtazure.security.middleware import BearerAuthMiddleware
from jwtazure.settings import get_settings

logger = logging.getLogger(__name__)


def create_app(validator: TokenValidator | None = None) -> FastAPI:
    settings = get_settings()
    configure_app_logging(settings.log_level)

    # Shutdown signal for the key-set refresh threads.
    stop_event = threading.Event()
    owns_validator = validator is None
    if validator is None:
        # Fails startup if the tenant's key sets cannot be fetched.
        validator = TokenValidator.from_settings(settings, stop_event=stop_event)
        logger.info("Token validator ready tenant=%s", validator.config.tenant_id)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Shutdown
        if owns_validator:
            stop_event.set()
            logger.info("Token validator key refresh stopped")

    app = FastAPI(lifespan=lifespan)
    app.state.token_validator = validator
    app.add_middleware(BearerAuthMiddleware, validator=validator)

    app.include_router(me.router)

    return app
