"""FastAPI application entry point with lifespan management.

Startup: load settings, configure logging, build the endpoint pool and start
its background probe loop, wire the chain reader and validator, mount
routers.
Shutdown: cancel background probing and close upstream connections.

Nothing talks to the network at import time; the pool only exists between
lifespan startup and shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from txverify.chain.reader import ChainReader
from txverify.config.settings import VerifierSettings
from txverify.logging_config import configure_logging
from txverify.middleware.error_handler import register_error_handlers
from txverify.middleware.request_id import RequestIdMiddleware
from txverify.routers.health import create_health_router
from txverify.routers.verify import create_verify_router
from txverify.rpc.pool import EndpointPool
from txverify.services.validator import TransactionValidator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    settings: VerifierSettings = app.state.settings

    configure_logging(settings.log_level, json_logs=settings.json_logs)
    logger.info("Starting verifier service on port %d", settings.port)

    pool = EndpointPool(
        settings.rpc_urls,
        max_failures=settings.max_failures,
        probe_interval_seconds=settings.probe_interval_seconds,
        default_max_attempts=settings.max_retry_attempts,
        request_timeout_seconds=settings.request_timeout_seconds,
    )
    pool.start_background_probing()

    validator = TransactionValidator(
        ChainReader(pool),
        settings.expected_token_address,
        native_symbol=settings.native_symbol,
        native_decimals=settings.native_decimals,
    )

    app.include_router(create_health_router(validator=validator))
    app.include_router(
        create_verify_router(validator=validator, batch_max_hashes=settings.batch_max_hashes)
    )

    app.state.pool = pool
    app.state.validator = validator

    logger.info("Verifier service started successfully")

    yield

    # --- Shutdown ---
    logger.info("Shutting down verifier service...")
    await pool.shutdown()
    logger.info("Verifier service shut down")


def create_app(settings: VerifierSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings are validated eagerly so a malformed ``TXVERIFY_*`` variable
    fails at startup rather than on the first request.
    """
    app = FastAPI(
        title="Web3 Transaction Verification",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or VerifierSettings()

    register_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)

    return app


app = create_app()
