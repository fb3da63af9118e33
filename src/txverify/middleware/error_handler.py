"""Verifier error hierarchy and the FastAPI handlers that render it.

Every domain error carries its HTTP status and keyword details. Handlers
turn them, request validation failures, and anything unhandled into the
shared ``ApiResponse`` envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from txverify.models.responses import ApiResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class VerifierError(Exception):
    """Base error for all verifier-specific errors."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ValidationInputError(VerifierError):
    """Malformed or missing request input at the HTTP boundary."""

    status_code = 400
    message = "Invalid request input"


class RpcError(VerifierError):
    """A single endpoint answered with a JSON-RPC error object."""

    status_code = 502
    message = "RPC endpoint returned an error"


class EndpointUnavailableError(VerifierError):
    """Every retry candidate in the endpoint pool failed."""

    status_code = 503
    message = "All RPC attempts failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        last_error: BaseException | None = None,
        **kwargs: object,
    ) -> None:
        self.last_error = last_error
        super().__init__(message, **kwargs)


class NotFoundError(VerifierError):
    """Transaction, receipt, or block is absent on chain."""

    status_code = 404
    message = "Transaction not found"


class DecodeError(VerifierError):
    """A log matched the Transfer signature but could not be parsed."""

    status_code = 422
    message = "Malformed transfer log"


class MetadataUnavailableError(VerifierError):
    """Token symbol/decimals could not be fetched."""

    status_code = 502
    message = "Token metadata unavailable"


class TransactionLookupError(VerifierError):
    """Unexpected failure while assembling transaction details."""

    status_code = 502
    message = "Failed to fetch transaction details"

    def __init__(self, message: str | None = None, *, stage: str = "unknown", **kwargs: object) -> None:
        self.stage = stage
        super().__init__(message, stage=stage, **kwargs)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(status_code: int, error: str, meta: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ApiResponse.fail(error, meta=meta).body())


async def _verifier_error_handler(_request: Request, exc: VerifierError) -> JSONResponse:
    """Render a VerifierError with its details (stringified) as ``meta``."""
    if exc.status_code >= 500:
        # Upstream trouble; 4xx answers are expected traffic
        logger.warning(
            "%s: %s",
            type(exc).__name__,
            exc.message,
            extra={"error_reason": exc.message},
        )
    meta = {key: str(value) for key, value in exc.details.items()} or None
    return _envelope(exc.status_code, exc.message, meta)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed hash/address/body: 422 with one entry per offending field."""
    fields = [
        {
            "field": " -> ".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(422, "Validation error", {"fields": fields})


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception: %s", exc, exc_info=exc)
    return _envelope(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(VerifierError, _verifier_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]
