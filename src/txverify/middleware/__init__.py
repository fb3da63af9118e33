"""Middleware package: error hierarchy and request ID."""

from txverify.middleware.error_handler import (
    DecodeError,
    EndpointUnavailableError,
    MetadataUnavailableError,
    NotFoundError,
    RpcError,
    TransactionLookupError,
    ValidationInputError,
    VerifierError,
    register_error_handlers,
)
from txverify.middleware.request_id import RequestIdMiddleware

__all__ = [
    "DecodeError",
    "EndpointUnavailableError",
    "MetadataUnavailableError",
    "NotFoundError",
    "RequestIdMiddleware",
    "RpcError",
    "TransactionLookupError",
    "ValidationInputError",
    "VerifierError",
    "register_error_handlers",
]
