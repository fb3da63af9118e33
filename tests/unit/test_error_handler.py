"""Unit tests for the error hierarchy and FastAPI exception handlers."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

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


class Payload(BaseModel):
    hashes: list[str]


def _make_app() -> FastAPI:
    """Build a minimal FastAPI app with error handlers registered."""
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/raise-base")
    async def _raise_base():
        raise VerifierError()

    @app.get("/raise-input")
    async def _raise_input():
        raise ValidationInputError("Target wallet address is required", tx_hash="0xabc")

    @app.get("/raise-rpc")
    async def _raise_rpc():
        raise RpcError()

    @app.get("/raise-unavailable")
    async def _raise_unavailable():
        raise EndpointUnavailableError(last_error=TimeoutError("slow"), attempts=3)

    @app.get("/raise-not-found")
    async def _raise_not_found():
        raise NotFoundError()

    @app.get("/raise-decode")
    async def _raise_decode():
        raise DecodeError()

    @app.get("/raise-metadata")
    async def _raise_metadata():
        raise MetadataUnavailableError()

    @app.get("/raise-lookup")
    async def _raise_lookup():
        raise TransactionLookupError("Failed during block", stage="block")

    @app.get("/raise-unhandled")
    async def _raise_unhandled():
        raise RuntimeError("something unexpected")

    @app.post("/validate")
    async def _validate(payload: Payload):
        return {"ok": True}

    return app


@pytest.fixture()
def client():
    return TestClient(_make_app(), raise_server_exceptions=False)


class TestErrorHierarchy:
    """All custom errors are subclasses of VerifierError."""

    def test_all_subclass_verifier_error(self):
        for cls in (
            ValidationInputError,
            RpcError,
            EndpointUnavailableError,
            NotFoundError,
            DecodeError,
            MetadataUnavailableError,
            TransactionLookupError,
        ):
            assert issubclass(cls, VerifierError)

    def test_default_messages(self):
        assert VerifierError().message == "Internal server error"
        assert NotFoundError().message == "Transaction not found"
        assert EndpointUnavailableError().message == "All RPC attempts failed"
        assert DecodeError().message == "Malformed transfer log"

    def test_custom_message_override(self):
        err = NotFoundError("Block timestamp could not be found")
        assert err.message == "Block timestamp could not be found"
        assert str(err) == "Block timestamp could not be found"

    def test_details_kwargs(self):
        err = RpcError("RPC error: reverted", method="eth_call")
        assert err.details == {"method": "eth_call"}

    def test_unavailable_keeps_last_error(self):
        cause = TimeoutError("slow")
        err = EndpointUnavailableError(last_error=cause, attempts=2)
        assert err.last_error is cause
        assert err.details == {"attempts": 2}

    def test_lookup_error_records_stage(self):
        err = TransactionLookupError(stage="decode", tx_hash="0xabc")
        assert err.stage == "decode"
        assert err.details == {"stage": "decode", "tx_hash": "0xabc"}


class TestExceptionHandlers:
    """FastAPI exception handlers return the envelope and mapped status codes."""

    @pytest.mark.parametrize(
        "path,expected_status,expected_error",
        [
            ("/raise-base", 500, "Internal server error"),
            ("/raise-input", 400, "Target wallet address is required"),
            ("/raise-rpc", 502, "RPC endpoint returned an error"),
            ("/raise-unavailable", 503, "All RPC attempts failed"),
            ("/raise-not-found", 404, "Transaction not found"),
            ("/raise-decode", 422, "Malformed transfer log"),
            ("/raise-metadata", 502, "Token metadata unavailable"),
            ("/raise-lookup", 502, "Failed during block"),
        ],
    )
    def test_verifier_error_envelope(self, client, path, expected_status, expected_error):
        resp = client.get(path)
        assert resp.status_code == expected_status
        body = resp.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["error"] == expected_error

    def test_details_rendered_as_meta(self, client):
        body = client.get("/raise-lookup").json()
        assert body["meta"] == {"stage": "block"}

    def test_no_details_means_no_meta(self, client):
        assert client.get("/raise-not-found").json()["meta"] is None

    def test_pydantic_request_validation_error(self, client):
        resp = client.post("/validate", json={"hashes": "not-a-list"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Validation error"
        assert body["meta"]["fields"][0]["field"].endswith("hashes")

    def test_unhandled_exception_returns_500(self, client):
        resp = client.get("/raise-unhandled")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
