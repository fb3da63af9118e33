"""Minimal async JSON-RPC client bound to a single provider URL.

Only the primitives the verifier needs are exposed: head block number,
transaction and receipt lookup, block lookup, and ``eth_call``. Absence on
chain is returned as ``None``; transport failures and JSON-RPC error objects
raise, so the endpoint pool can count them against the provider.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx

from txverify.middleware.error_handler import RpcError

_request_ids = itertools.count(1)


class JsonRpcClient:
    """JSON-RPC 2.0 over HTTP POST for one endpoint.

    The ``httpx.AsyncClient`` is shared across endpoints and owned by the
    caller (normally the endpoint pool).
    """

    def __init__(self, url: str, http: httpx.AsyncClient) -> None:
        self.url = url
        self._http = http

    async def request(self, method: str, params: list | None = None) -> Any:
        """Send a single JSON-RPC request and return its ``result``.

        Raises
        ------
        httpx.HTTPError
            On connection failures, timeouts, and non-2xx responses.
        RpcError
            If the provider answers with a JSON-RPC ``error`` object or a
            body that is not a JSON-RPC response.
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(_request_ids),
        }
        response = await self._http.post(self.url, json=payload)
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError as exc:
            raise RpcError(f"Non-JSON response to {method}", method=method) from exc

        if not isinstance(body, dict):
            raise RpcError(f"Unexpected response shape for {method}", method=method)

        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise RpcError(f"RPC error: {message}", method=method)

        return body.get("result")

    async def block_number(self) -> int:
        return int(await self.request("eth_blockNumber"), 16)

    async def get_transaction(self, tx_hash: str) -> dict | None:
        return await self.request("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        return await self.request("eth_getTransactionReceipt", [tx_hash])

    async def get_block(self, number: int) -> dict | None:
        return await self.request("eth_getBlockByNumber", [hex(number), False])

    async def call(self, to: str, data: str, block: str = "latest") -> str:
        """Execute a read-only ``eth_call`` and return the raw hex result."""
        return await self.request("eth_call", [{"to": to, "data": data}, block])
