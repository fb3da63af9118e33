"""Chain Reader: the read primitives the verifier needs, routed through the pool.

Every method is one ``execute_with_retry`` call, so a failing provider is
retried on the next candidate transparently. Payload parsing and ABI decoding
happen after the pool call returns: a contract that answers with garbage is
not held against the endpoint that relayed the answer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from eth_abi import decode as abi_decode
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector

from txverify.chain.types import Block, Receipt, TokenMetadata, Transaction
from txverify.middleware.error_handler import MetadataUnavailableError
from txverify.rpc.client import JsonRpcClient
from txverify.rpc.pool import EndpointPool

logger = logging.getLogger(__name__)


def encode_call(signature: str) -> str:
    """Calldata for a zero-argument view method, e.g. ``"decimals()"``."""
    return encode_hex(function_signature_to_4byte_selector(signature))


_SYMBOL_CALL = encode_call("symbol()")
_DECIMALS_CALL = encode_call("decimals()")

# A dynamic ABI string is at least two words, so a single word is bytes32
_WORD_BYTES = 32


def _decode_symbol(raw: str) -> str:
    """Decode a ``symbol()`` result; decoding errors propagate."""
    data = decode_hex(raw)
    if len(data) == _WORD_BYTES:
        # Some early tokens (e.g. MKR) return bytes32 instead of string
        return data.rstrip(b"\x00").decode("utf-8", errors="replace")
    (symbol,) = abi_decode(["string"], data)
    return symbol


class ChainReader:
    """Thin adapter exposing transaction, receipt, block, and view-call reads."""

    def __init__(self, pool: EndpointPool) -> None:
        self._pool = pool

    @property
    def pool(self) -> EndpointPool:
        return self._pool

    async def get_transaction(self, tx_hash: str) -> Transaction | None:
        raw = await self._pool.execute_with_retry(lambda client: client.get_transaction(tx_hash))
        return Transaction.from_rpc(raw) if raw else None

    async def get_receipt(self, tx_hash: str) -> Receipt | None:
        raw = await self._pool.execute_with_retry(
            lambda client: client.get_transaction_receipt(tx_hash)
        )
        return Receipt.from_rpc(raw) if raw else None

    async def get_transaction_with_receipt(
        self, tx_hash: str
    ) -> tuple[Transaction | None, Receipt | None]:
        """Fetch a transaction and its receipt concurrently from one endpoint."""

        async def _fetch(client: JsonRpcClient) -> list[Any]:
            return await asyncio.gather(
                client.get_transaction(tx_hash),
                client.get_transaction_receipt(tx_hash),
            )

        raw_tx, raw_receipt = await self._pool.execute_with_retry(_fetch)
        return (
            Transaction.from_rpc(raw_tx) if raw_tx else None,
            Receipt.from_rpc(raw_receipt) if raw_receipt else None,
        )

    async def get_block(self, number: int) -> Block | None:
        raw = await self._pool.execute_with_retry(lambda client: client.get_block(number))
        return Block.from_rpc(raw) if raw else None

    async def get_block_number(self) -> int:
        return await self._pool.execute_with_retry(lambda client: client.block_number())

    async def call(
        self,
        address: str,
        signature: str,
        output_types: Sequence[str],
    ) -> tuple:
        """Call a zero-argument view method and ABI-decode its return value.

        ``eth_abi`` decoding errors propagate unchanged.
        """
        calldata = encode_call(signature)
        raw = await self._pool.execute_with_retry(lambda client: client.call(address, calldata))
        return tuple(abi_decode(list(output_types), decode_hex(raw)))

    async def get_token_metadata(self, address: str) -> TokenMetadata:
        """Fetch ``symbol()`` and ``decimals()`` concurrently.

        Raises
        ------
        MetadataUnavailableError
            If either call fails on every endpoint or returns undecodable data.
        """

        async def _fetch(client: JsonRpcClient) -> list[str]:
            return await asyncio.gather(
                client.call(address, _SYMBOL_CALL),
                client.call(address, _DECIMALS_CALL),
            )

        try:
            raw_symbol, raw_decimals = await self._pool.execute_with_retry(_fetch)
            symbol = _decode_symbol(raw_symbol)
            (decimals,) = abi_decode(["uint8"], decode_hex(raw_decimals))
        except Exception as exc:  # noqa: BLE001
            raise MetadataUnavailableError(
                f"Token metadata unavailable for {address}: {exc}",
                contract=address,
            ) from exc

        return TokenMetadata(symbol=symbol, decimals=int(decimals))
