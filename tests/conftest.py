"""Shared test fixtures, fake RPC transport, and hypothesis strategies."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import pytest
from eth_abi import encode as abi_encode
from eth_utils import encode_hex
from hypothesis import strategies as st

from txverify.chain.decoder import TRANSFER_EVENT_TOPIC
from txverify.chain.reader import ChainReader, encode_call
from txverify.config.settings import VerifierSettings
from txverify.middleware.error_handler import RpcError
from txverify.rpc.pool import EndpointPool
from txverify.services.validator import TransactionValidator

EXPECTED_TOKEN = "0x55d398326f99059ff775485246999027b3197955"
OTHER_TOKEN = "0x8ac76a51cc950d9822d68b83fe1ad97b32cd580d"
SENDER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"
TARGET_WALLET = "0x11fb8d39641c61e9c0cdeb0f9eb97a0ff26471a6"
TX_HASH = "0x392d23bf9b35ff64220a8defdd80f68ac81ff4959b225a77eab40ce3d8d5700b"
BLOCK_NUMBER = 40_000_000
BLOCK_TIMESTAMP = 1_700_000_000


# ---------------------------------------------------------------------------
# Ensure no stray TXVERIFY_ env vars leak into settings tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("TXVERIFY_"):
            monkeypatch.delenv(key)


# ---------------------------------------------------------------------------
# JSON-RPC payload builders
# ---------------------------------------------------------------------------

def address_topic(address: str) -> str:
    """Left-pad a 20-byte address into a 32-byte topic word."""
    return "0x" + "0" * 24 + address[2:].lower()


def uint_word(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


def transfer_log(contract: str, sender: str, recipient: str, value: int) -> dict:
    return {
        "address": contract,
        "topics": [TRANSFER_EVENT_TOPIC, address_topic(sender), address_topic(recipient)],
        "data": uint_word(value),
        "logIndex": "0x0",
    }


def make_tx(
    *,
    tx_hash: str = TX_HASH,
    sender: str = SENDER,
    to: str | None = RECIPIENT,
    value: int = 0,
    data: str = "0x",
    gas_price: int = 3 * 10**9,
) -> dict:
    return {
        "hash": tx_hash,
        "from": sender,
        "to": to,
        "input": data,
        "value": hex(value),
        "gasPrice": hex(gas_price),
        "blockNumber": hex(BLOCK_NUMBER),
    }


def make_receipt(
    *,
    tx_hash: str = TX_HASH,
    logs: list[dict] | None = None,
    gas_used: int = 21_000,
    status: int = 1,
) -> dict:
    return {
        "transactionHash": tx_hash,
        "blockNumber": hex(BLOCK_NUMBER),
        "gasUsed": hex(gas_used),
        "status": hex(status),
        "logs": logs or [],
    }


def make_block(number: int = BLOCK_NUMBER, timestamp: int = BLOCK_TIMESTAMP) -> dict:
    return {"number": hex(number), "timestamp": hex(timestamp), "hash": "0x" + "ab" * 32}


def abi_string(value: str) -> str:
    return encode_hex(abi_encode(["string"], [value]))


def abi_uint(value: int) -> str:
    return encode_hex(abi_encode(["uint8"], [value]))


# ---------------------------------------------------------------------------
# Fake chain + RPC client
# ---------------------------------------------------------------------------

@dataclass
class FakeChain:
    """In-memory chain state shared by every fake endpoint."""

    head: int = BLOCK_NUMBER
    transactions: dict[str, dict] = field(default_factory=dict)
    receipts: dict[str, dict] = field(default_factory=dict)
    blocks: dict[int, dict] = field(default_factory=dict)
    calls: dict[tuple[str, str], str] = field(default_factory=dict)

    def add_token(self, address: str, symbol: str, decimals: int) -> None:
        self.calls[(address.lower(), encode_call("symbol()"))] = abi_string(symbol)
        self.calls[(address.lower(), encode_call("decimals()"))] = abi_uint(decimals)


class FakeRpcClient:
    """Stands in for JsonRpcClient; set ``fail_with`` to make the endpoint fail."""

    def __init__(self, url: str, chain: FakeChain | None = None) -> None:
        self.url = url
        self.chain = chain or FakeChain()
        self.fail_with: Exception | None = None
        self.methods: list[str] = []

    def _enter(self, method: str) -> None:
        self.methods.append(method)
        if self.fail_with is not None:
            raise self.fail_with

    async def block_number(self) -> int:
        self._enter("eth_blockNumber")
        return self.chain.head

    async def get_transaction(self, tx_hash: str) -> dict | None:
        self._enter("eth_getTransactionByHash")
        return self.chain.transactions.get(tx_hash)

    async def get_transaction_receipt(self, tx_hash: str) -> dict | None:
        self._enter("eth_getTransactionReceipt")
        return self.chain.receipts.get(tx_hash)

    async def get_block(self, number: int) -> dict | None:
        self._enter("eth_getBlockByNumber")
        return self.chain.blocks.get(number)

    async def call(self, to: str, data: str, block: str = "latest") -> str:
        self._enter("eth_call")
        try:
            return self.chain.calls[(to.lower(), data)]
        except KeyError:
            raise RpcError("RPC error: execution reverted", method="eth_call") from None


def make_fake_pool(
    urls: list[str],
    chain: FakeChain | None = None,
    **kwargs: object,
) -> EndpointPool:
    shared = chain or FakeChain()
    return EndpointPool(urls, client_factory=lambda url: FakeRpcClient(url, shared), **kwargs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> VerifierSettings:
    """Test settings with safe defaults."""
    return VerifierSettings(
        rpc_urls=["https://rpc-a.test", "https://rpc-b.test", "https://rpc-c.test"],
        expected_token_address=EXPECTED_TOKEN,
        probe_interval_seconds=0.05,
    )


@pytest.fixture
def chain() -> FakeChain:
    state = FakeChain()
    state.blocks[BLOCK_NUMBER] = make_block()
    state.add_token(EXPECTED_TOKEN, "USDT", 18)
    return state


@pytest.fixture
def pool(settings: VerifierSettings, chain: FakeChain) -> EndpointPool:
    return make_fake_pool(
        settings.rpc_urls,
        chain,
        max_failures=settings.max_failures,
        default_max_attempts=settings.max_retry_attempts,
    )


@pytest.fixture
def validator(pool: EndpointPool, settings: VerifierSettings) -> TransactionValidator:
    return TransactionValidator(ChainReader(pool), settings.expected_token_address)


# ---------------------------------------------------------------------------
# Hypothesis strategies (reusable across property tests)
# ---------------------------------------------------------------------------

addresses = st.binary(min_size=20, max_size=20).map(lambda b: "0x" + b.hex())
uint256 = st.integers(min_value=0, max_value=2**256 - 1)
latencies = st.integers(min_value=0, max_value=5_000)

# 1-8 unique endpoint URLs
endpoint_url_lists = st.lists(
    st.integers(min_value=1, max_value=999).map(lambda n: f"https://rpc{n}.test"),
    min_size=1,
    max_size=8,
    unique=True,
)
