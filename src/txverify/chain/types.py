"""Typed views over raw JSON-RPC payloads.

Providers return hex quantities and lowercase addresses; these dataclasses
parse them once so the rest of the code works with ints and EIP-55
checksummed addresses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from eth_utils import to_checksum_address


def parse_quantity(value: Any, default: int | None = None) -> int | None:
    """Parse a JSON-RPC quantity (``0x``-prefixed hex or int)."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError("quantity cannot be boolean")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.startswith(("0x", "0X")):
        return int(text, 16) if len(text) > 2 else 0
    return int(text, 10)


def _address(value: Any) -> str | None:
    return to_checksum_address(value) if value else None


@dataclass(frozen=True)
class Log:
    """A single event log entry from a transaction receipt."""

    address: str
    topics: tuple[str, ...]
    data: str
    log_index: int | None = None

    @classmethod
    def from_rpc(cls, raw: dict) -> Log:
        return cls(
            address=to_checksum_address(raw["address"]),
            topics=tuple(raw.get("topics") or ()),
            data=raw.get("data") or "0x",
            log_index=parse_quantity(raw.get("logIndex")),
        )


@dataclass(frozen=True)
class Transaction:
    hash: str
    from_address: str
    to_address: str | None
    input: str
    value: int
    gas_price: int | None
    block_number: int | None

    @property
    def is_contract_interaction(self) -> bool:
        """True when the transaction targets an address with a call payload."""
        return bool(self.to_address) and self.input not in ("", "0x")

    @classmethod
    def from_rpc(cls, raw: dict) -> Transaction:
        return cls(
            hash=raw["hash"],
            from_address=to_checksum_address(raw["from"]),
            to_address=_address(raw.get("to")),
            input=raw.get("input") or raw.get("data") or "0x",
            value=parse_quantity(raw.get("value"), 0),
            gas_price=parse_quantity(raw.get("gasPrice")),
            block_number=parse_quantity(raw.get("blockNumber")),
        )


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    block_number: int
    gas_used: int
    effective_gas_price: int | None
    status: bool
    logs: tuple[Log, ...]

    @classmethod
    def from_rpc(cls, raw: dict) -> Receipt:
        return cls(
            transaction_hash=raw["transactionHash"],
            block_number=parse_quantity(raw["blockNumber"]),
            gas_used=parse_quantity(raw.get("gasUsed"), 0),
            effective_gas_price=parse_quantity(raw.get("effectiveGasPrice")),
            status=parse_quantity(raw.get("status"), 0) == 1,
            logs=tuple(Log.from_rpc(entry) for entry in raw.get("logs") or ()),
        )


@dataclass(frozen=True)
class Block:
    number: int
    timestamp: int
    hash: str | None = None

    @property
    def timestamp_utc(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    @classmethod
    def from_rpc(cls, raw: dict) -> Block:
        return cls(
            number=parse_quantity(raw["number"]),
            timestamp=parse_quantity(raw["timestamp"]),
            hash=raw.get("hash"),
        )


@dataclass(frozen=True)
class TokenMetadata:
    symbol: str
    decimals: int
