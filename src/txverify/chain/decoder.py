"""ERC-20 ``Transfer`` event decoding.

``decode_transfer`` is pure: it never touches the network. A log that is not
a Transfer event yields ``None``; a log that claims to be one but is
malformed raises ``DecodeError``.
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import decode_hex, to_checksum_address

from txverify.chain.types import Log
from txverify.middleware.error_handler import DecodeError

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

_WORD_BYTES = 32


@dataclass(frozen=True)
class TransferEvent:
    """A decoded token movement, attributed to the contract that emitted it."""

    contract: str
    from_address: str
    to_address: str
    raw_value: int


def _hex_bytes(value: str, what: str) -> bytes:
    try:
        return decode_hex(value)
    except (ValueError, TypeError) as exc:
        raise DecodeError(f"Transfer log {what} is not valid hex", value=value) from exc


def _topic_address(topic: str, position: int) -> str:
    word = _hex_bytes(topic, f"topic {position}")
    if len(word) != _WORD_BYTES:
        raise DecodeError(
            f"Transfer log topic {position} must be {_WORD_BYTES} bytes, got {len(word)}",
            topic=topic,
        )
    # Address is right-aligned in the 32-byte word
    return to_checksum_address("0x" + word[-20:].hex())


def is_transfer_log(log: Log) -> bool:
    return bool(log.topics) and log.topics[0].lower() == TRANSFER_EVENT_TOPIC


def decode_transfer(log: Log) -> TransferEvent | None:
    """Decode a standard token Transfer event from *log*.

    Returns ``None`` when the log's primary topic is not the Transfer
    signature.

    Raises
    ------
    DecodeError
        If the signature matches but the topic count, topic width, or data
        payload cannot be parsed.
    """
    if not is_transfer_log(log):
        return None

    if len(log.topics) != 3:
        raise DecodeError(
            f"Transfer log must have 3 topics, got {len(log.topics)}",
            contract=log.address,
        )

    data = _hex_bytes(log.data, "data")
    if not data:
        raise DecodeError("Transfer log has an empty data payload", contract=log.address)
    if len(data) > _WORD_BYTES:
        raise DecodeError(
            f"Transfer log data must be a single {_WORD_BYTES}-byte word, got {len(data)} bytes",
            contract=log.address,
        )

    return TransferEvent(
        contract=log.address,
        from_address=_topic_address(log.topics[1], 1),
        to_address=_topic_address(log.topics[2], 2),
        raw_value=int.from_bytes(data, "big"),
    )
