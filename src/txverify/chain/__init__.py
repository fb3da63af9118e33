"""Chain data access: typed payloads, reader, and Transfer log decoding."""

from txverify.chain.decoder import TRANSFER_EVENT_TOPIC, TransferEvent, decode_transfer
from txverify.chain.reader import ChainReader
from txverify.chain.types import Block, Log, Receipt, TokenMetadata, Transaction
from txverify.chain.units import from_wei, scale_amount

__all__ = [
    "TRANSFER_EVENT_TOPIC",
    "Block",
    "ChainReader",
    "Log",
    "Receipt",
    "TokenMetadata",
    "Transaction",
    "TransferEvent",
    "decode_transfer",
    "from_wei",
    "scale_amount",
]
