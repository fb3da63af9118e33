"""Public models for the verifier service."""

from txverify.models.requests import (
    ADDRESS_PATTERN,
    TX_HASH_PATTERN,
    BatchVerifyRequest,
    TxHash,
)
from txverify.models.responses import ApiResponse
from txverify.models.schemas import (
    ContractValidation,
    TokenDetails,
    TransactionDetails,
    WalletValidation,
)

__all__ = [
    "ADDRESS_PATTERN",
    "TX_HASH_PATTERN",
    "ApiResponse",
    "BatchVerifyRequest",
    "ContractValidation",
    "TokenDetails",
    "TransactionDetails",
    "TxHash",
    "WalletValidation",
]
