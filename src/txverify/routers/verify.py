"""Transaction verification endpoints.

- GET  /api/verify/{hash}: full transaction details with token validation
- POST /api/verify/batch: verify several hashes concurrently
- GET  /api/transaction/{hash}?wallet=0x...: did the wallet receive the expected token
- GET  /api/token/validate/{contract}: is the contract the expected token
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Annotated, Any

from fastapi import APIRouter, Path, Query, Response

from txverify.middleware.error_handler import (
    NotFoundError,
    ValidationInputError,
    VerifierError,
)
from txverify.models.requests import ADDRESS_PATTERN, TX_HASH_PATTERN, BatchVerifyRequest
from txverify.models.responses import ApiResponse
from txverify.models.schemas import TransactionDetails, WalletValidation

if TYPE_CHECKING:
    from txverify.services.validator import TransactionValidator

logger = logging.getLogger(__name__)

TxHashPath = Annotated[
    str,
    Path(pattern=TX_HASH_PATTERN, description="Transaction hash (0x + 64 hex chars)"),
]
AddressPath = Annotated[
    str,
    Path(pattern=ADDRESS_PATTERN, description="Contract address to validate"),
]
WalletQuery = Annotated[
    str | None,
    Query(pattern=ADDRESS_PATTERN, description="Target wallet expected to receive the token"),
]


def _details_warning(details: TransactionDetails) -> str | None:
    if not details.token_mismatch:
        return None
    if details.contract:
        return f"Transaction involves {details.token_symbol or 'unknown token'} instead of the expected token"
    return f"Transaction is a native {details.token_symbol} transfer, not the expected token"


def _wallet_message(validation: WalletValidation) -> str:
    if validation.is_valid:
        return f"Valid transfer of {validation.amount} expected tokens to target wallet"
    if validation.received_in_target_wallet and not validation.is_token_transfer:
        return f"Transfer received but not the expected token (contract: {validation.contract_address})"
    if validation.received_in_target_wallet:
        return "Transfer received but the token contract could not be confirmed"
    return "No expected-token transfer to target wallet found"


def create_verify_router(
    *,
    validator: "TransactionValidator | Any",
    batch_max_hashes: int = 10,
) -> APIRouter:
    """Factory that creates the verification router with injected dependencies.

    Parameters
    ----------
    validator:
        TransactionValidator backed by the endpoint pool.
    batch_max_hashes:
        Upper bound on hashes accepted by ``POST /api/verify/batch``.
    """
    verify_router = APIRouter(prefix="/api", tags=["verify"])

    @verify_router.get("/token/validate/{contract}")
    async def validate_token(contract: AddressPath) -> dict:
        """Check whether a contract is the expected token."""
        contract = contract.lower()
        validation = await validator.contract_is_expected_token(contract)
        return ApiResponse.ok(
            {
                "contract": contract,
                "expected_contract": validator.expected_token_address,
                "validation": validation.model_dump(),
            }
        ).body()

    @verify_router.get("/verify/{tx_hash}")
    async def verify(tx_hash: TxHashPath) -> dict:
        """Full details for one transaction, with a token validation summary."""
        tx_hash = tx_hash.lower()
        if not await validator.exists(tx_hash):
            raise NotFoundError("Transaction not found", tx_hash=tx_hash)

        details = await validator.get_details(tx_hash)
        return ApiResponse.ok(
            {
                "hash": tx_hash,
                "transaction": details.model_dump(mode="json"),
                "validation": {
                    "is_valid_token": details.is_expected_token and not details.token_mismatch,
                    "warning": _details_warning(details),
                },
            }
        ).body()

    @verify_router.post("/verify/batch")
    async def verify_batch(body: BatchVerifyRequest) -> dict:
        """Verify up to ``batch_max_hashes`` transactions concurrently."""
        if len(body.hashes) > batch_max_hashes:
            raise ValidationInputError(
                f"At most {batch_max_hashes} hashes may be verified per batch",
                received=len(body.hashes),
            )

        async def _verify_one(tx_hash: str) -> dict:
            try:
                details = await validator.get_details(tx_hash)
            except VerifierError as exc:
                return {"hash": tx_hash, "success": False, "error": exc.message}
            return {"hash": tx_hash, "success": True, "transaction": details.model_dump(mode="json")}

        logger.info("Verifying batch of %d transactions", len(body.hashes))
        results = await asyncio.gather(*(_verify_one(h) for h in body.hashes))
        return ApiResponse.ok({"results": list(results)}).body()

    @verify_router.get("/transaction/{tx_hash}")
    async def transaction_for_wallet(
        tx_hash: TxHashPath,
        response: Response,
        wallet: WalletQuery = None,
    ) -> dict:
        """Validate that the target wallet received the expected token."""
        tx_hash = tx_hash.lower()
        if not wallet:
            raise ValidationInputError(
                "Target wallet address is required. Provide ?wallet=0x...",
                tx_hash=tx_hash,
            )

        target_wallet = wallet.lower()
        validation = await validator.validate_for_target_wallet(tx_hash, target_wallet)

        if validation.error and not validation.received_in_target_wallet:
            response.status_code = 404
            return ApiResponse.fail(
                validation.error,
                data={"hash": tx_hash, "target_wallet": target_wallet},
            ).body()

        return ApiResponse.ok(
            {
                "hash": tx_hash,
                "target_wallet": target_wallet,
                "validation": {
                    "is_valid": validation.is_valid,
                    "received_in_target_wallet": validation.received_in_target_wallet,
                    "is_token_transfer": validation.is_token_transfer,
                    "contract_matches": validation.contract_matches,
                },
                "transaction": {
                    "contract_address": validation.contract_address.lower(),
                    "from_address": validation.from_address.lower(),
                    "to_address": validation.to_address.lower(),
                    "amount": validation.amount,
                    "expected_contract": validator.expected_token_address.lower(),
                },
                "message": _wallet_message(validation),
            },
            success=validation.is_valid,
        ).body()

    return verify_router
