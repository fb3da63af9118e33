"""Transaction validation pipeline.

Turns a transaction hash into a structured, trust-checked description of a
token or native-currency transfer, and answers targeted validity questions
against the expected token contract.

``contract_is_expected_token``, ``exists`` and ``is_connected`` are lossy:
they downgrade internal failures to a conservative ``False``. Callers that
need to tell "confirmed invalid" apart from "could not confirm" must use
``get_details`` or ``validate_for_target_wallet``, which propagate errors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator

from txverify.chain.decoder import TransferEvent, decode_transfer
from txverify.chain.reader import ChainReader
from txverify.chain.types import Receipt
from txverify.chain.units import from_wei, scale_amount
from txverify.middleware.error_handler import (
    DecodeError,
    EndpointUnavailableError,
    MetadataUnavailableError,
    NotFoundError,
    TransactionLookupError,
)
from txverify.models.schemas import (
    ContractValidation,
    TokenDetails,
    TransactionDetails,
    WalletValidation,
)

logger = logging.getLogger(__name__)


class TransactionValidator:
    """Orchestrates chain reads and Transfer decoding into validation results.

    Parameters
    ----------
    reader:
        Chain reader backed by the endpoint pool.
    expected_token_address:
        Token contract every transfer is checked against (case-insensitive).
    native_symbol, native_decimals:
        Display metadata for the chain's native currency.
    """

    def __init__(
        self,
        reader: ChainReader,
        expected_token_address: str,
        *,
        native_symbol: str = "BNB",
        native_decimals: int = 18,
    ) -> None:
        self._reader = reader
        self._expected_token = expected_token_address
        self._native_symbol = native_symbol
        self._native_decimals = native_decimals

    @property
    def expected_token_address(self) -> str:
        return self._expected_token

    def _is_expected(self, address: str | None) -> bool:
        return bool(address) and address.lower() == self._expected_token.lower()

    def pool_stats(self) -> dict:
        return self._reader.pool.stats()

    # ------------------------------------------------------------------
    # Token checks
    # ------------------------------------------------------------------

    async def contract_is_expected_token(self, address: str) -> ContractValidation:
        """Check *address* against the expected token.

        Metadata failures are reported as ``is_valid=False,
        token_mismatch=True`` instead of raising.
        """
        is_expected = self._is_expected(address)
        try:
            metadata = await self._reader.get_token_metadata(address)
        except MetadataUnavailableError as exc:
            logger.warning("Cannot confirm token contract %s: %s", address, exc)
            return ContractValidation(is_valid=False, is_expected_token=False, token_mismatch=True)

        return ContractValidation(
            is_valid=is_expected,
            is_expected_token=is_expected,
            token_mismatch=not is_expected,
            details=TokenDetails(symbol=metadata.symbol, decimals=metadata.decimals),
        )

    @staticmethod
    def _transfer_events(receipt: Receipt) -> Iterator[TransferEvent]:
        """Yield every decodable Transfer event in log order, skipping malformed ones."""
        for log in receipt.logs:
            try:
                event = decode_transfer(log)
            except DecodeError as exc:
                logger.debug(
                    "Skipping malformed Transfer log from %s: %s",
                    log.address,
                    exc,
                    extra={"tx_hash": receipt.transaction_hash},
                )
                continue
            if event is not None:
                yield event

    # ------------------------------------------------------------------
    # Transaction details
    # ------------------------------------------------------------------

    async def get_details(self, tx_hash: str) -> TransactionDetails:
        """Build the full description of transaction *tx_hash*.

        Raises
        ------
        NotFoundError
            If the transaction, its receipt, or its block is absent.
        TransactionLookupError
            On any other failure; ``stage`` names the step that failed.
        """
        started = time.monotonic()
        stage = "transaction"
        try:
            tx, receipt = await self._reader.get_transaction_with_receipt(tx_hash)
            if tx is None or receipt is None:
                raise NotFoundError("Transaction not found", tx_hash=tx_hash)

            stage = "block"
            block = await self._reader.get_block(receipt.block_number)
            if block is None:
                raise NotFoundError(
                    "Block timestamp could not be found",
                    block_number=receipt.block_number,
                )

            gas_price = tx.gas_price if tx.gas_price is not None else (receipt.effective_gas_price or 0)
            fields: dict = {
                "contract": None,
                "from_wallet_address": tx.from_address,
                "to_wallet_address": tx.to_address or "",
                "amount": "0",
                "datetime": block.timestamp_utc,
                "block_number": receipt.block_number,
                "gas_used": receipt.gas_used,
                "gas_price": gas_price,
                "transaction_fee": from_wei(receipt.gas_used * gas_price, self._native_decimals),
                "status": receipt.status,
                "is_expected_token": False,
                "token_mismatch": False,
                "expected_contract": self._expected_token,
            }

            if tx.is_contract_interaction:
                stage = "token metadata"
                check = await self.contract_is_expected_token(tx.to_address)
                fields["contract"] = tx.to_address
                fields["is_expected_token"] = check.is_expected_token
                fields["token_mismatch"] = check.token_mismatch
                if check.details is not None:
                    fields["token_symbol"] = check.details.symbol
                    fields["token_decimals"] = check.details.decimals

                stage = "decode"
                event = next(self._transfer_events(receipt), None)
                if event is not None:
                    fields["from_wallet_address"] = event.from_address
                    fields["to_wallet_address"] = event.to_address
                    if check.details is not None:
                        fields["amount"] = scale_amount(event.raw_value, check.details.decimals)
                    else:
                        fields["amount"] = str(event.raw_value)
            else:
                # A native transfer can never satisfy the expected-token check
                fields["amount"] = from_wei(tx.value, self._native_decimals)
                fields["token_symbol"] = self._native_symbol
                fields["token_decimals"] = self._native_decimals
                fields["token_mismatch"] = True

            details = TransactionDetails(**fields)
        except NotFoundError:
            raise
        except Exception as exc:
            logger.error(
                "Transaction lookup failed during %s: %s",
                stage,
                exc,
                extra={"tx_hash": tx_hash, "error_reason": str(exc)},
            )
            raise TransactionLookupError(
                f"Failed to fetch transaction details during {stage}: {exc}",
                stage=stage,
                tx_hash=tx_hash,
            ) from exc

        logger.info(
            "Resolved transaction details",
            extra={"tx_hash": tx_hash, "duration_ms": int((time.monotonic() - started) * 1000)},
        )
        return details

    # ------------------------------------------------------------------
    # Target wallet
    # ------------------------------------------------------------------

    async def validate_for_target_wallet(self, tx_hash: str, wallet: str) -> WalletValidation:
        """Check whether *wallet* received the expected token in *tx_hash*.

        Every Transfer event in the receipt is considered. When several reach
        the wallet, the first one emitted by the expected token wins; failing
        that, the first one reaching the wallet is reported.

        Raises
        ------
        NotFoundError
            If the transaction or its receipt is absent.
        """
        tx, receipt = await self._reader.get_transaction_with_receipt(tx_hash)
        if tx is None or receipt is None:
            raise NotFoundError("Transaction not found", tx_hash=tx_hash)

        target = wallet.lower()
        matches = [e for e in self._transfer_events(receipt) if e.to_address.lower() == target]
        if not matches:
            return WalletValidation(
                is_valid=False,
                received_in_target_wallet=False,
                is_token_transfer=False,
                contract_matches=False,
                error="No token transfer to target wallet found",
            )

        chosen = next((e for e in matches if self._is_expected(e.contract)), matches[0])
        is_token_transfer = self._is_expected(chosen.contract)
        check = await self.contract_is_expected_token(chosen.contract)

        if check.details is not None:
            amount = scale_amount(chosen.raw_value, check.details.decimals)
        else:
            amount = str(chosen.raw_value)

        return WalletValidation(
            is_valid=is_token_transfer and check.is_valid,
            received_in_target_wallet=True,
            is_token_transfer=is_token_transfer,
            contract_matches=check.is_valid,
            contract_address=chosen.contract,
            from_address=chosen.from_address,
            to_address=chosen.to_address,
            amount=amount,
        )

    # ------------------------------------------------------------------
    # Liveness / passthroughs
    # ------------------------------------------------------------------

    async def exists(self, tx_hash: str) -> bool:
        """True if the transaction can be found; any failure reads as ``False``."""
        try:
            tx = await self._reader.get_transaction(tx_hash)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Existence check failed: %s", exc, extra={"tx_hash": tx_hash})
            return False
        return tx is not None

    async def current_block_number(self) -> int:
        try:
            return await self._reader.get_block_number()
        except EndpointUnavailableError as exc:
            logger.error("Failed to fetch block number: %s", exc)
            raise

    async def is_connected(self) -> bool:
        try:
            await self._reader.get_block_number()
        except EndpointUnavailableError:
            return False
        return True
