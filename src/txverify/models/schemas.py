"""Result schemas produced by the transaction validator.

Every result is frozen: it is built once per lookup and never mutated or
cached afterwards.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict


class TokenDetails(BaseModel):
    """Resolved ERC-20 metadata."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    decimals: int


class TransactionDetails(BaseModel):
    """Structured, trust-checked description of a token or native transfer."""

    model_config = ConfigDict(frozen=True)

    contract: str | None = None  # None for native transfers
    from_wallet_address: str
    to_wallet_address: str
    amount: str
    datetime: dt.datetime
    block_number: int
    gas_used: int
    gas_price: int
    transaction_fee: str
    status: bool
    token_symbol: str | None = None
    token_decimals: int | None = None
    is_expected_token: bool
    token_mismatch: bool
    expected_contract: str


class ContractValidation(BaseModel):
    """Answer to "is this contract the expected token?"."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    is_expected_token: bool
    token_mismatch: bool
    details: TokenDetails | None = None


class WalletValidation(BaseModel):
    """Answer to "did this wallet receive the expected token in this transaction?"."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    received_in_target_wallet: bool
    is_token_transfer: bool
    contract_matches: bool
    contract_address: str | None = None
    from_address: str | None = None
    to_address: str | None = None
    amount: str | None = None
    error: str | None = None
