"""Request models and input patterns for the HTTP boundary."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

TX_HASH_PATTERN = r"^0x[0-9a-fA-F]{64}$"
ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"

TxHash = Annotated[
    str,
    StringConstraints(pattern=TX_HASH_PATTERN, to_lower=True, strip_whitespace=True),
]


class BatchVerifyRequest(BaseModel):
    """Request model for batch verification (size is capped by settings at the router)."""

    hashes: list[TxHash] = Field(..., min_length=1, max_length=100)
