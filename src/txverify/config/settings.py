"""Pydantic Settings for the verifier service.

All environment variables use the TXVERIFY_ prefix.
Example: TXVERIFY_PORT=7000, TXVERIFY_RPC_URLS='["https://rpc-a", "https://rpc-b"]'
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_RPC_URLS: list[str] = [
    "https://bsc-dataseed1.binance.org/",
    "https://bsc-dataseed2.binance.org/",
    "https://bsc-dataseed3.binance.org/",
    "https://bsc-dataseed4.binance.org/",
    "https://bsc-dataseed1.defibit.io/",
    "https://bsc-dataseed2.defibit.io/",
]

# BSC-USD (Binance-Peg USDT) on BNB Smart Chain
DEFAULT_EXPECTED_TOKEN = "0x55d398326f99059ff775485246999027b3197955"

_ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


class VerifierSettings(BaseSettings):
    """Verifier service configuration validated from environment variables."""

    # Service
    port: int = 7000
    log_level: str = "INFO"
    json_logs: bool = True

    # Upstream RPC endpoints (order matters: first entry is the fallback)
    rpc_urls: list[str] = Field(default_factory=lambda: list(DEFAULT_RPC_URLS), min_length=1)
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Endpoint pool
    max_failures: int = Field(default=3, ge=1)
    probe_interval_seconds: float = Field(default=60.0, gt=0)
    max_retry_attempts: int = Field(default=3, ge=1)

    # Token checks
    expected_token_address: str = Field(default=DEFAULT_EXPECTED_TOKEN, pattern=_ADDRESS_PATTERN)
    native_symbol: str = "BNB"
    native_decimals: int = Field(default=18, ge=0, le=36)

    # HTTP boundary
    batch_max_hashes: int = Field(default=10, ge=1, le=100)

    model_config = {"env_prefix": "TXVERIFY_"}
