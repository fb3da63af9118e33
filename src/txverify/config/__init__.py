"""Configuration module: settings."""

from txverify.config.settings import DEFAULT_EXPECTED_TOKEN, DEFAULT_RPC_URLS, VerifierSettings

__all__ = [
    "DEFAULT_EXPECTED_TOKEN",
    "DEFAULT_RPC_URLS",
    "VerifierSettings",
]
