"""Service layer."""

from txverify.services.validator import TransactionValidator

__all__ = ["TransactionValidator"]
