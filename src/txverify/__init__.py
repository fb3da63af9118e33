"""Resilient multi-provider RPC access and token transfer verification."""

__version__ = "1.0.0"
