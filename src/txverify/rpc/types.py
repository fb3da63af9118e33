"""Endpoint data model for the RPC pool."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from txverify.rpc.client import JsonRpcClient


@dataclass
class Endpoint:
    """A single upstream JSON-RPC provider with health and latency tracking.

    ``healthy`` is derived from ``consecutive_failures`` on every read and is
    never stored, so it cannot drift from the failure counter.
    """

    url: str
    client: "JsonRpcClient | Any"
    max_failures: int = 3
    latency_ms: int = 0
    consecutive_failures: int = 0
    last_checked_at: float = field(default_factory=time.time)

    @property
    def healthy(self) -> bool:
        return self.consecutive_failures < self.max_failures

    def snapshot(self) -> dict:
        """Read-only view used by pool statistics."""
        return {
            "url": self.url,
            "is_healthy": self.healthy,
            "latency_ms": self.latency_ms,
            "failure_count": self.consecutive_failures,
            "last_checked_at": self.last_checked_at,
        }
