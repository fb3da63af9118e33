"""Liveness and pool introspection routes.

- GET /api/health: 200 when a head-block query succeeds through the pool, else 503
- GET /api/rpc/stats: per-endpoint health and latency
- GET /api/block: current head block number
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Response

from txverify.models.responses import ApiResponse

if TYPE_CHECKING:
    from txverify.services.validator import TransactionValidator

SERVICE_NAME = "Web3 Transaction Verification"


def create_health_router(*, validator: "TransactionValidator | Any") -> APIRouter:
    """Build the health router around an already-wired validator."""

    router = APIRouter(prefix="/api", tags=["health"])

    @router.get("/health")
    async def health(response: Response) -> dict:
        connected = await validator.is_connected()
        data = {
            "status": "healthy" if connected else "unhealthy",
            "service": SERVICE_NAME,
            "rpc_connected": connected,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if connected:
            return ApiResponse.ok(data).body()

        response.status_code = 503
        return ApiResponse.fail("No RPC endpoint reachable", data=data).body()

    @router.get("/rpc/stats")
    async def rpc_stats() -> dict:
        return ApiResponse.ok(validator.pool_stats()).body()

    @router.get("/block")
    async def current_block() -> dict:
        # Stringified: block numbers are consumed by JS clients
        block_number = await validator.current_block_number()
        return ApiResponse.ok({"current_block": str(block_number)}).body()

    return router
