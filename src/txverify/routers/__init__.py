"""HTTP routers."""

from txverify.routers.health import create_health_router
from txverify.routers.verify import create_verify_router

__all__ = ["create_health_router", "create_verify_router"]
