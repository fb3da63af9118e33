"""RPC package: JSON-RPC transport, endpoint health, and failover pool."""

from txverify.rpc.client import JsonRpcClient
from txverify.rpc.pool import EndpointPool
from txverify.rpc.types import Endpoint

__all__ = ["Endpoint", "EndpointPool", "JsonRpcClient"]
