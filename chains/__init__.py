"""
chains/ - Blockchain data layer.

Modules:
- providers: JSON-RPC provider with failover
- abi: calldata encoding / result decoding
- cache: category TTL cache
- gateway: DataGateway protocol and its RPC implementation
"""

from chains.cache import TTLCache
from chains.gateway import DataGateway, RPCDataGateway, pair_cache_key
from chains.providers import RPCProvider, RPCResponse, RPCStats

__all__ = [
    "TTLCache",
    "DataGateway",
    "RPCDataGateway",
    "pair_cache_key",
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
]
