"""
chains/providers.py - JSON-RPC provider with endpoint failover.

Provides reliable RPC access with:
- Multiple endpoint failover
- Request timeout handling
- Connection pooling
- Latency tracking per endpoint
"""

import os
import re
import time
from dataclasses import dataclass
from typing import Any

import httpx

from core.constants import DEFAULT_RPC_TIMEOUT_SECONDS
from core.exceptions import UpstreamUnavailableError
from core.logging import get_logger

logger = get_logger(__name__)

_ENV_PLACEHOLDER = re.compile(r"\$\{([A-Z0-9_]+)\}")


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None
    last_success_ts: int | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int
    endpoint_used: str


def resolve_urls(urls: list[str]) -> list[str]:
    """
    Substitute ${VAR} placeholders from the environment.

    URLs whose placeholders are not set are dropped rather than sent
    with an empty API key.
    """
    resolved = []
    for url in urls:
        missing = [name for name in _ENV_PLACEHOLDER.findall(url) if not os.getenv(name)]
        if missing:
            logger.debug(
                "Skipping RPC endpoint with unset placeholders",
                extra={"context": {"missing": missing}},
            )
            continue
        resolved.append(_ENV_PLACEHOLDER.sub(lambda m: os.environ[m.group(1)], url))
    return resolved


class RPCProvider:
    """
    RPC provider with failover support.

    Tries endpoints in order until one succeeds.
    Tracks statistics per endpoint for monitoring.
    """

    def __init__(
        self,
        chain_id: int,
        rpc_urls: list[str],
        timeout_seconds: float = DEFAULT_RPC_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ):
        self.chain_id = chain_id
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._request_id = 0

        self.rpc_urls = resolve_urls(rpc_urls)
        self.stats: dict[str, RPCStats] = {
            url: RPCStats(url=url) for url in self.rpc_urls
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def call(
        self,
        method: str,
        params: list | None = None,
    ) -> RPCResponse:
        """
        Make an RPC call with failover.

        Raises:
            UpstreamUnavailableError: If every endpoint fails
        """
        if not self.rpc_urls:
            raise UpstreamUnavailableError(
                "No RPC endpoints configured",
                details={"chain_id": self.chain_id},
            )

        client = await self._get_client()
        last_error: str | None = None

        for url in self.rpc_urls:
            stats = self.stats[url]
            stats.total_requests += 1

            payload = {
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": self._next_request_id(),
            }

            start_ms = int(time.time() * 1000)

            try:
                resp = await client.post(url, json=payload)
                latency_ms = int(time.time() * 1000) - start_ms
                resp.raise_for_status()
                result = resp.json()
            except httpx.TimeoutException:
                latency_ms = int(time.time() * 1000) - start_ms
                stats.failed_requests += 1
                stats.last_error = last_error = f"Timeout after {latency_ms}ms"
                logger.debug(f"RPC timeout for {url}: {latency_ms}ms")
                continue
            except (httpx.HTTPError, ValueError) as e:
                stats.failed_requests += 1
                stats.last_error = last_error = str(e)
                logger.debug(f"RPC failed for {url}: {e}")
                continue

            if "error" in result:
                error = result["error"]
                error_msg = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                stats.failed_requests += 1
                stats.last_error = last_error = error_msg
                logger.debug(f"RPC error from {url}: {error_msg}")
                continue

            stats.successful_requests += 1
            stats.total_latency_ms += latency_ms
            stats.last_success_ts = int(time.time() * 1000)

            return RPCResponse(
                result=result.get("result"),
                latency_ms=latency_ms,
                endpoint_used=url,
            )

        raise UpstreamUnavailableError(
            f"All RPC endpoints failed for chain {self.chain_id}",
            details={
                "chain_id": self.chain_id,
                "method": method,
                "endpoints_tried": len(self.rpc_urls),
                "last_error": last_error,
            },
        )

    async def eth_call(
        self,
        to: str,
        data: str,
        block: str = "latest",
    ) -> RPCResponse:
        """Make eth_call against a contract."""
        return await self.call(
            "eth_call",
            [{"to": to, "data": data}, block],
        )

    def get_stats_summary(self) -> dict:
        """Get statistics summary for all endpoints."""
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
