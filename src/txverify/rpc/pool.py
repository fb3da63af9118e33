"""Health-tracked pool of upstream JSON-RPC endpoints with failover.

Endpoints are loaded once from a list of provider URLs (duplicates collapse
to the first occurrence). Selection prefers healthy endpoints with the lowest
measured latency. Every read goes through ``execute_with_retry``, which fails
over to the next candidate immediately on error and only surfaces a failure
once all candidates are exhausted. A background probe loop periodically
measures every endpoint's head-block latency.

All counter mutations happen in synchronous helpers on the event loop, with
no ``await`` between reading and writing a counter.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import httpx

from txverify.middleware.error_handler import EndpointUnavailableError
from txverify.rpc.client import JsonRpcClient
from txverify.rpc.types import Endpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[JsonRpcClient], Awaitable[T]]


def _dedupe(urls: Iterable[str]) -> list[str]:
    """Strip blanks and collapse repeated URLs, preserving first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for raw in urls:
        url = raw.strip()
        if not url:
            continue
        key = url.rstrip("/").lower()
        if key in seen:
            logger.warning("Duplicate RPC endpoint ignored: %s", url, extra={"endpoint_url": url})
            continue
        seen.add(key)
        unique.append(url)
    return unique


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return "Unknown error"
    return str(exc) or type(exc).__name__


class EndpointPool:
    """Owns a fixed, ordered list of RPC endpoints and routes calls across them.

    Parameters
    ----------
    urls:
        Provider URLs in priority order. The first one is the fallback when
        every endpoint is unhealthy.
    max_failures:
        Consecutive failures after which an endpoint is considered unhealthy.
    probe_interval_seconds:
        Default period of the background health probe loop.
    default_max_attempts:
        Attempts per ``execute_with_retry`` call when none is given.
    request_timeout_seconds:
        Per-request timeout for the shared HTTP client. A timeout counts as a
        failure of that endpoint.
    client_factory:
        Optional ``url -> client`` builder. When omitted the pool owns an
        ``httpx.AsyncClient`` and closes it on shutdown.
    """

    def __init__(
        self,
        urls: Iterable[str],
        *,
        max_failures: int = 3,
        probe_interval_seconds: float = 60.0,
        default_max_attempts: int = 3,
        request_timeout_seconds: float = 10.0,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        unique = _dedupe(urls)
        if not unique:
            raise ValueError("EndpointPool requires at least one RPC URL")
        if max_failures < 1:
            raise ValueError("max_failures must be >= 1")

        self._http: httpx.AsyncClient | None = None
        if client_factory is None:
            http = httpx.AsyncClient(
                timeout=httpx.Timeout(request_timeout_seconds),
                limits=httpx.Limits(max_connections=20),
            )
            self._http = http

            def client_factory(url: str) -> JsonRpcClient:
                return JsonRpcClient(url, http)

        self._endpoints: list[Endpoint] = [
            Endpoint(url=url, client=client_factory(url), max_failures=max_failures)
            for url in unique
        ]
        self._probe_interval_seconds = probe_interval_seconds
        self._default_max_attempts = default_max_attempts
        self._probe_task: asyncio.Task[None] | None = None
        self._closed = False

        logger.info("Endpoint pool initialized with %d endpoints", len(self._endpoints))

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return tuple(self._endpoints)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _healthy_by_latency(self) -> list[Endpoint]:
        # sorted() is stable: equal latencies keep configuration order
        return sorted((e for e in self._endpoints if e.healthy), key=lambda e: e.latency_ms)

    def select_best(self) -> Endpoint:
        """Return the healthy endpoint with the lowest latency.

        When no endpoint is healthy the health model is assumed stale: every
        failure counter is reset and the first configured endpoint is returned.
        """
        healthy = self._healthy_by_latency()
        if healthy:
            return healthy[0]

        logger.warning("All RPC endpoints unhealthy, resetting failure counts")
        for endpoint in self._endpoints:
            endpoint.consecutive_failures = 0
        return self._endpoints[0]

    # ------------------------------------------------------------------
    # Failover
    # ------------------------------------------------------------------

    async def execute_with_retry(
        self,
        operation: Operation[T],
        max_attempts: int | None = None,
    ) -> T:
        """Run *operation* against successive endpoints until one succeeds.

        Candidates are the healthy endpoints ordered by latency or, if none
        is healthy, the first *max_attempts* configured endpoints. Retries
        are immediate.

        Raises
        ------
        EndpointUnavailableError
            If every attempted endpoint failed. Carries the last error.
        """
        limit = self._default_max_attempts if max_attempts is None else max_attempts
        if limit < 1:
            raise ValueError("max_attempts must be >= 1")

        healthy = self._healthy_by_latency()
        candidates = healthy if healthy else self._endpoints[:limit]
        attempts = min(len(candidates), limit)
        last_error: Exception | None = None

        for attempt, endpoint in enumerate(candidates[:attempts], start=1):
            try:
                result = await operation(endpoint.client)
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                self._record_failure(endpoint)
                logger.warning(
                    "RPC %s failed (attempt %d/%d): %s",
                    endpoint.url,
                    attempt,
                    attempts,
                    _describe(exc),
                    extra={
                        "endpoint_url": endpoint.url,
                        "attempt": attempt,
                        "max_attempts": attempts,
                        "error_reason": _describe(exc),
                    },
                )
                continue

            self._record_success(endpoint)
            return result

        raise EndpointUnavailableError(
            f"All RPC attempts failed. Last error: {_describe(last_error)}",
            last_error=last_error,
            attempts=attempts,
        ) from last_error

    # ------------------------------------------------------------------
    # Health tracking
    # ------------------------------------------------------------------

    def _record_success(self, endpoint: Endpoint) -> None:
        if endpoint.consecutive_failures:
            logger.info("RPC endpoint recovered: %s", endpoint.url, extra={"endpoint_url": endpoint.url})
        endpoint.consecutive_failures = 0

    def _record_failure(self, endpoint: Endpoint) -> None:
        was_healthy = endpoint.healthy
        endpoint.consecutive_failures += 1
        if was_healthy and not endpoint.healthy:
            logger.warning(
                "RPC endpoint marked unhealthy: %s (failures: %d)",
                endpoint.url,
                endpoint.consecutive_failures,
                extra={"endpoint_url": endpoint.url},
            )

    # ------------------------------------------------------------------
    # Background probing
    # ------------------------------------------------------------------

    async def _probe(self, endpoint: Endpoint) -> bool:
        start = time.monotonic()
        try:
            await endpoint.client.block_number()
        except Exception as exc:  # noqa: BLE001
            endpoint.last_checked_at = time.time()
            self._record_failure(endpoint)
            logger.debug(
                "Health probe failed for %s: %s",
                endpoint.url,
                _describe(exc),
                extra={"endpoint_url": endpoint.url, "error_reason": _describe(exc)},
            )
            return False

        endpoint.latency_ms = int((time.monotonic() - start) * 1000)
        endpoint.last_checked_at = time.time()
        self._record_success(endpoint)
        return True

    async def probe_all(self) -> list[bool]:
        """Probe every endpoint concurrently and wait for all of them.

        Returns one success flag per endpoint, in configuration order.
        """
        return list(await asyncio.gather(*(self._probe(e) for e in self._endpoints)))

    async def _probe_loop(self, interval: float) -> None:
        while True:
            results = await self.probe_all()
            logger.debug("Health probe round: %d/%d endpoints reachable", sum(results), len(results))
            await asyncio.sleep(interval)

    def start_background_probing(self, interval: float | None = None) -> asyncio.Task[None]:
        """Probe once immediately, then every *interval* seconds until cancelled.

        Returns the background task, which doubles as the cancellation handle.
        Calling this while a probe loop is running returns the existing task.
        """
        if self._closed:
            raise RuntimeError("EndpointPool has been shut down")
        if self._probe_task is not None and not self._probe_task.done():
            return self._probe_task

        period = self._probe_interval_seconds if interval is None else interval
        self._probe_task = asyncio.create_task(self._probe_loop(period), name="rpc-pool-probe")
        return self._probe_task

    # ------------------------------------------------------------------
    # Stats / lifecycle
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        """Return pool statistics for the stats endpoint."""
        total = len(self._endpoints)
        healthy = sum(1 for e in self._endpoints if e.healthy)
        return {
            "total": total,
            "healthy": healthy,
            "unhealthy": total - healthy,
            "endpoints": [e.snapshot() for e in self._endpoints],
        }

    async def shutdown(self) -> None:
        """Cancel background probing and close the owned HTTP client. Idempotent."""
        if self._closed:
            return
        self._closed = True

        task, self._probe_task = self._probe_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._http is not None:
            await self._http.aclose()

        logger.info("Endpoint pool shut down")
