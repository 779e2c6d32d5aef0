"""
HTTP session management for the upstream clients.

Each upstream client (npm registry, GitHub) owns one HTTPSessionManager.
The manager creates its httpx.AsyncClient on first use and counts requests
and failures. Its health_check() feeds the server's /health report.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import httpx
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class SessionMetrics:
    """Request counters for one upstream session."""

    clients_created: int = 0
    total_requests: int = 0
    in_flight: int = 0
    request_errors: int = 0
    last_error: Optional[str] = None

    def request_started(self) -> None:
        self.total_requests += 1
        self.in_flight += 1

    def request_finished(self, error: Optional[BaseException] = None) -> None:
        self.in_flight = max(0, self.in_flight - 1)
        if error is not None:
            self.request_errors += 1
            self.last_error = f"{type(error).__name__}: {error}"

    @property
    def reuse_rate(self) -> float:
        """Share of requests (percent) served by an already created client."""
        if self.total_requests == 0:
            return 0.0
        reused = max(0, self.total_requests - self.clients_created)
        return reused / self.total_requests * 100

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "in_flight": self.in_flight,
            "request_errors": self.request_errors,
            "last_error": self.last_error,
            "reuse_rate": round(self.reuse_rate, 2),
        }


class HTTPSessionManager:
    """Owns the pooled httpx client behind one upstream client."""

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        retries: int = 1,
        headers: Optional[Dict[str, str]] = None,
        health_check_url: Optional[str] = None,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        keepalive_expiry: float = 30.0,
    ):
        """
        Args:
            timeout: per-request timeout in seconds
            retries: transport-level connect retries
            headers: default headers sent with every request
            health_check_url: URL checked with HEAD by health_check()
            max_connections: connection pool size
            max_keepalive_connections: idle connections kept open
            keepalive_expiry: idle connection lifetime in seconds
        """
        self.timeout = timeout
        self.retries = retries
        self.headers = dict(headers or {})
        self.health_check_url = health_check_url
        self.metrics = SessionMetrics()

        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
            keepalive_expiry=keepalive_expiry,
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    async def initialize(self) -> httpx.AsyncClient:
        """Create the httpx client once; concurrent callers share it."""
        async with self._lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    limits=self._limits,
                    timeout=httpx.Timeout(self.timeout),
                    transport=httpx.AsyncHTTPTransport(retries=self.retries),
                    headers=self.headers,
                    follow_redirects=True,
                )
                self.metrics.clients_created += 1
                logger.debug(
                    "HTTP client created",
                    timeout=self.timeout,
                    max_connections=self._limits.max_connections,
                )
            return self._client

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the shared client and record the outcome of the request."""
        client = self._client or await self.initialize()
        self.metrics.request_started()
        error: Optional[BaseException] = None
        try:
            yield client
        except httpx.HTTPError as e:
            error = e
            logger.debug("HTTP request failed", error_type=type(e).__name__, error=str(e))
            raise
        finally:
            self.metrics.request_finished(error)

    async def health_check(self) -> Dict[str, Any]:
        """
        Report session status.

        A session that was never opened is reported as "not_initialized"
        without a request. With a health_check_url the upstream is checked
        with HEAD; otherwise only the counters are reported.
        """
        if not self.initialized:
            return {"status": "not_initialized", **self.metrics.snapshot()}

        if self.health_check_url:
            try:
                async with self.session() as client:
                    response = await client.head(self.health_check_url)
                    response.raise_for_status()
            except httpx.HTTPError as e:
                return {"status": "unhealthy", "error": str(e), **self.metrics.snapshot()}

        return {"status": "healthy", **self.metrics.snapshot()}

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            logger.debug("HTTP client closed", total_requests=self.metrics.total_requests)
