"""
HTTP transport for JSON-RPC calls.

Wraps an aiohttp ClientSession. Transport-level failures (refused
connections, timeouts, dropped sockets) are returned as a response with
status 0 instead of raising, so callers can classify every outcome the
same way.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import aiohttp
import structlog

logger = structlog.get_logger(__name__)

TRANSPORT_ERROR_STATUS = 0


@dataclass(frozen=True)
class TransportResponse:
    status: int
    body: str
    duration_ms: float


class Transport(Protocol):
    async def post(self, url: str, body: str, headers: Dict[str, str]) -> TransportResponse: ...


class AiohttpTransport:
    """POSTs request bodies over a shared aiohttp session"""

    def __init__(self, timeout_s: float = 60.0, max_connections: int = 100):
        self.timeout_s = timeout_s
        self.max_connections = max_connections
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AiohttpTransport":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def open(self):
        """Create the underlying client session"""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_s),
                connector=aiohttp.TCPConnector(limit=self.max_connections),
            )
            logger.debug("Transport session opened", timeout_s=self.timeout_s)

    async def close(self):
        """Close the client session"""
        if self.session is not None:
            await self.session.close()
            self.session = None
            logger.debug("Transport session closed")

    async def post(self, url: str, body: str, headers: Dict[str, str]) -> TransportResponse:
        """
        Send a single POST request.

        Args:
            url: Target endpoint
            body: Serialized request body
            headers: Request headers

        Returns:
            TransportResponse; status is 0 when no HTTP response was received
        """
        if self.session is None:
            raise RuntimeError("Transport not opened")

        start_time = time.perf_counter()
        try:
            async with self.session.post(url, data=body, headers=headers) as response:
                text = await response.text(errors="replace")
                duration_ms = (time.perf_counter() - start_time) * 1000
                return TransportResponse(response.status, text, duration_ms)

        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            return TransportResponse(TRANSPORT_ERROR_STATUS, "request timed out", duration_ms)
        except aiohttp.ClientError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            return TransportResponse(TRANSPORT_ERROR_STATUS, f"{type(e).__name__}: {e}", duration_ms)
