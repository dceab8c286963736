"""InfluxDB 1.x HTTP write client.

Batches are encoded as line protocol and POSTed to ``/write``. The client
makes exactly one request per batch; retrying is left to the next scan cycle.

Example:
    >>> async with InfluxDBSink("http://localhost:8086") as sink:
    ...     await sink.write_batch("metrics", points)
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Final, Self
from urllib.parse import urlsplit

import aiohttp

from dirsize_reporter.core.errors import SinkError
from dirsize_reporter.sink.line_protocol import Precision, encode_points
from dirsize_reporter.types.models import MetricPoint

DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0

# Longest InfluxDB error body echoed into log messages
_MAX_ERROR_BODY: Final[int] = 512


def validate_address(address: str) -> str:
    """Validate and normalize a sink address.

    Raises:
        ValueError: If the address is not an absolute http(s) URL
    """
    parts = urlsplit(address.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        msg = f"Unsupported sink address {address!r}: expected http(s)://host[:port]"
        raise ValueError(msg)
    return address.strip().rstrip("/")


class InfluxDBSink:
    """Async InfluxDB writer implementing the MetricSink protocol."""

    def __init__(
        self,
        address: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        precision: Precision = "ns",
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            address: Base URL of the InfluxDB HTTP API
            username: Optional user for authentication
            password: Optional password for authentication
            timeout_seconds: Total timeout for one write request
            precision: Timestamp precision used on the wire
            session: Externally managed session (not closed by this client)
        """
        self.address: str = validate_address(address)
        self._username: str | None = username
        self._password: str | None = password
        self._timeout_seconds: float = timeout_seconds
        self.precision: Precision = precision
        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None
        self._logger: logging.Logger = logging.getLogger(__name__)

    async def __aenter__(self) -> Self:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
            )
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _write_params(self, database: str) -> dict[str, str]:
        params = {"db": database, "precision": self.precision}
        if self._username:
            params["u"] = self._username
        if self._password:
            params["p"] = self._password
        return params

    async def write_batch(self, database: str, points: Sequence[MetricPoint]) -> None:
        """Write a batch of points in a single request.

        Raises:
            SinkError: On timeout, connection failure or a non-2xx response
        """
        if self._session is None:
            msg = "Sink session not initialized. Use 'async with' context manager."
            raise RuntimeError(msg)

        url = f"{self.address}/write"
        body = encode_points(points, precision=self.precision)
        self._logger.debug("Writing batch", extra={"url": url, "points": len(points), "database": database})

        try:
            async with asyncio.timeout(self._timeout_seconds):
                async with self._session.post(
                    url,
                    params=self._write_params(database),
                    data=body.encode("utf-8"),
                    headers={"Content-Type": "text/plain; charset=utf-8"},
                ) as response:
                    if response.status in (200, 204):
                        self._logger.debug("Batch accepted", extra={"status": response.status})
                        return
                    detail = (await response.text())[:_MAX_ERROR_BODY].strip()
                    detail = detail or response.reason or f"HTTP {response.status}"
                    msg = f"Sink rejected batch (status={response.status}): {detail}"
                    raise SinkError(msg, status=response.status)
        except TimeoutError as exc:
            msg = f"Write to {url} timed out after {self._timeout_seconds:.1f}s"
            raise SinkError(msg) from exc
        except aiohttp.ClientError as exc:
            msg = f"Write to {url} failed: {exc}"
            raise SinkError(msg) from exc
