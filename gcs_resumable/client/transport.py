"""
HTTP transport for resumable uploads.

The engine only needs one primitive: a PUT that returns the status and the
headers as data. HTTP error statuses are never raised; only failures that
produce no response at all become TransportError.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import aiohttp

from gcs_resumable.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass
class Response:
    """Status, headers and body of a transport response.

    Header names are stored lowercased.
    """

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get(name.lower(), default)


class Transport(Protocol):
    """Protocol for the PUT primitive used by the upload engine."""

    async def put(
        self, url: str, body: Optional[bytes], headers: dict[str, str]
    ) -> Response:
        """
        Send a PUT request.

        Args:
            url: Upload session URL
            body: Request body, or None for an empty body
            headers: Request headers

        Returns:
            The response, whatever its status

        Raises:
            TransportError: If no HTTP response was received
        """
        ...


class AiohttpTransport:
    """
    Transport backed by aiohttp.

    Reuses one HTTP session for every request. A session passed in by the
    caller is left open; a session created here is closed by ``close()``.

    Example:
        >>> async with AiohttpTransport() as transport:
        ...     response = await transport.put(url, b"data", {"Content-Range": "bytes 0-3/4"})
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize transport.

        Args:
            session: Optional shared session
            timeout: Optional total timeout per request in seconds (None = no timeout)
        """
        self._session = session
        self._owns_session = False
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
            self._owns_session = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def put(
        self, url: str, body: Optional[bytes], headers: dict[str, str]
    ) -> Response:
        session = await self._get_session()
        size = len(body) if body else 0
        started = time.time()
        try:
            async with session.put(
                url,
                data=body if body else b"",
                headers=headers,
                allow_redirects=False,
                timeout=self._timeout,
            ) as response:
                content = await response.read()
                logger.debug(
                    f"PUT {url} ({size} bytes) -> {response.status} "
                    f"in {time.time() - started:.2f}s"
                )
                return Response(
                    status=response.status,
                    headers=dict(response.headers),
                    body=content,
                )
        except asyncio.TimeoutError as e:
            logger.error(f"PUT {url} timed out after {time.time() - started:.2f}s")
            raise TransportError(f"Request to {url} timed out") from e
        except aiohttp.ClientError as e:
            logger.error(f"PUT {url} failed: {e}")
            raise TransportError(f"Request to {url} failed: {e}") from e
