"""Default transport built on httpx."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from apsflow.transport._errors import wrap_transport_error

if TYPE_CHECKING:
    from apsflow.request import RequestDescriptor
    from apsflow.transport.base import Credentials

logger = logging.getLogger(__name__)


class HttpxTransport:
    """Execute request descriptors with an ``httpx.AsyncClient``.

    One attempt per call: no retries, no token refresh. Pass *client* to
    control pooling, proxies or a mock transport; otherwise a client is
    created lazily and closed by ``aclose()``.
    """

    def __init__(
        self, *, timeout_s: float = 30.0, client: httpx.AsyncClient | None = None
    ) -> None:
        """Initialize with a timeout and an optional pre-built client."""
        self.timeout_s = timeout_s
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily initialize and return the httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def invoke(self, request: RequestDescriptor, credentials: Credentials) -> Any:
        """Send *request*; return bytes for binary requests, text otherwise."""
        headers = dict(request.headers)
        if credentials.access_token:
            headers["Authorization"] = f"Bearer {credentials.access_token}"

        kwargs: dict[str, Any] = {}
        if request.body_encoding == "json":
            kwargs["json"] = request.body
        elif request.body_encoding == "raw":
            kwargs["content"] = request.body

        client = self._get_client()
        try:
            response = await client.request(
                request.method,
                request.url,
                params=request.query or None,
                headers=headers,
                **kwargs,
            )
            response.raise_for_status()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_transport_error(e, request=request) from e

        logger.debug(
            "%s %s -> %d (%d bytes)",
            request.method,
            request.url,
            response.status_code,
            len(response.content),
        )
        if request.expect_binary:
            return response.content
        return response.text

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
