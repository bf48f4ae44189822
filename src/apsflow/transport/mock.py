"""Mock transport for offline runs and tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from apsflow.request import RequestDescriptor
    from apsflow.transport.base import Credentials

# PNG signature, so binary consumers see a plausible image header.
_MOCK_PNG = b"\x89PNG\r\n\x1a\nmock"


class MockTransport:
    """Transport that never touches the network.

    Binary requests get a tiny PNG-looking payload; everything else gets a
    JSON text echo of the request line, which normalizes as a pass-through
    item.
    """

    def __init__(self) -> None:
        self.requests: list[RequestDescriptor] = []

    async def invoke(
        self,
        request: RequestDescriptor,
        credentials: Credentials,  # noqa: ARG002
    ) -> Any:
        """Record *request* and return a deterministic body."""
        self.requests.append(request)
        if request.expect_binary:
            return _MOCK_PNG
        return json.dumps(
            {
                "mock": True,
                "method": request.method,
                "url": request.url,
                "query": request.query,
            }
        )
