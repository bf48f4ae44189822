"""Transport protocol: the one seam through which HTTP happens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from apsflow.request import RequestDescriptor


@dataclass(frozen=True)
class Credentials:
    """Opaque credential handle handed to the transport.

    apsflow never inspects it; token refresh is the host's concern.
    """

    access_token: str | None = None

    def __repr__(self) -> str:
        token = "[REDACTED]" if self.access_token else None
        return f"Credentials(access_token={token})"


@runtime_checkable
class Transport(Protocol):
    """Minimal transport protocol: execute a request, return the raw body."""

    async def invoke(self, request: RequestDescriptor, credentials: Credentials) -> Any:
        """Perform the authenticated call.

        Returns:
            ``bytes`` when ``request.expect_binary`` is set, otherwise the body
            as text or an already parsed JSON value.

        Raises:
            TransportError: On network or HTTP failure.
        """
        ...
