"""Map httpx and other transport exceptions into ``TransportError``."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx

from apsflow.errors import RateLimitError, TransportError, _walk_exception_chain

if TYPE_CHECKING:
    from apsflow.request import RequestDescriptor

# Longest slice of an error response body worth quoting in a message.
_MAX_DETAIL_CHARS = 300


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        for attr in ("status_code", "status"):
            value = getattr(e, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def _response_detail(exc: BaseException) -> str:
    """Return a short excerpt of the error body, when there is one."""
    if not isinstance(exc, httpx.HTTPStatusError):
        return ""
    try:
        text = exc.response.text
    except httpx.ResponseNotRead:
        return ""
    text = text.strip()
    if len(text) > _MAX_DETAIL_CHARS:
        text = text[:_MAX_DETAIL_CHARS] + "..."
    return text


def _auth_hint(status_code: int | None) -> str | None:
    if status_code == 401:
        return "Check the access token (set APS_ACCESS_TOKEN or Config.access_token)."
    if status_code == 403:
        return "The token lacks the scope or permission this operation needs."
    return None


def wrap_transport_error(
    exc: BaseException,
    *,
    request: RequestDescriptor,
    message: str | None = None,
) -> TransportError:
    """Map an exception raised while executing *request* into TransportError."""
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    # Already wrapped: fill in missing context only.
    if isinstance(exc, TransportError):
        if exc.method is None:
            exc.method = request.method
        if exc.url is None:
            exc.url = request.url
        return exc

    status_code = extract_status_code(exc)
    msg = message or f"{request.method} {request.url} failed"
    status_note = f" (status={status_code})" if status_code is not None else ""
    cause = _response_detail(exc) or str(exc) or type(exc).__name__

    err_cls: type[TransportError] = TransportError
    if status_code == 429:
        err_cls = RateLimitError

    return err_cls(
        f"{msg}{status_note}: {cause}",
        hint=_auth_hint(status_code),
        status_code=status_code,
        method=request.method,
        url=request.url,
    )
