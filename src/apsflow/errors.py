"""Exception hierarchy for apsflow."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class ApsFlowError(Exception):
    """Base exception for all apsflow errors."""

    def __init__(
        self, message: str, *, hint: str | None = None, item_index: int | None = None
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.item_index = item_index


class ConfigurationError(ApsFlowError):
    """A parameter or configuration value is missing or invalid.

    Always raised before any network call is attempted.
    """


class InternalError(ApsFlowError):
    """An apsflow internal error (bug) or invariant violation."""


class TransportError(ApsFlowError):
    """HTTP call failed at the network or protocol layer.

    Transports attach the status code and request line so callers can surface
    a useful message without parsing it.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        item_index: int | None = None,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint, item_index=item_index)
        self.status_code = status_code
        self.method = method
        self.url = url


class RateLimitError(TransportError):
    """Rate limit exceeded (HTTP 429)."""


def with_item_index(err: ApsFlowError, item_index: int) -> ApsFlowError:
    """Return an error instance attributed to *item_index*.

    The original instance is left untouched; a transport may raise the same
    object for several items.
    """
    if err.item_index == item_index:
        return err

    message = err.args[0] if err.args else str(err)
    if isinstance(err, TransportError):
        return type(err)(
            message,
            hint=err.hint,
            item_index=item_index,
            status_code=err.status_code,
            method=err.method,
            url=err.url,
        )
    return type(err)(message, hint=err.hint, item_index=item_index)


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
