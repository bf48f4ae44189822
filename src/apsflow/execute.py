"""Phase 4: Per-item execution loop.

Items run strictly in order: resolve, invoke, normalize, append. A failure
either becomes an ``{"error": ...}`` item (continue-on-failure) or aborts the
loop with the failing item's index attached. Items already emitted stay.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
from typing import TYPE_CHECKING

from apsflow.errors import (
    ApsFlowError,
    ConfigurationError,
    TransportError,
    with_item_index,
)
from apsflow.normalize import OutputItem, OutputOptions, normalize_response
from apsflow.params import load_params
from apsflow.resolve import resolve_item
from apsflow.transport._errors import wrap_transport_error

if TYPE_CHECKING:
    from apsflow.operations.base import Endpoint, OperationRegistry
    from apsflow.params import ParameterSource
    from apsflow.resolve import ResolvedCall
    from apsflow.transport.base import Credentials, Transport

logger = logging.getLogger(__name__)

ContinuePolicy = bool | Callable[[], bool]


async def _invoke(
    call: ResolvedCall, transport: Transport, credentials: Credentials
) -> object:
    try:
        return await transport.invoke(call.request, credentials)
    except asyncio.CancelledError:
        raise
    except ApsFlowError:
        raise
    except Exception as e:
        raise wrap_transport_error(e, request=call.request) from e


async def execute_item(
    registry: OperationRegistry,
    source: ParameterSource,
    item_index: int,
    *,
    transport: Transport,
    credentials: Credentials,
    endpoint: Endpoint,
) -> list[OutputItem]:
    """Resolve, invoke and normalize a single item. Errors propagate."""
    try:
        call = resolve_item(registry, source, item_index, endpoint)
        options = (
            load_params(OutputOptions, source, item_index)
            if registry.json_api_output
            else None
        )
    except ApsFlowError:
        raise
    except Exception as e:
        # Host parameter sources may raise anything; treat it as bad input.
        raise ConfigurationError(
            f"Could not read parameters: {type(e).__name__}: {e}",
            hint="The parameter source failed while resolving this item.",
            item_index=item_index,
        ) from e
    logger.debug("Item %d %s: %s", item_index, call.spec.name, call.request.summary())

    raw = await _invoke(call, transport, credentials)
    return normalize_response(
        raw,
        spec=call.spec,
        params=call.params,
        item_index=item_index,
        options=options,
    )


async def execute_items(
    registry: OperationRegistry,
    source: ParameterSource,
    *,
    transport: Transport,
    credentials: Credentials,
    endpoint: Endpoint,
    continue_on_failure: ContinuePolicy = False,
) -> list[OutputItem]:
    """Run every input item of *source* through *registry*'s operations.

    Args:
        registry: The API family (``DATA_MANAGEMENT`` or ``MODEL_DERIVATIVE``).
        source: Per-item parameter values.
        transport: Executes the resolved requests.
        credentials: Passed through to the transport untouched.
        endpoint: Base URL and default headers for request building.
        continue_on_failure: A flag, or a callable read once per item.

    Returns:
        One ordered list of output items for all inputs.

    Raises:
        ConfigurationError: A parameter was missing or invalid and
            continue-on-failure is off. ``item_index`` is set.
        TransportError: The call failed and continue-on-failure is off.
    """
    output: list[OutputItem] = []
    n_items = len(source)
    logger.debug("Executing %d %s item(s)", n_items, registry.family)

    for item_index in range(n_items):
        try:
            items = await execute_item(
                registry,
                source,
                item_index,
                transport=transport,
                credentials=credentials,
                endpoint=endpoint,
            )
        except (ConfigurationError, TransportError) as e:
            keep_going = (
                continue_on_failure()
                if callable(continue_on_failure)
                else continue_on_failure
            )
            if keep_going:
                logger.warning("Item %d failed, continuing: %s", item_index, e)
                output.append(OutputItem.error(str(e), item_index))
                continue
            err = with_item_index(e, item_index)
            if err is e:
                raise
            raise err from e
        output.extend(items)

    return output
