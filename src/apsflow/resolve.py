"""Phase 2: Operation resolution.

Turns one input item's parameters into a ready-to-send request. Pure: no
network, no credentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from apsflow.params import load_params

if TYPE_CHECKING:
    from apsflow.operations.base import Endpoint, OperationRegistry, OperationSpec
    from apsflow.params import OperationParams, ParameterSource
    from apsflow.request import RequestDescriptor


@dataclass(frozen=True)
class ResolvedCall:
    """A single remote call, resolved for one input item."""

    item_index: int
    spec: OperationSpec
    params: OperationParams
    request: RequestDescriptor


def resolve_item(
    registry: OperationRegistry,
    source: ParameterSource,
    item_index: int,
    endpoint: Endpoint,
) -> ResolvedCall:
    """Resolve the operation and request for item *item_index*.

    Raises:
        ConfigurationError: If the operation is unknown or a required
            parameter is missing or invalid.
    """
    operation = source.get_parameter("operation", item_index)
    if isinstance(operation, Enum):
        operation = operation.value
    spec = registry.get(operation)
    params = load_params(spec.model, source, item_index)
    return ResolvedCall(
        item_index=item_index,
        spec=spec,
        params=params,
        request=spec.build(params, endpoint),
    )
