"""apsflow: Per-item Autodesk Platform Services calls with normalized output.

Public API:
    - run_data_management(): Hubs, projects, folders, items, OSS buckets/objects
    - run_model_derivative(): Translation jobs, manifests, metadata, thumbnails
    - Config: Configuration dataclass
    - OutputItem: One normalized output record
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
import logging
from typing import TYPE_CHECKING, Any

from apsflow.config import Config
from apsflow.errors import (
    ApsFlowError,
    ConfigurationError,
    InternalError,
    RateLimitError,
    TransportError,
)
from apsflow.execute import execute_items
from apsflow.normalize import BinaryAttachment, OutputItem, flatten_entity
from apsflow.operations import (
    DATA_MANAGEMENT,
    MODEL_DERIVATIVE,
    DataManagementOperation,
    Endpoint,
    ModelDerivativeOperation,
)
from apsflow.params import ParameterSource, StaticParameters
from apsflow.request import RequestDescriptor
from apsflow.transport import Credentials

if TYPE_CHECKING:
    from apsflow.operations import OperationRegistry
    from apsflow.transport import Transport

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("apsflow")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("apsflow").addHandler(logging.NullHandler())

logger = logging.getLogger(__name__)

Items = Sequence[Mapping[str, Any]] | ParameterSource


async def run_data_management(
    items: Items,
    *,
    config: Config,
    defaults: Mapping[str, Any] | None = None,
    transport: Transport | None = None,
) -> list[OutputItem]:
    """Run Data Management / OSS operations, one call per input item.

    Args:
        items: Per-item parameters (``operation`` plus that operation's
            fields), or a host ``ParameterSource``.
        config: Base URL, token and continue-on-failure policy.
        defaults: Parameters shared by every item; ignored for a
            ``ParameterSource``.
        transport: Custom transport. Defaults to httpx (or mock when
            ``config.use_mock``).

    Returns:
        One ordered list of output items.

    Example:
        config = Config()
        out = await run_data_management(
            [{"hubId": "b.123"}],
            defaults={"operation": "getProjects"},
            config=config,
        )
        for item in out:
            print(item.json["id"], item.json.get("name"))
    """
    return await run(
        DATA_MANAGEMENT, items, config=config, defaults=defaults, transport=transport
    )


async def run_model_derivative(
    items: Items,
    *,
    config: Config,
    defaults: Mapping[str, Any] | None = None,
    transport: Transport | None = None,
) -> list[OutputItem]:
    """Run Model Derivative operations, one call per input item.

    Args:
        items: Per-item parameters, or a host ``ParameterSource``.
        config: Base URL, token and continue-on-failure policy.
        defaults: Parameters shared by every item.
        transport: Custom transport.

    Returns:
        One ordered list of output items.

    Example:
        out = await run_model_derivative(
            [{"operation": "getManifest", "urn": "dXJuOmFkc2s..."}],
            config=Config(),
        )
        print(out[0].json["progress"])
    """
    return await run(
        MODEL_DERIVATIVE, items, config=config, defaults=defaults, transport=transport
    )


async def run(
    registry: OperationRegistry,
    items: Items,
    *,
    config: Config,
    defaults: Mapping[str, Any] | None = None,
    transport: Transport | None = None,
) -> list[OutputItem]:
    """Run *items* through *registry*'s operations."""
    if isinstance(items, ParameterSource):
        source: ParameterSource = items
    else:
        source = StaticParameters(items, defaults=defaults)

    owned = transport is None
    active = transport if transport is not None else _get_transport(config)
    try:
        return await execute_items(
            registry,
            source,
            transport=active,
            credentials=Credentials(access_token=config.access_token),
            endpoint=Endpoint(base_url=config.base_url or ""),
            continue_on_failure=config.continue_on_failure,
        )
    finally:
        aclose = getattr(active, "aclose", None)
        if owned and callable(aclose):
            try:
                await aclose()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                # Cleanup should never mask the primary failure.
                logger.warning("Transport cleanup failed: %s", exc)


def _get_transport(config: Config) -> Transport:
    """Get the appropriate transport based on configuration."""
    if config.use_mock:
        from apsflow.transport.mock import MockTransport

        return MockTransport()

    from apsflow.transport.httpx_transport import HttpxTransport

    return HttpxTransport(timeout_s=config.timeout_s)


__all__ = [
    "DATA_MANAGEMENT",
    "MODEL_DERIVATIVE",
    "ApsFlowError",
    "BinaryAttachment",
    "Config",
    "ConfigurationError",
    "Credentials",
    "DataManagementOperation",
    "InternalError",
    "ModelDerivativeOperation",
    "OutputItem",
    "ParameterSource",
    "RateLimitError",
    "RequestDescriptor",
    "StaticParameters",
    "TransportError",
    "flatten_entity",
    "run",
    "run_data_management",
    "run_model_derivative",
]
