"""Operation registry: operation variant -> pure request builder.

Each API family declares its operations once, pairing a frozen parameter
model with a builder function and the shape of response it returns. The
executor never switches on operation names; it looks the operation up here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from apsflow.errors import ConfigurationError, InternalError

if TYPE_CHECKING:
    from apsflow.params import OperationParams
    from apsflow.request import RequestDescriptor

log = logging.getLogger(__name__)

P = TypeVar("P", bound="OperationParams")


@dataclass(frozen=True)
class Endpoint:
    """Where requests are sent. Threaded into builders explicitly."""

    base_url: str
    #: Sent with every request; operation headers override same-named entries.
    default_headers: dict[str, str] = field(default_factory=dict)


class ResponseKind(str, Enum):
    """How the normalizer should treat an operation's response."""

    #: ``data``-wrapped resources; eligible for flattening and splitting.
    JSON_API = "json_api"
    #: Domain payloads (manifests, trees, receipts); always passed through.
    DOCUMENT = "document"
    #: Raw bytes when the transport returns them; JSON otherwise.
    BINARY = "binary"


@dataclass(frozen=True)
class BinaryOutput(Generic[P]):
    """Describes the single item produced for a binary response."""

    #: JSON key that carries the base64 text.
    field: str
    file_name: Callable[[P], str]
    mime_type: Callable[[P], str]
    #: Logical name of the attachment on the output item.
    attachment: str = "data"


Builder = Callable[[P, Endpoint], "RequestDescriptor"]


@dataclass(frozen=True)
class OperationSpec(Generic[P]):
    """Everything apsflow knows about one remote operation."""

    name: str
    model: type[P]
    builder: Builder[P]
    response: ResponseKind
    binary: BinaryOutput[P] | None = None

    def build(self, params: P, endpoint: Endpoint) -> RequestDescriptor:
        """Run the builder for *params*."""
        return self.builder(params, endpoint)


class OperationRegistry:
    """Closed set of operations for one API family.

    Example:
        @REGISTRY.register("getHubs", GetHubs, response=ResponseKind.JSON_API)
        def build_get_hubs(params: GetHubs, endpoint: Endpoint) -> RequestDescriptor:
            ...
    """

    def __init__(self, family: str, *, json_api_output: bool) -> None:
        self.family = family
        #: Whether items may set ``simplify``/``splitItems`` for this family.
        self.json_api_output = json_api_output
        self._specs: dict[str, OperationSpec] = {}
        self._by_model: dict[type, OperationSpec] = {}

    def register(
        self,
        name: str,
        model: type[P],
        *,
        response: ResponseKind,
        binary: BinaryOutput[P] | None = None,
    ) -> Callable[[Builder[P]], Builder[P]]:
        """Decorator registering *builder* for operation *name*."""
        if (response is ResponseKind.BINARY) != (binary is not None):
            raise InternalError(
                f"Operation {name!r}: binary output spec must match response kind",
                hint="Pass binary=BinaryOutput(...) only with ResponseKind.BINARY.",
            )

        def decorator(builder: Builder[P]) -> Builder[P]:
            if name in self._specs:
                raise InternalError(
                    f"Operation {name!r} registered twice in {self.family}",
                )
            spec = OperationSpec(
                name=name, model=model, builder=builder, response=response, binary=binary
            )
            self._specs[name] = spec
            self._by_model[model] = spec
            log.debug("Registered %s operation: %s", self.family, name)
            return builder

        return decorator

    def get(self, name: str) -> OperationSpec:
        """Return the ``OperationSpec`` for *name*.

        Raises:
            ConfigurationError: If *name* is not one of this family's operations.
        """
        spec = self._specs.get(name) if isinstance(name, str) else None
        if spec is None:
            available = ", ".join(sorted(self._specs))
            raise ConfigurationError(
                f"Unknown {self.family} operation: {name!r}",
                hint=f"Available operations: {available}",
            )
        return spec

    def spec_for(self, params: OperationParams) -> OperationSpec:
        """Return the ``OperationSpec`` whose parameter model is ``type(params)``."""
        spec = self._by_model.get(type(params))
        if spec is None:
            raise ConfigurationError(
                f"{type(params).__name__} is not a {self.family} operation",
            )
        return spec

    def resolve(self, params: OperationParams, endpoint: Endpoint) -> RequestDescriptor:
        """Build the request for an already validated parameter variant."""
        return self.spec_for(params).build(params, endpoint)

    def names(self) -> tuple[str, ...]:
        """Return the registered operation names in registration order."""
        return tuple(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)
