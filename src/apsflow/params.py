"""Per-item parameter lookup and typed operation parameters.

The host owns parameter resolution (expressions, UI defaults, and so on).
apsflow only asks for a named value scoped to one input item, through the
``ParameterSource`` protocol, and validates what it gets into a frozen
pydantic model for the selected operation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, ValidationError

from apsflow.errors import ConfigurationError


# Sentinel for "no default supplied"; None is a legitimate default.
MISSING: Any = object()

P = TypeVar("P", bound=BaseModel)


@runtime_checkable
class ParameterSource(Protocol):
    """Host contract: resolved parameter values for each input item."""

    def __len__(self) -> int:
        """Return the number of input items."""
        ...

    def get_parameter(self, name: str, item_index: int, default: Any = MISSING) -> Any:
        """Return the value of *name* for one item.

        Raises:
            ConfigurationError: If the value is absent and no default is given.
        """
        ...


class StaticParameters:
    """A ``ParameterSource`` over plain mappings, one per input item.

    Values set on the item win over shared *defaults*; both win over the
    default passed by the caller.

    Example:
        source = StaticParameters(
            [{"hubId": "b.1"}, {"hubId": "b.2"}],
            defaults={"operation": "getProjects"},
        )
    """

    def __init__(
        self,
        items: Sequence[Mapping[str, Any]],
        *,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self._items = [dict(item) for item in items]
        self._defaults = dict(defaults or {})

    def __len__(self) -> int:
        return len(self._items)

    def get_parameter(self, name: str, item_index: int, default: Any = MISSING) -> Any:
        if not 0 <= item_index < len(self._items):
            raise ConfigurationError(
                f"Item index {item_index} is out of range",
                hint=f"There are {len(self._items)} input item(s).",
                item_index=item_index,
            )
        item = self._items[item_index]
        if name in item:
            return item[name]
        if name in self._defaults:
            return self._defaults[name]
        if default is not MISSING:
            return default
        raise ConfigurationError(
            f"Missing required parameter {name!r}",
            hint=f"Set {name!r} on the item or in the shared defaults.",
            item_index=item_index,
        )


class OperationParams(BaseModel):
    """Base class for the typed parameters of one operation.

    Field aliases are the camelCase parameter names the host exposes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


def load_params(model: type[P], source: ParameterSource, item_index: int) -> P:
    """Read every field of *model* from *source* and validate it.

    Required fields are requested without a default, so a missing value
    surfaces as ``ConfigurationError`` from the source itself. Type and
    choice violations are mapped to ``ConfigurationError`` as well.
    """
    values: dict[str, Any] = {}
    for field_name, info in model.model_fields.items():
        if field_name == "operation":
            continue
        name = info.alias or field_name
        if info.is_required():
            values[name] = source.get_parameter(name, item_index)
        else:
            default = info.get_default(call_default_factory=True)
            values[name] = source.get_parameter(name, item_index, default)

    if "operation" in model.model_fields:
        values["operation"] = model.model_fields["operation"].default

    try:
        return model.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(part) for part in first.get("loc", ())) or model.__name__
        raise ConfigurationError(
            f"Invalid parameter {loc!r}: {first.get('msg', 'invalid value')}",
            hint=f"{e.error_count()} validation error(s) for {model.__name__}.",
            item_index=item_index,
        ) from e
