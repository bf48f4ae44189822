"""Parameter source lookup and typed parameter loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from apsflow.errors import ConfigurationError
from apsflow.normalize import OutputOptions
from apsflow.operations.data_management import CreateBucket, ListBuckets
from apsflow.params import ParameterSource, StaticParameters, load_params

pytestmark = pytest.mark.unit


def test_static_parameters_is_a_parameter_source() -> None:
    assert isinstance(StaticParameters([]), ParameterSource)


def test_item_value_wins_over_defaults_and_fallback() -> None:
    source = StaticParameters(
        [{"region": "EMEA"}, {}], defaults={"region": "US", "limit": 5}
    )

    assert source.get_parameter("region", 0, "X") == "EMEA"
    assert source.get_parameter("region", 1, "X") == "US"
    assert source.get_parameter("other", 1, "X") == "X"
    assert source.get_parameter("other", 1, None) is None
    assert len(source) == 2


def test_missing_parameter_without_default_raises() -> None:
    source = StaticParameters([{}])

    with pytest.raises(ConfigurationError, match="Missing required parameter 'hubId'") as exc:
        source.get_parameter("hubId", 0)
    assert exc.value.item_index == 0


def test_out_of_range_index_raises() -> None:
    with pytest.raises(ConfigurationError, match="out of range"):
        StaticParameters([{}]).get_parameter("x", 3, None)


def test_load_params_applies_model_defaults() -> None:
    params = load_params(ListBuckets, StaticParameters([{}]), 0)

    assert params == ListBuckets(region="US", limit=50)
    assert params.operation == "listBuckets"


def test_load_params_reads_aliases() -> None:
    source = StaticParameters([{"newBucketKey": "k", "policyKey": "transient"}])

    params = load_params(CreateBucket, source, 0)

    assert params.new_bucket_key == "k"
    assert params.policy_key == "transient"


def test_load_params_maps_validation_errors() -> None:
    source = StaticParameters([{}, {"limit": 0}])

    with pytest.raises(ConfigurationError, match="Invalid parameter 'limit'") as exc:
        load_params(ListBuckets, source, 1)
    assert exc.value.item_index == 1
    assert "ListBuckets" in (exc.value.hint or "")


def test_params_are_frozen() -> None:
    params = load_params(ListBuckets, StaticParameters([{}]), 0)

    with pytest.raises(ValidationError):
        params.limit = 10  # type: ignore[misc]


def test_output_options_default_to_simplify_and_split() -> None:
    options = load_params(OutputOptions, StaticParameters([{}]), 0)

    assert options.simplify is True
    assert options.split_items is True


def test_output_options_read_split_items_alias() -> None:
    source = StaticParameters([{"simplify": False, "splitItems": False}])

    options = load_params(OutputOptions, source, 0)

    assert options.simplify is False
    assert options.split_items is False
