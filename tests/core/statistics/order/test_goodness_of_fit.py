"""
Tests for the Kolmogorov-Smirnov goodness-of-fit of data against quantile models.
"""

from math import sqrt

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.core.statistics.order.exceptions import EmpiricalCDFError, UnsupportedValueTypeError
from src.core.statistics.order.goodness_of_fit import (
    EmpiricalCDF,
    goodness_of_fit,
    maximum_distance,
)
from src.core.statistics.order.histogram import build_histogram
from src.core.statistics.order.quantiles import QuantileColumn, QuantileDefinition, derive_quantiles
from src.core.statistics.order.value_types import ValueType


def model_of(values, number_of_intervals, definition=QuantileDefinition.NEAREST_RANK, value_type=ValueType.NUMERIC):
    _, column = derive_quantiles(build_histogram(values, value_type), number_of_intervals, definition)
    return column


class TestEmpiricalCDF:
    """Test suite for EmpiricalCDF."""

    def test_from_observations(self):
        """Test the cumulative probabilities of a small sample."""
        ecdf = EmpiricalCDF.from_observations([2.0, 1.0, 2.0, 3.0], ValueType.NUMERIC)

        assert ecdf.values == [1.0, 2.0, 3.0]
        assert ecdf.cumulative == pytest.approx([0.25, 0.75, 1.0])
        assert len(ecdf) == 3
        assert ecdf[2.0] == pytest.approx(0.75)

    def test_lookup_of_absent_value(self):
        ecdf = EmpiricalCDF.from_observations([1.0], ValueType.NUMERIC)
        with pytest.raises(KeyError):
            ecdf[5.0]

    def test_insert_inherits_predecessor(self):
        """Test that an inserted point takes the cumulative probability of its predecessor."""
        ecdf = EmpiricalCDF.from_observations([1.0, 3.0], ValueType.NUMERIC)

        assert ecdf.insert(2.0)
        assert ecdf[2.0] == pytest.approx(0.5)

    def test_insert_below_minimum(self):
        """Test that a point below every observation has a cumulative probability of 0."""
        ecdf = EmpiricalCDF.from_observations([1.0, 3.0], ValueType.NUMERIC)

        assert ecdf.insert(0.0)
        assert ecdf[0.0] == 0.0
        assert ecdf.values == [0.0, 1.0, 3.0]

    def test_insert_existing_value(self):
        """Test that inserting an existing point leaves the CDF unchanged."""
        ecdf = EmpiricalCDF.from_observations([1.0, 3.0], ValueType.NUMERIC)

        assert not ecdf.insert(3.0)
        assert len(ecdf) == 2
        assert ecdf[3.0] == pytest.approx(1.0)

    def test_cardinality_mismatch(self):
        """Test that masses which do not sum to one are rejected."""
        with pytest.raises(EmpiricalCDFError, match="total probability"):
            EmpiricalCDF.from_observations([1.0, 2.0], ValueType.NUMERIC, cardinality=3)

    def test_invalid_cardinality(self):
        with pytest.raises(EmpiricalCDFError, match="cardinality"):
            EmpiricalCDF.from_observations([], ValueType.NUMERIC)

    def test_text_observations(self):
        ecdf = EmpiricalCDF.from_observations(["b", "a", "b"], ValueType.TEXT)

        assert ecdf.values == ["a", "b"]
        assert ecdf["a"] == pytest.approx(1 / 3)


class TestMaximumDistance:
    """Test suite for maximum_distance."""

    def test_model_cdf_is_zero_below_minimum(self):
        """Test that points below the minimum breakpoint are compared to 0."""
        quantiles = QuantileColumn(value_type=ValueType.NUMERIC, values=(10.0, 20.0))
        ecdf = EmpiricalCDF.from_observations([0.0, 20.0], ValueType.NUMERIC)
        for value in quantiles.values:
            ecdf.insert(value)

        # At 0 and 10 the ECDF is 0.5 while the model is 0
        assert maximum_distance(ecdf, quantiles) == pytest.approx(0.5)

    def test_step_function(self):
        """Test the model step function between breakpoints."""
        quantiles = QuantileColumn(value_type=ValueType.NUMERIC, values=(0.0, 1.0, 2.0, 3.0))
        ecdf = EmpiricalCDF.from_observations([0.5, 0.5, 0.5, 2.5], ValueType.NUMERIC)
        for value in quantiles.values:
            ecdf.insert(value)

        # At 0.5 the ECDF is 0.75 and the model is still 0
        assert maximum_distance(ecdf, quantiles) == pytest.approx(0.75)


class TestGoodnessOfFit:
    """Test suite for goodness_of_fit."""

    def test_same_data_fits_nearest_rank_model(self):
        """Test that data fits exactly its own nearest-rank model with one interval per observation."""
        values = [1, 2, 2, 3, 4, 5, 5, 5, 6, 7]
        result = goodness_of_fit(model_of(values, len(values)), values)

        assert result.maximum_distance == pytest.approx(0.0, abs=1e-9)
        assert result.statistic == pytest.approx(0.0, abs=1e-9)
        assert result.cardinality == 10

    def test_statistic_scales_with_sqrt_n(self):
        """Test that the statistic is sqrt(n) times the maximum distance."""
        quantiles = model_of([1, 2, 3, 4], 4)
        observations = [1, 1, 1, 1, 4, 4, 4, 4, 4]
        result = goodness_of_fit(quantiles, observations)

        assert result.cardinality == 9
        assert result.statistic == pytest.approx(sqrt(9) * result.maximum_distance)
        assert 0.0 < result.maximum_distance <= 1.0

    def test_shifted_data(self):
        """Test that data entirely above the model has a distance of one minus a step."""
        quantiles = model_of([1, 2, 3, 4], 4)
        result = goodness_of_fit(quantiles, [100, 200])

        # ECDF is 0 up to the maximum breakpoint where the model is already 1
        assert result.maximum_distance == pytest.approx(1.0)

    def test_no_observations(self):
        """Test that an empty dataset gives no result."""
        assert goodness_of_fit(model_of([1, 2], 2), []) is None
        assert goodness_of_fit(model_of([1, 2], 2), [None, float("nan")]) is None

    def test_missing_observations_are_ignored(self):
        values = [1, 2, 3, 4]
        result = goodness_of_fit(model_of(values, 4), values + [None])

        assert result.cardinality == 4
        assert result.maximum_distance == pytest.approx(0.0, abs=1e-9)

    def test_text_model(self):
        values = ["a", "b", "b", "c"]
        result = goodness_of_fit(model_of(values, 4, value_type=ValueType.TEXT), values)
        assert result.maximum_distance == pytest.approx(0.0, abs=1e-9)

    def test_type_mismatch(self):
        """Test that text observations cannot be tested against a numeric model."""
        with pytest.raises(UnsupportedValueTypeError):
            goodness_of_fit(model_of([1, 2, 3], 2), ["a", "b"])

    @given(st.lists(st.integers(min_value=-20, max_value=20), min_size=1, max_size=60))
    @settings(max_examples=100)
    def test_self_fit_is_exact(self, values):
        """Test that every dataset fits its own nearest-rank model with N = n."""
        result = goodness_of_fit(model_of(values, len(values)), values)
        assert result.maximum_distance == pytest.approx(0.0, abs=1e-9)

    @given(
        st.lists(st.floats(min_value=-1e3, max_value=1e3, allow_nan=False), min_size=1, max_size=50),
        st.lists(st.floats(min_value=-1e3, max_value=1e3, allow_nan=False), min_size=1, max_size=50),
        st.integers(min_value=1, max_value=10),
        st.sampled_from(list(QuantileDefinition)),
    )
    @settings(max_examples=100)
    def test_distance_is_a_probability(self, reference, observations, number_of_intervals, definition):
        """Test that the maximum distance always lies in [0, 1]."""
        result = goodness_of_fit(model_of(reference, number_of_intervals, definition), observations)

        assert 0.0 <= result.maximum_distance <= 1.0 + 1e-9
        assert result.statistic == pytest.approx(sqrt(len(observations)) * result.maximum_distance)
