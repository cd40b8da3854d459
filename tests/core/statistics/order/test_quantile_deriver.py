# pylint: disable=line-too-long
"""
Tests for the quantile deriver.
"""

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.core.statistics.order.exceptions import QuantileDerivationError
from src.core.statistics.order.histogram import RawHistogram, build_histogram
from src.core.statistics.order.quantiles import (
    QuantileDefinition,
    advance_rank,
    derive_histogram,
    derive_quantiles,
    quantile_labels,
)
from src.core.statistics.order.value_types import ValueType

SAMPLE = [1, 2, 2, 3, 4, 5, 5, 5, 6, 7]


def quantiles_of(values, number_of_intervals=4, definition=QuantileDefinition.AVERAGED_STEPS, value_type=ValueType.NUMERIC):
    _, column = derive_quantiles(build_histogram(values, value_type), number_of_intervals, definition)
    return list(column.values)


class TestQuantileDefinition:
    """Test suite for parsing quantile definitions."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, QuantileDefinition.NEAREST_RANK),
            (1, QuantileDefinition.AVERAGED_STEPS),
            ("0", QuantileDefinition.NEAREST_RANK),
            ("NearestRank", QuantileDefinition.NEAREST_RANK),
            ("averaged_steps", QuantileDefinition.AVERAGED_STEPS),
            ("Averaged-Steps", QuantileDefinition.AVERAGED_STEPS),
            (QuantileDefinition.AVERAGED_STEPS, QuantileDefinition.AVERAGED_STEPS),
            (1.0, QuantileDefinition.AVERAGED_STEPS),
        ],
    )
    def test_parse(self, value, expected):
        """Test the accepted spellings of a definition."""
        assert QuantileDefinition.parse(value) is expected

    @pytest.mark.parametrize("value", [2, "median", True, -1, 1.5, 0.5, float("inf"), float("nan")])
    def test_parse_invalid(self, value):
        """Test that unknown definitions are rejected."""
        with pytest.raises(ValueError):
            QuantileDefinition.parse(value)

    def test_display_name(self):
        assert QuantileDefinition.NEAREST_RANK.display_name == "NearestRank"
        assert QuantileDefinition.AVERAGED_STEPS.display_name == "AveragedSteps"


class TestQuantileLabels:
    """Test suite for breakpoint labels."""

    def test_quartiles(self):
        """Test that N=4 gives the quartile names."""
        assert quantile_labels(4) == ["Minimum", "First Quartile", "Median", "Third Quartile", "Maximum"]

    def test_thirds(self):
        """Test that fractions which are not quartiles are named after their value."""
        assert quantile_labels(3) == ["Minimum", "0.333333-quantile", "0.666667-quantile", "Maximum"]

    def test_octiles(self):
        """Test that quartiles keep their names among finer fractions."""
        labels = quantile_labels(8)
        assert len(labels) == 9
        assert labels[0] == "Minimum"
        assert labels[1] == "0.125-quantile"
        assert labels[2] == "First Quartile"
        assert labels[4] == "Median"
        assert labels[6] == "Third Quartile"
        assert labels[8] == "Maximum"

    def test_single_interval(self):
        assert quantile_labels(1) == ["Minimum", "Maximum"]

    def test_invalid(self):
        with pytest.raises(ValueError, match="at least 1"):
            quantile_labels(0)


class TestDeriveHistogram:
    """Test suite for the derivation of cardinality, masses and CDF."""

    def test_cdf(self):
        """Test the cumulative counts of the sample."""
        derived = derive_histogram(build_histogram(SAMPLE, ValueType.NUMERIC))

        assert derived.cardinality == 10
        assert derived.cdf == (0, 1, 3, 4, 5, 8, 9, 10)
        assert sum(derived.probabilities) == pytest.approx(1.0)

    def test_negative_counts(self):
        """Test that a histogram with negative counts is rejected."""
        histogram = RawHistogram(value_type=ValueType.NUMERIC, values=(1.0, 2.0), counts=(3, -1))

        with pytest.raises(QuantileDerivationError, match="negative"):
            derive_histogram(histogram)

    def test_zero_total(self):
        """Test that a histogram counting nothing is rejected."""
        histogram = RawHistogram(value_type=ValueType.NUMERIC, values=(1.0,), counts=(0,))

        with pytest.raises(QuantileDerivationError, match="total count of zero"):
            derive_histogram(histogram)

    def test_supplied_cardinality_is_ignored(self):
        """Test that the cardinality is always recomputed from the counts."""
        histogram = RawHistogram(value_type=ValueType.NUMERIC, values=(1.0, 2.0), counts=(2, 3))
        assert derive_histogram(histogram).cardinality == 5


class TestAdvanceRank:
    """Test suite for the monotonic rank cursor."""

    def test_advance(self):
        cdf = (0, 1, 3, 4, 5, 8, 9, 10)
        assert advance_rank(cdf, 1, 1) == 1
        assert advance_rank(cdf, 1, 3) == 2
        assert advance_rank(cdf, 2, 6) == 5

    def test_never_moves_back(self):
        """Test that the cursor stays put when the target is already reached."""
        cdf = (0, 1, 3, 4, 5, 8, 9, 10)
        assert advance_rank(cdf, 5, 2) == 5

    def test_overflow(self):
        """Test that a target beyond the total count is an inconsistent table."""
        with pytest.raises(QuantileDerivationError, match="Inconsistent quantile table"):
            advance_rank((0, 1, 2), 1, 3)


class TestDeriveQuantiles:
    """Test suite for derive_quantiles."""

    def test_nearest_rank(self):
        """Test the quartiles of the sample with the nearest-rank definition."""
        assert quantiles_of(SAMPLE, 4, QuantileDefinition.NEAREST_RANK) == [1.0, 2.0, 4.0, 5.0, 7.0]

    def test_averaged_steps(self):
        """Test the quartiles of the sample with the averaged-steps definition."""
        assert quantiles_of(SAMPLE, 4, QuantileDefinition.AVERAGED_STEPS) == [1.0, 2.0, 4.5, 5.0, 7.0]

    def test_definitions_agree_without_gap(self):
        """Test that both definitions coincide when the averaged ranks hold the same value."""
        values = [1, 2, 2, 3, 3, 4, 4, 5]
        expected = [1.0, 2.0, 3.0, 4.0, 5.0]

        assert quantiles_of(values, 4, QuantileDefinition.NEAREST_RANK) == expected
        assert quantiles_of(values, 4, QuantileDefinition.AVERAGED_STEPS) == expected

    def test_default_definition(self):
        """Test that the averaged-steps definition is the default."""
        _, column = derive_quantiles(build_histogram(SAMPLE, ValueType.NUMERIC))
        assert list(column.values) == [1.0, 2.0, 4.5, 5.0, 7.0]
        assert column.number_of_intervals == 4

    def test_single_value(self):
        """Test that a constant column has all its breakpoints equal."""
        for definition in QuantileDefinition:
            assert quantiles_of([3.0, 3.0, 3.0], 5, definition) == [3.0] * 6

    def test_single_interval(self):
        """Test that one interval gives the minimum and the maximum."""
        assert quantiles_of([4, 9, 1], 1) == [1.0, 9.0]

    def test_text_averaged_steps_uses_lower_rank(self):
        """Test that text values are not averaged."""
        values = ["a", "b", "c", "d"]
        # Median falls between ranks 2 and 3
        assert quantiles_of(values, 2, QuantileDefinition.AVERAGED_STEPS, ValueType.TEXT) == ["a", "b", "d"]
        assert quantiles_of(values, 2, QuantileDefinition.NEAREST_RANK, ValueType.TEXT) == ["a", "b", "d"]

    def test_more_intervals_than_observations(self):
        """Test N larger than the number of observations."""
        assert quantiles_of([1, 2], 4, QuantileDefinition.NEAREST_RANK) == [1.0, 1.0, 1.0, 2.0, 2.0]

    def test_empty_histogram(self):
        with pytest.raises(ValueError, match="empty histogram"):
            derive_quantiles(build_histogram([], ValueType.NUMERIC))

    def test_invalid_number_of_intervals(self):
        with pytest.raises(ValueError, match="at least 1"):
            derive_quantiles(build_histogram([1, 2], ValueType.NUMERIC), 0)

    def test_input_histogram_untouched(self):
        """Test that deriving does not modify the raw histogram."""
        histogram = build_histogram(SAMPLE, ValueType.NUMERIC)
        derived, _ = derive_quantiles(histogram)

        assert derived.raw is histogram
        assert histogram.cardinality == -1

    @given(
        st.lists(st.floats(min_value=-1e6, max_value=1e6, allow_nan=False), min_size=1, max_size=80),
        st.integers(min_value=1, max_value=20),
        st.sampled_from(list(QuantileDefinition)),
    )
    @settings(max_examples=100)
    def test_breakpoints_are_monotonic(self, values, number_of_intervals, definition):
        """Test that breakpoints are sorted and span the minimum and maximum."""
        breakpoints = quantiles_of(values, number_of_intervals, definition)

        assert len(breakpoints) == number_of_intervals + 1
        assert breakpoints[0] == min(values)
        assert breakpoints[-1] == max(values)
        assert all(a <= b for a, b in zip(breakpoints, breakpoints[1:]))

    @given(
        st.lists(st.integers(min_value=-100, max_value=100), min_size=1, max_size=80),
        st.integers(min_value=1, max_value=12),
    )
    @settings(max_examples=100)
    def test_nearest_rank_matches_sorted_lookup(self, values, number_of_intervals):
        """Test the nearest-rank breakpoints against a direct lookup in the sorted data."""
        ordered = sorted(values)
        n = len(values)
        expected = [float(ordered[0])]
        for k in range(1, number_of_intervals):
            rank = int(np.floor(k * n / number_of_intervals + 0.5))
            expected.append(float(ordered[max(rank, 1) - 1]))
        expected.append(float(ordered[-1]))

        assert quantiles_of(values, number_of_intervals, QuantileDefinition.NEAREST_RANK) == expected

    @given(st.lists(st.integers(min_value=0, max_value=30), min_size=1, max_size=60))
    @settings(max_examples=50)
    def test_definitions_agree_on_values(self, values):
        """Test that the averaged-steps median lies between nearest-rank neighbours."""
        nearest = quantiles_of(values, 2, QuantileDefinition.NEAREST_RANK)
        averaged = quantiles_of(values, 2, QuantileDefinition.AVERAGED_STEPS)

        assert nearest[0] == averaged[0]
        assert nearest[-1] == averaged[-1]
        assert min(values) <= averaged[1] <= max(values)
