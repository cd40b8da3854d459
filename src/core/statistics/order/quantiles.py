# pylint: disable=line-too-long
"""
Quantile derivation from frequency histograms.

The N+1 breakpoints of a column are read off the cumulative counts of its
histogram, used as a reverse look-up table. Two definitions of the inverse CDF
are supported:

- NearestRank: the breakpoint at fraction k/N is the value of rank round(k*n/N),
  with halves rounded up.
- AveragedSteps: ranks ceil(k*n/N) and floor(k*n/N + 1) are looked up and, for
  numeric values, their midpoint is taken. Both ranks coincide unless k*n/N is
  an integer.

Note that ranks are 1-based indexed: rank 1 is the smallest observation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from math import ceil, floor
from typing import Any, List, Sequence, Tuple

from src.core.statistics.order.exceptions import QuantileDerivationError
from src.core.statistics.order.histogram import DerivedHistogram, RawHistogram
from src.core.statistics.order.value_types import ValueType

logger: logging.Logger = logging.getLogger(__name__)

QUARTILE_LABELS = ("Minimum", "First Quartile", "Median", "Third Quartile", "Maximum")


class QuantileDefinition(int, Enum):
    """
    Inverse CDF definitions, with the integer codes accepted as parameter values.
    """

    NEAREST_RANK = 0
    AVERAGED_STEPS = 1

    @property
    def display_name(self) -> str:
        return "NearestRank" if self is QuantileDefinition.NEAREST_RANK else "AveragedSteps"

    @classmethod
    def parse(cls, value: Any) -> "QuantileDefinition":
        """
        Parse a quantile definition from an enum member, a name or an integer code.

        :raises ValueError: If the value does not name a definition
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            if value.strip().isdigit():
                return cls(int(value))
            normalized = value.replace("_", "").replace("-", "").lower()
            for member in cls:
                if member.display_name.lower() == normalized:
                    return member
            raise ValueError(f"Unknown quantile definition: {value}")
        if isinstance(value, bool):
            raise ValueError(f"Unknown quantile definition: {value}")
        try:
            code = int(value)
        except OverflowError:
            raise ValueError(f"Unknown quantile definition: {value}")
        # Reject fractional codes such as 1.5
        if code != value:
            raise ValueError(f"Unknown quantile definition: {value}")
        return cls(code)


@dataclass(frozen=True)
class QuantileColumn:
    """Breakpoints of one variable, in ascending order, with the type they were derived from."""

    value_type: ValueType
    values: Tuple[Any, ...]

    @property
    def number_of_intervals(self) -> int:
        return len(self.values) - 1


def quantile_labels(number_of_intervals: int) -> List[str]:
    """
    Labels of the N+1 breakpoints.

    Fractions that are multiples of 1/4 get their quartile name, the others are
    named after the fraction printed with six significant digits.

    :param number_of_intervals: N, at least 1
    :return: List of N+1 labels
    """
    if number_of_intervals < 1:
        raise ValueError("number_of_intervals must be at least 1")

    dq = 1.0 / number_of_intervals
    labels = []
    for k in range(number_of_intervals + 1):
        quotient, remainder = divmod(4 * k, number_of_intervals)
        if remainder == 0 and quotient < len(QUARTILE_LABELS):
            labels.append(QUARTILE_LABELS[quotient])
        else:
            labels.append(f"{k * dq:g}-quantile")
    return labels


def derive_histogram(histogram: RawHistogram) -> DerivedHistogram:
    """
    Compute the cardinality, probability masses and CDF of a histogram.

    :param histogram: Non-empty histogram
    :return: The derived histogram
    :raises QuantileDerivationError: If a count is negative or the total count is zero
    """
    if any(c < 0 for c in histogram.counts):
        raise QuantileDerivationError("Histogram contains negative counts")

    cdf = [0]
    n = 0
    for c in histogram.counts:
        n += c
        cdf.append(n)

    if n == 0:
        raise QuantileDerivationError("Histogram has a total count of zero")

    inv_n = 1.0 / n
    return DerivedHistogram(
        raw=histogram,
        cardinality=n,
        probabilities=tuple(inv_n * c for c in histogram.counts),
        cdf=tuple(cdf),
    )


def advance_rank(cdf: Sequence[int], rank: int, target: int) -> int:
    """
    Move a rank cursor forward until the cumulative count reaches ``target``.

    :param cdf: 1-based cumulative counts, ``cdf[0]`` unused
    :param rank: Current cursor position, at least 1
    :param target: Quantile index to reach
    :return: The smallest rank >= ``rank`` with ``cdf[rank] >= target``
    :raises QuantileDerivationError: If the CDF never reaches ``target``
    """
    last = len(cdf) - 1
    while target > cdf[rank]:
        rank += 1
        if rank > last:
            raise QuantileDerivationError(
                f"Inconsistent quantile table: at last rank {last} the CDF is {cdf[last]} < {target}, "
                "the quantile index. Cannot derive model."
            )
    return rank


def quantile_indices(
    histogram: DerivedHistogram, number_of_intervals: int, definition: QuantileDefinition
) -> List[Tuple[int, int]]:
    """
    Histogram indices of the lower and upper ranks of every breakpoint.

    The rank cursor is shared by all interior breakpoints and only ever moves
    forward, which requires visiting them by increasing k.

    :return: N+1 pairs of 1-based histogram indices
    """
    n = histogram.cardinality
    cdf = histogram.cdf
    last = histogram.last_index

    # First breakpoint is always the smallest value
    indices = [(1, 1)]

    rank = 1
    for k in range(1, number_of_intervals):
        # Exact product first so that half ranks are not lost to rounding
        np_ = k * n / number_of_intervals

        if definition is QuantileDefinition.AVERAGED_STEPS:
            q_idx1 = ceil(np_)
        else:
            q_idx1 = floor(np_ + 0.5)

        rank = advance_rank(cdf, rank, q_idx1)
        lower = rank

        if definition is QuantileDefinition.AVERAGED_STEPS:
            q_idx2 = floor(np_ + 1.0)
            if q_idx2 != q_idx1:
                rank = advance_rank(cdf, rank, q_idx2)

        indices.append((lower, rank))

    # Last breakpoint is always the largest value
    indices.append((last, last))
    return indices


def derive_quantiles(
    histogram: RawHistogram,
    number_of_intervals: int = 4,
    definition: QuantileDefinition = QuantileDefinition.AVERAGED_STEPS,
) -> Tuple[DerivedHistogram, QuantileColumn]:
    """
    Derive the quantile breakpoints of a histogram.

    :param histogram: Histogram with at least one entry
    :param number_of_intervals: N, the number of intervals between breakpoints
    :param definition: Inverse CDF definition
    :return: The derived histogram and its N+1 breakpoints
    :raises ValueError: If the histogram is empty or N is smaller than 1
    :raises QuantileDerivationError: If the histogram counts are inconsistent
    """
    if histogram.is_empty:
        raise ValueError("Cannot derive quantiles from an empty histogram")
    if number_of_intervals < 1:
        raise ValueError("number_of_intervals must be at least 1")

    derived = derive_histogram(histogram)
    indices = quantile_indices(derived, number_of_intervals, definition)

    value_type = histogram.value_type
    if definition is QuantileDefinition.AVERAGED_STEPS and not value_type.supports_midpoint:
        logger.debug(f"No midpoint for {value_type.value} values, using the lower rank of each breakpoint")

    breakpoints = []
    for lower, upper in indices:
        if definition is QuantileDefinition.AVERAGED_STEPS:
            breakpoints.append(value_type.midpoint(derived.value_at(lower), derived.value_at(upper)))
        else:
            breakpoints.append(derived.value_at(lower))

    return derived, QuantileColumn(value_type=value_type, values=tuple(breakpoints))
