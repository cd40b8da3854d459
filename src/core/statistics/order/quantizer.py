"""
Assignment of observations to quantile buckets.
"""

import bisect
from typing import Any, List, Optional

from src.core.statistics.order.exceptions import UnsupportedValueTypeError
from src.core.statistics.order.quantiles import QuantileColumn
from src.core.statistics.order.value_types import ValueType, is_missing


class Quantizer:
    """
    Maps observations to the index of the quantile interval containing them.

    Bucket 0 holds everything up to and including the minimum breakpoint, and
    bucket k in 1..N the observations in ``(q[k-1], q[k]]``. Observations above
    the maximum breakpoint stay in bucket N. An observation equal to a
    breakpoint belongs to the bucket of that breakpoint, as if the breakpoints
    were scanned left to right while the observation is strictly greater.
    """

    def __init__(self, quantiles: QuantileColumn):
        self.quantiles = quantiles
        self.value_type: ValueType = quantiles.value_type
        self._keys: List[Any] = [self.value_type.key(v) for v in quantiles.values]

    @classmethod
    def for_column(cls, quantiles: QuantileColumn, value_type: ValueType) -> "Quantizer":
        """
        Select a quantizer for a data column.

        :raises UnsupportedValueTypeError: If the data and quantile types differ
        """
        if value_type is not quantiles.value_type:
            raise UnsupportedValueTypeError(
                f"Unsupported (data, quantiles) types: data type is {value_type.value} "
                f"and quantiles type is {quantiles.value_type.value}"
            )
        return cls(quantiles)

    @property
    def number_of_intervals(self) -> int:
        return len(self._keys) - 1

    def __call__(self, observation: Any) -> Optional[int]:
        """
        Bucket index of one observation.

        :param observation: Raw observation
        :return: Index in [0, N], or None for a missing observation
        :raises UnsupportedValueTypeError: If the observation does not belong to the model's type
        """
        if is_missing(observation):
            return None

        key = self.value_type.key(self.value_type.normalize(observation))
        if key < self._keys[0]:
            return 0
        return min(bisect.bisect_left(self._keys, key), self.number_of_intervals)
