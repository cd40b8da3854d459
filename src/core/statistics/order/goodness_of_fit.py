# pylint: disable=line-too-long
"""
Kolmogorov-Smirnov goodness-of-fit of a dataset against a quantile model.

The quantile model defines a step CDF which jumps by 1/N at each of its N+1
breakpoints, from 0 at the minimum to 1 at the maximum. The empirical CDF of
the dataset is merged with the breakpoints and both functions are compared at
every jump, giving the maximum vertical distance D_mn. The statistic is
sqrt(n) * D_mn, where n is the size of the tested dataset.

No p-value is computed here: the statistic follows the asymptotic Kolmogorov
distribution, which callers may evaluate with `scipy.stats.kstwobign`.
"""

import bisect
import logging
from dataclasses import dataclass
from math import sqrt
from typing import Any, Iterable, List, Optional

from src.core.statistics.order.exceptions import EmpiricalCDFError
from src.core.statistics.order.quantiles import QuantileColumn
from src.core.statistics.order.value_types import ValueType, normalize_column

logger: logging.Logger = logging.getLogger(__name__)

ECDF_TOLERANCE = 1.0e-6


@dataclass(frozen=True)
class GoodnessOfFitResult:
    maximum_distance: float
    statistic: float
    cardinality: int


class EmpiricalCDF:
    """
    Empirical CDF of a column, as parallel lists sorted by ordering key.
    """

    def __init__(self, value_type: ValueType):
        self.value_type = value_type
        self.keys: List[Any] = []
        self.values: List[Any] = []
        self.cumulative: List[float] = []

    @classmethod
    def from_observations(cls, observations: List[Any], value_type: ValueType, cardinality: Optional[int] = None) -> "EmpiricalCDF":
        """
        Build the empirical CDF of normalized observations.

        Every occurrence adds 1/cardinality to the mass of its value, and the
        masses are then integrated in ascending order.

        :param observations: Normalized, non-missing observations
        :param value_type: Type of the observations
        :param cardinality: Number of observations the masses are relative to,
                            defaults to ``len(observations)``
        :raises EmpiricalCDFError: If the CDF does not end at 1 within ``ECDF_TOLERANCE``
        """
        if cardinality is None:
            cardinality = len(observations)
        if cardinality <= 0:
            raise EmpiricalCDFError(f"Cannot build an empirical CDF for a cardinality of {cardinality}")

        inv_card = 1.0 / cardinality
        masses = {}
        representatives = {}
        for value in observations:
            key = value_type.key(value)
            masses[key] = masses.get(key, 0.0) + inv_card
            representatives.setdefault(key, value)

        ecdf = cls(value_type)
        total = 0.0
        for key in sorted(masses):
            total += masses[key]
            ecdf.keys.append(key)
            ecdf.values.append(representatives[key])
            ecdf.cumulative.append(total)

        if abs(total - 1.0) > ECDF_TOLERANCE:
            raise EmpiricalCDFError(f"Incorrect empirical CDF: total probability is {total}")

        return ecdf

    def __len__(self) -> int:
        return len(self.keys)

    def __getitem__(self, value: Any) -> float:
        key = self.value_type.key(value)
        pos = bisect.bisect_left(self.keys, key)
        if pos >= len(self.keys) or self.keys[pos] != key:
            raise KeyError(value)
        return self.cumulative[pos]

    def insert(self, value: Any) -> bool:
        """
        Make ``value`` a point of the CDF if it is not one already.

        A new point inherits the cumulative probability of its predecessor, or 0
        if it becomes the smallest point.

        :return: True if the value was inserted
        """
        key = self.value_type.key(value)
        pos = bisect.bisect_left(self.keys, key)
        if pos < len(self.keys) and self.keys[pos] == key:
            return False

        self.keys.insert(pos, key)
        self.values.insert(pos, value)
        self.cumulative.insert(pos, self.cumulative[pos - 1] if pos > 0 else 0.0)
        return True


def maximum_distance(ecdf: EmpiricalCDF, quantiles: QuantileColumn) -> float:
    """
    Maximum vertical distance between an empirical CDF and the step CDF of a quantile model.

    The empirical CDF must already contain every breakpoint.

    :param ecdf: Merged empirical CDF
    :param quantiles: Ascending breakpoints
    :return: D_mn in [0, 1]
    """
    value_type = quantiles.value_type
    breakpoint_keys = [value_type.key(v) for v in quantiles.values]
    n_quant = len(breakpoint_keys)
    inv_n = 1.0 / quantiles.number_of_intervals

    current_q = 0
    model_cdf = 0.0
    d_mn = 0.0
    for key, empirical in zip(ecdf.keys, ecdf.cumulative):
        # Below the minimum the model CDF stays at 0
        if key >= breakpoint_keys[0]:
            while current_q + 1 < n_quant and key >= breakpoint_keys[current_q + 1]:
                current_q += 1
            model_cdf = current_q * inv_n

        d = abs(empirical - model_cdf)
        if d > d_mn:
            d_mn = d

    return d_mn


def goodness_of_fit(quantiles: QuantileColumn, observations: Iterable[Any]) -> Optional[GoodnessOfFitResult]:
    """
    Test a dataset against a quantile model.

    :param quantiles: Breakpoints of the model
    :param observations: Raw observations, of the same type as the breakpoints
    :return: The distance and statistic, or None if there are no observations
    :raises UnsupportedValueTypeError: If an observation does not belong to the model's type
    :raises EmpiricalCDFError: If the empirical CDF does not integrate to one
    """
    values, n_missing = normalize_column(observations, quantiles.value_type)
    if n_missing:
        logger.debug(f"Ignoring {n_missing} missing observations in goodness-of-fit test")
    if not values:
        return None

    cardinality = len(values)
    ecdf = EmpiricalCDF.from_observations(values, quantiles.value_type, cardinality)
    for breakpoint_value in quantiles.values:
        ecdf.insert(breakpoint_value)

    d_mn = maximum_distance(ecdf, quantiles)
    return GoodnessOfFitResult(
        maximum_distance=d_mn,
        statistic=sqrt(cardinality) * d_mn,
        cardinality=cardinality,
    )
