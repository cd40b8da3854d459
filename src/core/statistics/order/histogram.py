"""
Frequency histograms of a single column of orderable values.

A histogram is stored as two index-aligned tuples of distinct values and
counts in ascending value order. Its table rendering reserves row 0 for the
cardinality record, which is kept apart from the real entries so that it is
never summed together with their counts.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Tuple

import numpy as np
import pandas as pd

from src.core.statistics.order.exceptions import QuantileDerivationError
from src.core.statistics.order.value_types import ValueType, normalize_column

logger: logging.Logger = logging.getLogger(__name__)

VALUE_COLUMN = "Value"
CARDINALITY_COLUMN = "Cardinality"
PROBABILITY_COLUMN = "P"

# Cardinality of a histogram that has not been derived yet
CARDINALITY_UNSET = -1
# Probability mass of the cardinality record
PROBABILITY_UNSET = -1.0


def _cardinality_record_value(value_type: ValueType) -> Any:
    return np.nan if value_type is ValueType.NUMERIC else ""


@dataclass(frozen=True)
class RawHistogram:
    """
    Histogram produced by the builder.

    The cardinality is always ``CARDINALITY_UNSET``: only the quantile deriver
    knows the true count, so that a histogram supplied by another producer
    can never carry a stale total.
    """

    value_type: ValueType
    values: Tuple[Any, ...]
    counts: Tuple[int, ...]
    n_missing: int = 0
    cardinality: int = field(default=CARDINALITY_UNSET, init=False)

    def __len__(self) -> int:
        """Return the number of distinct values."""
        return len(self.values)

    def __iter__(self) -> Iterator[Tuple[Any, int]]:
        return iter(zip(self.values, self.counts))

    @property
    def is_empty(self) -> bool:
        return len(self.values) == 0

    def to_frame(self) -> pd.DataFrame:
        """Render the histogram table with the cardinality record in row 0."""
        return pd.DataFrame(
            {
                VALUE_COLUMN: [_cardinality_record_value(self.value_type), *self.values],
                CARDINALITY_COLUMN: [self.cardinality, *self.counts],
            }
        )

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, value_type: ValueType) -> "RawHistogram":
        """
        Rebuild a histogram from a table with ``Value`` and ``Cardinality`` columns.

        Row 0 is the cardinality record and is ignored. The remaining rows may come
        in any order but must hold distinct values.

        :param frame: Histogram table
        :param value_type: Type of the ``Value`` column
        :return: The histogram, sorted by value
        :raises QuantileDerivationError: If a column is missing or a value is repeated
        """
        for column in (VALUE_COLUMN, CARDINALITY_COLUMN):
            if column not in frame.columns:
                raise QuantileDerivationError(f"Histogram table has no '{column}' column")

        rows = frame.iloc[1:]
        values, _ = normalize_column(rows[VALUE_COLUMN].tolist(), value_type)
        counts = [int(c) for c in rows[CARDINALITY_COLUMN].tolist()]
        if len(values) != len(counts):
            raise QuantileDerivationError("Histogram table contains missing values")

        entries = sorted(zip(values, counts), key=lambda entry: value_type.key(entry[0]))
        keys = [value_type.key(v) for v, _ in entries]
        if len(set(keys)) != len(keys):
            raise QuantileDerivationError("Histogram table contains repeated values")

        return cls(
            value_type=value_type,
            values=tuple(v for v, _ in entries),
            counts=tuple(c for _, c in entries),
        )


@dataclass(frozen=True)
class DerivedHistogram:
    """
    Histogram completed by the quantile deriver.

    ``cdf`` is 1-based: ``cdf[0]`` is reserved for the cardinality record and
    ``cdf[r]`` is the number of observations up to and including entry ``r``.
    """

    raw: RawHistogram
    cardinality: int
    probabilities: Tuple[float, ...]
    cdf: Tuple[int, ...]

    @property
    def value_type(self) -> ValueType:
        return self.raw.value_type

    @property
    def values(self) -> Tuple[Any, ...]:
        return self.raw.values

    @property
    def counts(self) -> Tuple[int, ...]:
        return self.raw.counts

    @property
    def last_index(self) -> int:
        """Histogram index of the largest value."""
        return len(self.raw)

    def value_at(self, index: int) -> Any:
        """Value at a 1-based histogram index."""
        return self.raw.values[index - 1]

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {
                VALUE_COLUMN: [_cardinality_record_value(self.value_type), *self.values],
                CARDINALITY_COLUMN: [self.cardinality, *self.counts],
            }
        )
        frame[PROBABILITY_COLUMN] = [PROBABILITY_UNSET, *self.probabilities]
        return frame


def build_histogram(values: Iterable[Any], value_type: ValueType) -> RawHistogram:
    """
    Count the occurrences of every distinct value of a column.

    Missing observations are dropped and reported through ``n_missing``.

    :param values: Raw observations of one column
    :param value_type: Type shared by every observation of the column
    :return: Histogram in ascending value order
    :raises UnsupportedValueTypeError: If an observation does not belong to ``value_type``
    """
    observations, n_missing = normalize_column(values, value_type)

    counter: Counter = Counter()
    representatives = {}
    for value in observations:
        key = value_type.key(value)
        counter[key] += 1
        representatives.setdefault(key, value)

    keys: List[Any] = sorted(counter)
    logger.debug(f"Built histogram with {len(keys)} distinct values from {len(observations)} observations")

    return RawHistogram(
        value_type=value_type,
        values=tuple(representatives[k] for k in keys),
        counts=tuple(counter[k] for k in keys),
        n_missing=n_missing,
    )
