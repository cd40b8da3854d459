"""
Value representations understood by the order statistics engine.

Every algorithm in this package is written once and parameterized by the
ordering key of a ``ValueType``:

- NUMERIC values are compared as 64-bit floats,
- TEXT values are compared as strings,
- GENERIC values are tagged scalars: numbers sort before strings, numbers
  compare numerically and strings lexicographically.
"""

import numbers
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

import numpy as np

from src.core.statistics.order.exceptions import UnsupportedValueTypeError

# Tags of the generic ordering key
_NUMBER_TAG = 0
_STRING_TAG = 1


def is_missing(value: Any) -> bool:
    """Check whether a value is a missing observation (None or NaN)."""
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (numbers.Number, np.number, np.bool_)) and not isinstance(value, complex)


class ValueType(str, Enum):
    """
    Enumeration of the orderable value representations.
    """

    NUMERIC = "NUMERIC"
    TEXT = "TEXT"
    GENERIC = "GENERIC"

    @property
    def supports_midpoint(self) -> bool:
        """Only numeric values can be averaged between two ranks."""
        return self is ValueType.NUMERIC

    def normalize(self, value: Any) -> Any:
        """
        Convert a raw observation to the representation stored in histograms and quantile tables.

        :param value: A non-missing observation
        :return: The stored representation (a float for NUMERIC columns)
        :raises UnsupportedValueTypeError: If the value does not belong to this type
        """
        if self is ValueType.NUMERIC:
            if isinstance(value, str) or not _is_number(value):
                raise UnsupportedValueTypeError(f"Value {value!r} is not numeric")
            return float(value)
        if self is ValueType.TEXT:
            if not isinstance(value, str):
                raise UnsupportedValueTypeError(f"Value {value!r} is not a string")
            return value
        if _is_number(value):
            if isinstance(value, (bool, np.bool_)):
                return bool(value)
            if isinstance(value, np.number):
                return value.item()
            return value
        if isinstance(value, str):
            return value
        raise UnsupportedValueTypeError(f"Value {value!r} of type {type(value).__name__} has no generic ordering")

    def key(self, value: Any) -> Any:
        """
        Ordering key of a (normalized) value.

        Two values with equal keys are the same histogram entry.
        """
        if self is ValueType.NUMERIC:
            return float(value)
        if self is ValueType.TEXT:
            return value
        if isinstance(value, str):
            return (_STRING_TAG, value)
        return (_NUMBER_TAG, value)

    def midpoint(self, lower: Any, upper: Any) -> Any:
        """
        Midpoint of two values, falling back to the lower value when the type
        has no notion of an average.
        """
        if self.supports_midpoint:
            return 0.5 * (lower + upper)
        return lower


def infer_value_type(values: Iterable[Any]) -> Optional[ValueType]:
    """
    Infer the value type of a sequence of non-missing observations.

    :param values: Observations, missing ones already removed
    :return: NUMERIC if every value is a number, TEXT if every value is a string,
             GENERIC for a mix of both, None if any value is neither
    """
    has_number = False
    has_string = False
    for value in values:
        if isinstance(value, str):
            has_string = True
        elif _is_number(value):
            has_number = True
        else:
            return None

    if has_string and has_number:
        return ValueType.GENERIC
    if has_string:
        return ValueType.TEXT
    return ValueType.NUMERIC


def normalize_column(values: Iterable[Any], value_type: ValueType) -> Tuple[list, int]:
    """
    Normalize a column of raw observations, dropping missing ones.

    :param values: Raw observations
    :param value_type: Type every non-missing observation must belong to
    :return: The normalized observations and the number of dropped missing values
    :raises UnsupportedValueTypeError: If an observation does not belong to the type
    """
    normalized = []
    n_missing = 0
    for value in values:
        if is_missing(value):
            n_missing += 1
            continue
        normalized.append(value_type.normalize(value))
    return normalized, n_missing
