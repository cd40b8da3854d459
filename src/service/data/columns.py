import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import pandas as pd
from pandas.api.types import is_numeric_dtype, is_object_dtype, is_string_dtype

from src.core.statistics.order.exceptions import UnsupportedValueTypeError
from src.core.statistics.order.value_types import ValueType, infer_value_type, is_missing

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class Column:
    name: str
    value_type: ValueType
    values: List[Any]


def _to_python(value: Any) -> Any:
    if value is pd.NA or value is pd.NaT:
        return None
    return value


def infer_series_type(series: pd.Series) -> ValueType:
    """
    Infer the value type of a column from its dtype and, for object columns, its contents.

    Args:
        series: The column

    Returns:
        NUMERIC for numeric and boolean dtypes, TEXT for columns holding only strings,
        GENERIC for columns mixing numbers and strings

    Raises:
        UnsupportedValueTypeError: If the column holds values that cannot be ordered
    """
    if is_numeric_dtype(series.dtype):
        return ValueType.NUMERIC

    if is_object_dtype(series.dtype) or is_string_dtype(series.dtype):
        values = [v for v in map(_to_python, series.tolist()) if not is_missing(v)]
        value_type = infer_value_type(values)
        if value_type is not None:
            return value_type

    raise UnsupportedValueTypeError(f"Unsupported data type {series.dtype}", variable=str(series.name))


def get_column(table: pd.DataFrame, name: str, value_type: Optional[ValueType] = None) -> Optional[Column]:
    """
    Get a typed column of a table.

    Args:
        table: The input table
        name: The column name
        value_type: Optional type forced onto the column instead of inferring it

    Returns:
        The column, or None if the table has no such column

    Raises:
        UnsupportedValueTypeError: If the column type cannot be inferred
    """
    if name not in table.columns:
        return None

    series = table[name]
    if value_type is None:
        value_type = infer_series_type(series)

    values = [_to_python(v) for v in series.tolist()]
    logger.debug(f"Read column {name} of type {value_type.value} with {len(values)} rows")
    return Column(name=name, value_type=value_type, values=values)
